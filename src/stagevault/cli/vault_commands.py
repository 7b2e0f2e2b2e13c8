#!/usr/bin/env python3
"""
StageVault CLI Commands - Deployment Inspection and Simulation

Provides offline commands over a deployment manifest:
- Resolved deployment configuration
- Payout table with the earliest execution time of each stage
- In-memory simulation of the full four-stage schedule
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stagevault.core import safe_math
from stagevault.core.config import LOG_FILE, LOG_LEVEL, VaultConfig
from stagevault.core.constants import STAGE_COUNT
from stagevault.core.contracts.erc20 import create_token
from stagevault.core.defi.distribution import build_stage_table
from stagevault.core.logging_config import LOG_LEVELS, setup_logging
from stagevault.core.treasury_vault import StagedTreasury
from stagevault.core.vault_exceptions import VaultError
from stagevault.core.vault_state import ManualClock

logger = logging.getLogger(__name__)
console = Console()

DEFAULT_START_TIME = 1_700_000_000
SIMULATION_DEPLOYER = "0x" + "d" * 40


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _load_config(manifest: str | None) -> VaultConfig:
    if manifest:
        return VaultConfig.from_json_file(manifest)
    return VaultConfig.from_dict({"network": "testnet"})


@click.group()
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=LOG_LEVEL,
    show_default=True,
    help="Log level for vault logs",
)
@click.option("--log-file", type=click.Path(), default=LOG_FILE or None, help="Write JSON logs to this file")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, log_level: str, log_file: str | None):
    """StageVault staged treasury tooling."""
    setup_logging(name="stagevault", log_file=log_file, level=log_level)
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output


@cli.command("config")
@click.option("--manifest", type=click.Path(exists=True), help="Deployment manifest (JSON)")
@click.pass_context
def show_config(ctx: click.Context, manifest: str | None):
    """
    Print the resolved deployment configuration.

    Example:
        stagevault config --manifest deploy.json
    """
    try:
        config = _load_config(manifest)
    except VaultError as exc:
        _handle_cli_error(exc)
        return

    data = config.to_dict()
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key in ("network", "primary_token", "secondary_token", "router", "wrapped_native", "stable_asset"):
        table.add_row(f"[bold cyan]{key}", str(data[key]))
    for index, beneficiary in enumerate(config.beneficiaries):
        table.add_row(f"[bold cyan]beneficiary {index}", beneficiary)
    for key in (
        "bootstrap_interval",
        "recurring_interval",
        "admin_lockup_duration",
        "ecosystem_lockup_duration",
        "swap_deadline_seconds",
        "swap_min_output",
    ):
        table.add_row(f"[bold cyan]{key}", str(data[key]))

    console.print(Panel(table, title="[bold green]Deployment Configuration", border_style="green"))


@cli.command("schedule")
@click.option("--manifest", type=click.Path(exists=True), help="Deployment manifest (JSON)")
@click.option("--deployed-at", type=int, default=DEFAULT_START_TIME, show_default=True,
              help="Deployment timestamp (unix seconds)")
@click.pass_context
def show_schedule(ctx: click.Context, manifest: str | None, deployed_at: int):
    """
    Print the payout table and the earliest time each stage can execute,
    assuming every stage is triggered as soon as its gate opens.
    """
    try:
        config = _load_config(manifest)
        stages = build_stage_table(config)
    except VaultError as exc:
        _handle_cli_error(exc)
        return

    rows: list[dict[str, Any]] = []
    last_claim = deployed_at
    for stage in stages:
        interval = config.bootstrap_interval if stage.index == 0 else config.recurring_interval
        earliest = safe_math.add(safe_math.add(last_claim, interval), 1)
        rows.append({
            "stage": stage.index,
            "earliest": earliest,
            "payouts": [[payout.beneficiary, payout.amount] for payout in stage.payouts],
            "total_primary": stage.total_primary,
            "sweep_to": stage.sweep_to,
        })
        last_claim = earliest

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(rows, indent=2))
        return

    table = Table(title="Distribution Schedule", box=box.ROUNDED)
    table.add_column("Stage", style="cyan", justify="right")
    table.add_column("Earliest execution", style="white")
    table.add_column("Payouts", style="white")
    table.add_column("Total primary", style="green", justify="right")
    table.add_column("Secondary sweep", style="yellow")
    for row in rows:
        payouts = "\n".join(f"{beneficiary[:12]}…  {amount}" for beneficiary, amount in row["payouts"])
        table.add_row(
            str(row["stage"]),
            _format_time(row["earliest"]),
            payouts or "-",
            str(row["total_primary"]),
            (row["sweep_to"] or "")[:12] or "-",
        )
    console.print(table)


@cli.command("simulate")
@click.option("--manifest", type=click.Path(exists=True), help="Deployment manifest (JSON)")
@click.option("--start", type=int, default=DEFAULT_START_TIME, show_default=True,
              help="Simulated deployment timestamp")
@click.option("--secondary-amount", type=int, default=5_000, show_default=True,
              help="Secondary tokens held by the vault before the final stage")
@click.pass_context
def simulate(ctx: click.Context, manifest: str | None, start: int, secondary_amount: int):
    """
    Deploy an in-memory vault, fund it and walk all stages.

    Each stage is triggered one second after its time gate opens.
    """
    try:
        config = _load_config(manifest)
        stages = build_stage_table(config)
        clock = ManualClock(start)

        primary = create_token(SIMULATION_DEPLOYER, "Primary", "PRI", address=config.primary_token)
        secondary = create_token(SIMULATION_DEPLOYER, "Secondary", "SEC", address=config.secondary_token)
        vault = StagedTreasury(config, SIMULATION_DEPLOYER, primary, secondary, clock=clock)

        primary.mint(SIMULATION_DEPLOYER, vault.address, safe_math.total(s.total_primary for s in stages))
        if secondary_amount:
            secondary.mint(SIMULATION_DEPLOYER, vault.address, secondary_amount)

        results: list[dict[str, Any]] = []
        for _ in range(STAGE_COUNT):
            clock.set(vault.scheduler.next_eligible_time())
            receipt = vault.advance_stage(SIMULATION_DEPLOYER)
            results.append({
                "stage": receipt.stage,
                "executed_at": receipt.executed_at,
                "primary_paid": sum(payout.amount for payout in receipt.payouts),
                "secondary_swept": receipt.secondary_swept,
            })
    except VaultError as exc:
        _handle_cli_error(exc)
        return

    balances = {
        beneficiary: {
            "primary": primary.balance_of(beneficiary),
            "secondary": secondary.balance_of(beneficiary),
        }
        for beneficiary in config.beneficiaries
    }
    summary = {"stages": results, "status": vault.status(), "beneficiaries": balances}

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(summary, indent=2))
        return

    table = Table(title="Simulated Stages", box=box.ROUNDED)
    table.add_column("Stage", style="cyan", justify="right")
    table.add_column("Executed at", style="white")
    table.add_column("Primary paid", style="green", justify="right")
    table.add_column("Secondary swept", style="yellow", justify="right")
    for row in results:
        table.add_row(
            str(row["stage"]),
            _format_time(row["executed_at"]),
            str(row["primary_paid"]),
            str(row["secondary_swept"]),
        )
    console.print(table)

    balance_table = Table(title="Beneficiary Balances", box=box.SIMPLE)
    balance_table.add_column("Beneficiary", style="cyan")
    balance_table.add_column("Primary", justify="right")
    balance_table.add_column("Secondary", justify="right")
    for beneficiary, held in balances.items():
        balance_table.add_row(beneficiary, str(held["primary"]), str(held["secondary"]))
    console.print(balance_table)
    console.print(f"[bold green]Vault terminal:[/] {vault.scheduler.is_terminal}")
