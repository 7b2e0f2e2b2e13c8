"""
Treasury instrumentation for StageVault.

Provides Prometheus metrics that track stage executions, payouts,
recoveries and swaps, with helper functions that are safe to call from
the execution path. Helpers are called only after an operation commits,
so a rolled-back operation never moves a counter except the rejection
counter.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

stages_advanced_counter = Counter(
    "stagevault_stages_advanced_total", "Distribution stages executed", ["stage"]
)

primary_paid_counter = Counter(
    "stagevault_primary_paid_total",
    "Primary-token base units paid to beneficiaries",
    ["beneficiary"],
)

secondary_swept_counter = Counter(
    "stagevault_secondary_swept_total", "Secondary-token base units swept in the final stage"
)

recoveries_counter = Counter(
    "stagevault_recoveries_total", "Controller asset recoveries", ["kind"]
)

swaps_counter = Counter("stagevault_swaps_total", "Controller swaps executed", ["route"])

rejections_counter = Counter(
    "stagevault_rejected_operations_total",
    "Vault operations aborted and rolled back",
    ["operation", "reason"],
)

current_stage_gauge = Gauge(
    "stagevault_current_stage", "Number of stages executed so far", ["vault"]
)


def record_stage(vault_address: str, stage: int, payouts, swept: int) -> None:
    """Record a committed stage execution."""
    stages_advanced_counter.labels(stage=str(stage)).inc()
    for beneficiary, amount in payouts:
        if amount > 0:
            primary_paid_counter.labels(beneficiary=beneficiary[:10]).inc(amount)
    if swept > 0:
        secondary_swept_counter.inc(swept)
    current_stage_gauge.labels(vault=vault_address[:10]).set(stage + 1)


def record_recovery(kind: str) -> None:
    recoveries_counter.labels(kind=kind).inc()


def record_swap(route: str) -> None:
    swaps_counter.labels(route=route).inc()


def record_rejection(operation: str, reason: str) -> None:
    rejections_counter.labels(operation=operation, reason=reason).inc()
