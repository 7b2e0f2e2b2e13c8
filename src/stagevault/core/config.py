"""
StageVault Configuration

Deployment-time configuration for a staged treasury. Every value is
immutable once the vault is deployed.

Sources, in order of precedence:
- A JSON deployment manifest (addresses, stage table, optional overrides)
- STAGEVAULT_* environment variables (timing and swap defaults)
- Built-in defaults from ``constants``

SECURITY NOTICE:
- On mainnet every address must be supplied explicitly
- On testnet missing addresses are generated with a warning
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import secrets as secrets_module
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Tuple

from .constants import (
    BENEFICIARY_COUNT,
    DEFAULT_ADMIN_LOCKUP,
    DEFAULT_BOOTSTRAP_INTERVAL,
    DEFAULT_ECOSYSTEM_LOCKUP,
    DEFAULT_RECURRING_INTERVAL,
    DEFAULT_STAGE_AMOUNTS,
    DEFAULT_SWAP_DEADLINE,
    DEFAULT_SWAP_MIN_OUTPUT,
    STAGE_COUNT,
    ZERO_ADDRESS,
)
from .vault_exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(InvalidConfiguration):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{env_var} must not be negative")
    return value


# Get network type from environment variable
NETWORK = os.getenv("STAGEVAULT_NETWORK", "testnet")  # Default to testnet for safety

BOOTSTRAP_INTERVAL = _get_int("STAGEVAULT_BOOTSTRAP_INTERVAL", DEFAULT_BOOTSTRAP_INTERVAL)
RECURRING_INTERVAL = _get_int("STAGEVAULT_RECURRING_INTERVAL", DEFAULT_RECURRING_INTERVAL)
ADMIN_LOCKUP = _get_int("STAGEVAULT_ADMIN_LOCKUP", DEFAULT_ADMIN_LOCKUP)
ECOSYSTEM_LOCKUP = _get_int("STAGEVAULT_ECOSYSTEM_LOCKUP", DEFAULT_ECOSYSTEM_LOCKUP)
SWAP_DEADLINE = _get_int("STAGEVAULT_SWAP_DEADLINE", DEFAULT_SWAP_DEADLINE)
SWAP_MIN_OUTPUT = _get_int("STAGEVAULT_SWAP_MIN_OUTPUT", DEFAULT_SWAP_MIN_OUTPUT)
LOG_LEVEL = os.getenv("STAGEVAULT_LOG_LEVEL", "WARNING").upper()
LOG_FILE = os.getenv("STAGEVAULT_LOG_FILE", "").strip()


def _require_int(key: str, value: Any) -> int:
    """Reject bools, floats and strings instead of coercing them."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    return value


def is_null_address(address: str) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


def _resolve_address(data: Dict[str, Any], key: str, network: str) -> str:
    """Read an address from the manifest, generating one on testnet if absent."""
    value = str(data.get(key) or "").strip()
    if value:
        if is_null_address(value):
            raise ConfigurationError(f"{key} cannot be the zero address")
        return value.lower()

    if network.lower() == NetworkType.MAINNET.value:
        raise ConfigurationError(
            f"CRITICAL: {key} is required in the deployment manifest for mainnet."
        )

    generated = "0x" + hashlib.sha3_256(secrets_module.token_bytes(32)).digest()[-20:].hex()
    logger.warning(
        "Config: %s not set, using generated address for testnet.",
        key,
        extra={"event": "config.address_generated", "key": key},
    )
    return generated


@dataclass(frozen=True)
class VaultConfig:
    """
    Immutable deployment configuration.

    ``stage_payouts`` holds one entry per stage: an ordered tuple of
    ``(beneficiary, amount)`` primary-token payouts. The final stage
    additionally sweeps the secondary token to ``beneficiaries[3]``.
    """

    primary_token: str
    secondary_token: str
    beneficiaries: Tuple[str, ...]
    router: str
    wrapped_native: str
    stable_asset: str
    stage_payouts: Tuple[Tuple[Tuple[str, int], ...], ...] = ()
    bootstrap_interval: int = field(default_factory=lambda: BOOTSTRAP_INTERVAL)
    recurring_interval: int = field(default_factory=lambda: RECURRING_INTERVAL)
    admin_lockup_duration: int = field(default_factory=lambda: ADMIN_LOCKUP)
    ecosystem_lockup_duration: int = field(default_factory=lambda: ECOSYSTEM_LOCKUP)
    swap_deadline_seconds: int = field(default_factory=lambda: SWAP_DEADLINE)
    swap_min_output: int = field(default_factory=lambda: SWAP_MIN_OUTPUT)
    network: str = field(default_factory=lambda: NETWORK)

    def __post_init__(self) -> None:
        for key in ("primary_token", "secondary_token", "router", "wrapped_native", "stable_asset"):
            value = getattr(self, key)
            if is_null_address(value):
                raise ConfigurationError(f"{key} cannot be the zero address")
            object.__setattr__(self, key, value.lower())

        if self.primary_token == self.secondary_token:
            raise ConfigurationError("primary_token and secondary_token must differ")

        beneficiaries = tuple(address.lower() for address in self.beneficiaries)
        if len(beneficiaries) != BENEFICIARY_COUNT:
            raise ConfigurationError(
                f"expected {BENEFICIARY_COUNT} beneficiaries, got {len(beneficiaries)}"
            )
        if any(is_null_address(address) for address in beneficiaries):
            raise ConfigurationError("beneficiaries cannot include the zero address")
        object.__setattr__(self, "beneficiaries", beneficiaries)

        payouts = self.stage_payouts or default_stage_payouts(beneficiaries)
        payouts = tuple(
            tuple(
                (beneficiary.lower(), _require_int(f"stage {index} amount", amount))
                for beneficiary, amount in stage
            )
            for index, stage in enumerate(payouts)
        )
        if len(payouts) != STAGE_COUNT:
            raise ConfigurationError(f"expected {STAGE_COUNT} stages, got {len(payouts)}")
        object.__setattr__(self, "stage_payouts", payouts)

        for key in (
            "bootstrap_interval",
            "recurring_interval",
            "admin_lockup_duration",
            "ecosystem_lockup_duration",
            "swap_deadline_seconds",
            "swap_min_output",
        ):
            if _require_int(key, getattr(self, key)) < 0:
                raise ConfigurationError(f"{key} must not be negative")

    @property
    def tracked_tokens(self) -> Tuple[str, str]:
        return (self.primary_token, self.secondary_token)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultConfig":
        """
        Build a config from a deployment manifest dictionary.

        Stage entries may be lists of ``{"beneficiary": ..., "amount": ...}``
        objects or ``[beneficiary, amount]`` pairs.
        """
        network = str(data.get("network", NETWORK))
        raw_beneficiaries = list(data.get("beneficiaries") or [])
        if network.lower() == NetworkType.MAINNET.value and len(raw_beneficiaries) != BENEFICIARY_COUNT:
            raise ConfigurationError(
                f"CRITICAL: mainnet manifest must list {BENEFICIARY_COUNT} beneficiaries."
            )
        while len(raw_beneficiaries) < BENEFICIARY_COUNT:
            raw_beneficiaries.append(
                _resolve_address({}, f"beneficiaries[{len(raw_beneficiaries)}]", network)
            )

        stages = []
        for stage in data.get("stages") or []:
            entries = []
            for entry in stage:
                if isinstance(entry, dict):
                    entries.append((entry["beneficiary"], entry["amount"]))
                else:
                    beneficiary, amount = entry
                    entries.append((beneficiary, amount))
            stages.append(tuple(entries))

        overrides = {
            key: data[key]
            for key in (
                "bootstrap_interval",
                "recurring_interval",
                "admin_lockup_duration",
                "ecosystem_lockup_duration",
                "swap_deadline_seconds",
                "swap_min_output",
            )
            if key in data
        }

        return cls(
            primary_token=_resolve_address(data, "primary_token", network),
            secondary_token=_resolve_address(data, "secondary_token", network),
            beneficiaries=tuple(raw_beneficiaries),
            router=_resolve_address(data, "router", network),
            wrapped_native=_resolve_address(data, "wrapped_native", network),
            stable_asset=_resolve_address(data, "stable_asset", network),
            stage_payouts=tuple(stages),
            network=network,
            **overrides,
        )

    @classmethod
    def from_json_file(cls, path: str | os.PathLike) -> "VaultConfig":
        """Load a deployment manifest from a JSON file."""
        manifest_path = Path(path)
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"manifest not found: {manifest_path}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"manifest is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError("manifest must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "primary_token": self.primary_token,
            "secondary_token": self.secondary_token,
            "beneficiaries": list(self.beneficiaries),
            "router": self.router,
            "wrapped_native": self.wrapped_native,
            "stable_asset": self.stable_asset,
            "stages": [
                [{"beneficiary": beneficiary, "amount": amount} for beneficiary, amount in stage]
                for stage in self.stage_payouts
            ],
            "bootstrap_interval": self.bootstrap_interval,
            "recurring_interval": self.recurring_interval,
            "admin_lockup_duration": self.admin_lockup_duration,
            "ecosystem_lockup_duration": self.ecosystem_lockup_duration,
            "swap_deadline_seconds": self.swap_deadline_seconds,
            "swap_min_output": self.swap_min_output,
        }


def default_stage_payouts(beneficiaries: Tuple[str, ...]) -> Tuple[Tuple[Tuple[str, int], ...], ...]:
    """Pair DEFAULT_STAGE_AMOUNTS with the first three beneficiaries."""
    return tuple(
        tuple(zip(beneficiaries[: len(amounts)], amounts)) for amounts in DEFAULT_STAGE_AMOUNTS
    )
