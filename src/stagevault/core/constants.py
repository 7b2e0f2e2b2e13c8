"""
StageVault Constants

This module contains the fixed numbers of the distribution schedule,
organized by category.

NOTE: The stage count and the final-stage sweep position are part of the
vault's contract with its beneficiaries. Changing them changes who gets
paid and when.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_MINUTE: Final[int] = 60
SECONDS_PER_DAY: Final[int] = 86400  # 60 * 60 * 24
SECONDS_PER_WEEK: Final[int] = 604800  # 60 * 60 * 24 * 7
SECONDS_5_MINUTES: Final[int] = 300

# =============================================================================
# ADDRESSES
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# DISTRIBUTION SCHEDULE
# =============================================================================

STAGE_COUNT: Final[int] = 4
FINAL_STAGE: Final[int] = STAGE_COUNT - 1
BENEFICIARY_COUNT: Final[int] = 4
# Index into the beneficiary list that receives the final-stage secondary sweep
SWEEP_BENEFICIARY_INDEX: Final[int] = 3

# Minimum time since deployment before the first stage may execute
DEFAULT_BOOTSTRAP_INTERVAL: Final[int] = SECONDS_PER_MINUTE
# Minimum time between consecutive stages after the first
DEFAULT_RECURRING_INTERVAL: Final[int] = SECONDS_PER_WEEK

# Primary-token payouts per stage, in base units, to beneficiaries 0..2
DEFAULT_STAGE_AMOUNTS: Final[tuple] = (
    (50_000, 30_000, 20_000),
    (50_000, 30_000, 20_000),
    (50_000, 30_000, 20_000),
    (50_000, 30_000, 20_000),
)

# =============================================================================
# LOCKUPS
# =============================================================================

# Tracked tokens cannot be recovered by the controller before this elapses
DEFAULT_ADMIN_LOCKUP: Final[int] = 180 * SECONDS_PER_DAY
# Declared for ecosystem claims; no rule enforces it
DEFAULT_ECOSYSTEM_LOCKUP: Final[int] = 365 * SECONDS_PER_DAY

# =============================================================================
# SWAPS
# =============================================================================

DEFAULT_SWAP_DEADLINE: Final[int] = SECONDS_5_MINUTES
DEFAULT_SWAP_MIN_OUTPUT: Final[int] = 0
