"""
StageVault treasury components.

This module provides:
- Access Control: Single transferable controller
- Distribution: Four-stage, time-gated payout schedule
- Sweep Guard: Lockup-gated asset recovery
- Swap Executor: Two-leg swaps through an external router
"""

from .access_control import Ownable
from .distribution import (
    DistributionScheduler,
    Payout,
    PayoutStage,
    StageReceipt,
    build_stage_table,
)
from .swap_executor import SwapExecutor, SwapReceipt
from .sweep_guard import SweepGuard

__all__ = [
    # Access Control
    "Ownable",
    # Distribution
    "DistributionScheduler",
    "Payout",
    "PayoutStage",
    "StageReceipt",
    "build_stage_table",
    # Recovery
    "SweepGuard",
    # Swaps
    "SwapExecutor",
    "SwapReceipt",
]
