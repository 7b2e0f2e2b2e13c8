"""
StageVault - Staged Treasury Distribution

A contract-style treasury that holds two fungible-token balances and
releases them to a fixed set of beneficiaries across four time-gated
stages.

Main Components:
- Distribution: Stage counter, time gate and payout table
- Access Control: Single transferable controller
- Sweep Guard: Lockup-gated asset recovery
- Swap Executor: Controller swaps through an external router
"""

__version__ = "0.1.0"
__author__ = "StageVault Development Team"

__all__ = []
