"""
StageVault contract collaborators and execution environment.

This module provides:
- ERC20: Standard and legacy fungible token collaborators
- NativeLedger: Native asset balances of the execution environment
- StateJournal: Atomic snapshot/restore of vault operations
"""

from .erc20 import ZERO_ADDRESS, ERC20Token, LegacyERC20Token, TokenEvent, create_token
from .native_ledger import NativeLedger
from .state_journal import StateJournal, non_reentrant

__all__ = [
    # Token Standards
    "ZERO_ADDRESS",
    "ERC20Token",
    "LegacyERC20Token",
    "TokenEvent",
    "create_token",
    # Native Asset
    "NativeLedger",
    # Execution Environment
    "StateJournal",
    "non_reentrant",
]
