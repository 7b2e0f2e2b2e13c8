"""
Treasury-specific exception hierarchy for StageVault.

Provides typed exceptions for vault operations so callers can tell a
schedule that is simply not ready yet apart from an authorization or
collaborator failure. Every exception aborts the enclosing vault
operation and rolls back all of its state changes.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VaultError(Exception):
    """Base exception for all vault-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller can retry the operation later
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    @property
    def reason(self) -> str:
        """Labeled failure reason surfaced to the calling agent."""
        return type(self).__name__


# ==================== Arithmetic Errors ====================


class ArithmeticOverflow(VaultError):
    """Raised when a result would exceed the maximum uint256 value."""
    pass


class ArithmeticUnderflow(VaultError):
    """Raised when a subtraction would go below zero."""
    pass


class DivideByZero(VaultError):
    """Raised when dividing or taking a remainder by zero."""
    pass


# ==================== Access Errors ====================


class Unauthorized(VaultError):
    """Raised when a controller-only operation is invoked by another caller."""
    pass


class InvalidAddress(VaultError):
    """Raised when the null address is supplied where a real address is required."""
    pass


class ReentrantCall(VaultError):
    """Raised when a guarded vault operation is re-entered from a collaborator call."""
    pass


# ==================== Schedule Errors ====================


class StageExhausted(VaultError):
    """Raised when every distribution stage has already executed."""
    pass


class InsufficientInterval(VaultError):
    """Raised when the time gate for the next stage has not opened yet.

    Recoverable: the caller can wait until ``details["eligible_at"]``.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details, recoverable)


# ==================== Transfer / Lockup Errors ====================


class TransferFailed(VaultError):
    """Raised when a token collaborator explicitly reports a failed transfer or approval."""
    pass


class LockupNotExpired(VaultError):
    """Raised when recovering a tracked token before the admin lockup ends."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details, recoverable)


# ==================== Collaborator / Setup Errors ====================


class VMExecutionError(VaultError):
    """Raised by bundled token and ledger collaborators when a call reverts.

    Examples: transfer amount exceeds balance, insufficient allowance.
    """
    pass


class InvalidConfiguration(VaultError):
    """Raised when a stage table or deployment configuration is malformed."""
    pass


__all__ = [
    "VaultError",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "DivideByZero",
    "Unauthorized",
    "InvalidAddress",
    "ReentrantCall",
    "StageExhausted",
    "InsufficientInterval",
    "TransferFailed",
    "LockupNotExpired",
    "VMExecutionError",
    "InvalidConfiguration",
]
