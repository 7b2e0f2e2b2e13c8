"""
Single-controller access control for the vault.

One controller address holds exclusive rights to control transfer,
asset recovery and swaps. The controller is replaced only through
``transfer_control``, which rejects the null address.

Address comparison is case-insensitive; addresses are stored lowercase.
"""

from __future__ import annotations

import logging

from ..config import is_null_address
from ..vault_exceptions import InvalidAddress, Unauthorized
from ..vault_state import VaultContext

logger = logging.getLogger(__name__)


class Ownable:
    """
    Controller registry.

    Usage:
        access = Ownable(context, controller=deployer)
        access.require_controller(caller, "recover_token")
    """

    def __init__(self, context: VaultContext, controller: str) -> None:
        if is_null_address(controller):
            raise InvalidAddress("Ownable: initial controller is the zero address")
        self.context = context
        self._controller = controller.lower()

    @property
    def controller(self) -> str:
        return self._controller

    def is_controller(self, address: str) -> bool:
        return bool(address) and address.lower() == self._controller

    def require_controller(self, caller: str, operation: str) -> None:
        """
        Raise Unauthorized unless ``caller`` is the controller.

        Args:
            caller: Address invoking the operation (msg.sender)
            operation: Operation name used in logs and error details
        """
        if self.is_controller(caller):
            return
        logger.warning(
            "Access denied: caller is not the controller",
            extra={
                "event": "access_control.unauthorized",
                "operation": operation,
                "caller": (caller or "")[:10],
                "controller": self._controller[:10],
            },
        )
        raise Unauthorized(
            f"{operation}: caller is not the controller",
            details={"operation": operation, "caller": caller},
        )

    def transfer_control(self, caller: str, new_controller: str) -> str:
        """
        Hand the controller role to ``new_controller``.

        Returns:
            The previous controller address

        Raises:
            Unauthorized: If caller is not the current controller
            InvalidAddress: If new_controller is the null address
        """
        self.require_controller(caller, "transfer_control")
        if is_null_address(new_controller):
            raise InvalidAddress(
                "transfer_control: new controller is the zero address",
                details={"new_controller": new_controller},
            )

        previous = self._controller
        self._controller = new_controller.lower()
        self.context.emit(
            "ControlTransferred", previous_controller=previous, new_controller=self._controller
        )

        logger.info(
            "Controller transferred",
            extra={
                "event": "access_control.control_transferred",
                "previous": previous[:10],
                "new": self._controller[:10],
            },
        )
        return previous

    def snapshot(self) -> dict:
        return {"controller": self._controller}

    def restore(self, snapshot: dict) -> None:
        self._controller = snapshot["controller"]
