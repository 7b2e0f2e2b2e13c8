"""
Unit tests for the single-controller registry and the vault's
transfer_control operation.
"""

import pytest
from vault_fixtures import DEPLOYER, OUTSIDER, build_config

from stagevault.core.constants import ZERO_ADDRESS
from stagevault.core.defi.access_control import Ownable
from stagevault.core.vault_exceptions import InvalidAddress, Unauthorized
from stagevault.core.vault_state import ScheduleState, VaultContext


def _context():
    return VaultContext(
        address="0x" + "5" * 40,
        config=build_config(),
        state=ScheduleState(deployment_time=100, last_claim_time=100),
        clock=lambda: 100,
    )


def test_initial_controller_is_stored_lowercase():
    access = Ownable(_context(), controller="0x" + "AB" * 20)
    assert access.controller == "0x" + "ab" * 20
    assert access.is_controller("0x" + "Ab" * 20)


@pytest.mark.parametrize("controller", [ZERO_ADDRESS, ""])
def test_null_initial_controller_rejected(controller):
    with pytest.raises(InvalidAddress):
        Ownable(_context(), controller=controller)


def test_require_controller_rejects_others():
    access = Ownable(_context(), controller=DEPLOYER)
    access.require_controller(DEPLOYER, "recover_token")
    with pytest.raises(Unauthorized) as exc_info:
        access.require_controller(OUTSIDER, "recover_token")
    assert exc_info.value.details["operation"] == "recover_token"
    assert not access.is_controller("")


def test_transfer_control_emits_event_and_returns_previous():
    context = _context()
    access = Ownable(context, controller=DEPLOYER)
    previous = access.transfer_control(DEPLOYER, OUTSIDER)
    assert previous == DEPLOYER
    assert access.controller == OUTSIDER
    event = context.events[-1]
    assert event.event_type == "ControlTransferred"
    assert event.data == {"previous_controller": DEPLOYER, "new_controller": OUTSIDER}


def test_snapshot_restore_round_trip():
    access = Ownable(_context(), controller=DEPLOYER)
    snapshot = access.snapshot()
    access.transfer_control(DEPLOYER, OUTSIDER)
    access.restore(snapshot)
    assert access.controller == DEPLOYER


class TestVaultTransferControl:
    def test_controller_hands_over(self, vault):
        assert vault.transfer_control(DEPLOYER, OUTSIDER) == DEPLOYER
        assert vault.controller == OUTSIDER
        # Old controller lost every right
        with pytest.raises(Unauthorized):
            vault.transfer_control(DEPLOYER, DEPLOYER)

    def test_non_controller_rejected_without_change(self, vault):
        events_before = len(vault.events)
        with pytest.raises(Unauthorized):
            vault.transfer_control(OUTSIDER, OUTSIDER)
        assert vault.controller == DEPLOYER
        assert len(vault.events) == events_before

    def test_null_new_controller_rejected(self, vault):
        with pytest.raises(InvalidAddress):
            vault.transfer_control(DEPLOYER, ZERO_ADDRESS)
        assert vault.controller == DEPLOYER

    def test_transfer_to_self_is_allowed(self, vault):
        assert vault.transfer_control(DEPLOYER, DEPLOYER) == DEPLOYER
        assert vault.controller == DEPLOYER
