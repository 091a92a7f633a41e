"""
Tests for FuturesContract entity.
"""
import pytest
from dataclasses import FrozenInstanceError

from futures_ledger.domain.entities.futures_contract import FuturesContract


class TestFuturesContract:
    """FuturesContract registration and state transitions."""

    def test_register_sets_expiry_height(self):
        contract = FuturesContract.register(
            contract_id=1, symbol="PET", current_height=100, expiry_in_blocks=1000
        )

        assert contract.id == 1
        assert contract.symbol == "PET"
        assert contract.expiry_height == 1100
        assert contract.active is True

    def test_is_frozen(self):
        contract = FuturesContract(id=1, symbol="PET", expiry_height=10)
        with pytest.raises(FrozenInstanceError):
            contract.active = False

    def test_deactivate_returns_inactive_copy(self):
        contract = FuturesContract(id=1, symbol="PET", expiry_height=10)

        inactive = contract.deactivate()

        assert inactive.active is False
        assert contract.active is True
        assert inactive.id == contract.id
        assert inactive.expiry_height == contract.expiry_height

    def test_deactivate_is_idempotent(self):
        contract = FuturesContract(id=1, symbol="PET", expiry_height=10, active=False)
        assert contract.deactivate() == contract

    @pytest.mark.parametrize("height,expected", [(0, False), (9, False), (10, True), (11, True)])
    def test_is_expired(self, height, expected):
        contract = FuturesContract(id=1, symbol="PET", expiry_height=10)
        assert contract.is_expired(height) is expected

    def test_tradable_only_when_active_and_unexpired(self):
        contract = FuturesContract(id=1, symbol="PET", expiry_height=10)

        assert contract.is_tradable(9) is True
        assert contract.is_tradable(10) is False
        assert contract.deactivate().is_tradable(9) is False
