"""
Tests for AccessControl domain service.
"""
import pytest

from futures_ledger.domain.exceptions import ErrorCode, UnauthorizedError
from futures_ledger.domain.services.access_control import AccessControl


class TestAccessControl:

    @pytest.fixture
    def access(self):
        return AccessControl(owner="ledger-owner")

    def test_empty_owner_rejected(self):
        with pytest.raises(ValueError):
            AccessControl(owner="")

    def test_owner_passes(self, access):
        assert access.is_owner("ledger-owner") is True
        access.ensure_owner("ledger-owner")

    def test_non_owner_rejected(self, access):
        with pytest.raises(UnauthorizedError) as exc:
            access.ensure_owner("mallory")
        assert exc.value.error_code == ErrorCode.UNAUTHORIZED

    def test_oracle_passes(self, access):
        access.ensure_oracle("price-oracle", "price-oracle")

    def test_oracle_unset_rejects_everyone(self, access):
        with pytest.raises(UnauthorizedError):
            access.ensure_oracle("ledger-owner", None)

    def test_non_oracle_rejected(self, access):
        with pytest.raises(UnauthorizedError):
            access.ensure_oracle("ledger-owner", "price-oracle")
