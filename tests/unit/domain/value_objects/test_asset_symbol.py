"""
Tests for AssetSymbol value object.
"""
import pytest

from futures_ledger.domain.exceptions import InvalidInputError
from futures_ledger.domain.value_objects.asset_symbol import AssetSymbol, MAX_SYMBOL_LENGTH


class TestAssetSymbol:

    def test_parse(self):
        symbol = AssetSymbol.parse("PET")
        assert symbol.value == "PET"
        assert str(symbol) == "PET"

    def test_max_length_accepted(self):
        raw = "X" * MAX_SYMBOL_LENGTH
        assert AssetSymbol.parse(raw).value == raw

    def test_too_long_rejected(self):
        with pytest.raises(InvalidInputError):
            AssetSymbol.parse("X" * (MAX_SYMBOL_LENGTH + 1))

    def test_custom_max_length(self):
        with pytest.raises(InvalidInputError):
            AssetSymbol.parse("ABCD", max_length=3)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidInputError):
            AssetSymbol(42)

    def test_equality(self):
        assert AssetSymbol("PET") == AssetSymbol.parse("PET")
