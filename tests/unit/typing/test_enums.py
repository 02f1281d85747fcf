from __future__ import annotations

import pytest

from layoutguard.typing.enums import ConditionOperator, Currency, FileType, TrailingPolicy


def test_file_type_from_str_is_case_insensitive() -> None:
    assert FileType.from_str(" NOMINA ") == FileType.NOMINA


def test_trailing_policy_from_str_raises_on_invalid_value() -> None:
    with pytest.raises(ValueError, match="Expected one of: ignore, blank_only, reject"):
        TrailingPolicy.from_str("truncate")


def test_operator_to_str_returns_wire_value() -> None:
    assert ConditionOperator.IS_INVALID.to_str() == "is_invalid"


def test_currency_values_are_iso_codes() -> None:
    assert [currency.value for currency in Currency] == ["MXN", "USD", "EUR", "UDI"]
