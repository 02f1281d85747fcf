"""Typed conversion of extracted field text."""

from __future__ import annotations

import re
from datetime import date
from typing import TYPE_CHECKING, Any

from layoutguard.identifiers.money import Money
from layoutguard.typing.enums import Currency, FieldType
from layoutguard.typing.models import UnparsedValue

if TYPE_CHECKING:
    from layoutguard.typing.models import FieldDefinition

MIN_YEAR = 1900
MAX_YEAR = 2100

_DIGITS = re.compile(r"^[0-9]+$")
_TRUE_MARKERS = frozenset({"S", "Y", "1", "T"})
_FALSE_MARKERS = frozenset({"N", "0", "F"})


def parse_fixed_date(text: str) -> date | None:
    """Parse an 8-digit YYYYMMDD date.

    Args:
        text: Date digits.

    Returns:
        date | None: Date when the digits form a real date between 1900 and 2100.
    """
    if len(text) != 8 or not _DIGITS.match(text):  # noqa: PLR2004
        return None
    year, month, day = int(text[0:4]), int(text[4:6]), int(text[6:8])
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_text(raw: str, definition: FieldDefinition) -> str:
    """Apply trimming and padding rules to a raw slice.

    Args:
        raw: Slice taken from the line.
        definition: Field definition.

    Returns:
        str: Extracted text.
    """
    if not definition.trim:
        return raw
    text = raw.strip()
    if definition.pad is not None and not definition.pad.isspace() and definition.type == FieldType.TEXT:
        text = text.rstrip(definition.pad)
    return text


def convert_value(definition: FieldDefinition, text: str, *, currency: Currency = Currency.MXN) -> Any:  # noqa: ANN401
    """Convert extracted text to the field's declared type.

    Blank text converts to None. Content that does not fit the type converts to
    `UnparsedValue` so rules can tell it apart from a valid zero.

    Args:
        definition: Field definition.
        text: Extracted text.
        currency: Currency of the file for currency fields.

    Returns:
        Any: str, int, Money, date, bool, None or UnparsedValue.
    """
    stripped = text.strip()
    if not stripped:
        return None

    field_type = definition.type
    if field_type == FieldType.TEXT:
        return text
    if field_type == FieldType.INTEGER:
        return int(stripped) if _DIGITS.match(stripped) else UnparsedValue(raw=text)
    if field_type == FieldType.CURRENCY:
        if not _DIGITS.match(stripped):
            return UnparsedValue(raw=text)
        return Money.decode(stripped, currency)
    if field_type == FieldType.DATE:
        if set(stripped) == {"0"}:
            return None
        parsed = parse_fixed_date(stripped)
        return parsed if parsed is not None else UnparsedValue(raw=text)
    if field_type == FieldType.BOOLEAN:
        marker = stripped.upper()
        if marker in _TRUE_MARKERS:
            return True
        if marker in _FALSE_MARKERS:
            return False
        return UnparsedValue(raw=text)
    return text
