"""Taxpayer identifier (RFC)."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from layoutguard.identifiers.base import RESERVED_PREFIXES, ChecksumIdentifier, parse_compact_date

if TYPE_CHECKING:
    from datetime import date

_INDIVIDUAL_PATTERN = re.compile(r"^[A-ZÑ&]{4}\d{6}[A-Z0-9]{3}$")
_LEGAL_ENTITY_PATTERN = re.compile(r"^[A-ZÑ&]{3}\d{6}[A-Z0-9]{3}$")
_ALPHABET = "0123456789ABCDEFGHIJKLMN&OPQRSTUVWXYZ Ñ"
_INDIVIDUAL_LENGTH = 13

GENERIC_RFCS = frozenset({"XAXX010101000", "XEXX010101000", "XOXX010101000"})


class RfcKind(StrEnum):
    """Taxpayer categories."""

    INDIVIDUAL = "individual"
    LEGAL_ENTITY = "legal_entity"
    GENERIC = "generic"


class Rfc(ChecksumIdentifier):
    """Taxpayer key, 13 characters for individuals and 12 for legal entities.

    The generic keys used for the general public, foreigners and other cases are
    always accepted.
    """

    label: ClassVar[str] = "RFC"
    lengths: ClassVar[tuple[int, ...]] = (12, 13)

    @classmethod
    def compute_check_digit(cls, prefix: str) -> str:
        """Compute the RFC verification digit.

        Legal entity prefixes are left-padded with a space so every prefix has
        12 positions weighted 13 down to 2.

        Args:
            prefix: Key without its verification digit (11 or 12 characters).

        Returns:
            str: Expected verification digit ("0"-"9" or "A").
        """
        padded = prefix.rjust(12)
        total = 0
        for index, char in enumerate(padded[:12]):
            position = _ALPHABET.find(char)
            if position < 0:
                return ""
            total += position * (13 - index)
        remainder = total % 11
        if remainder == 0:
            return "0"
        digit = 11 - remainder
        return "A" if digit == 10 else str(digit)  # noqa: PLR2004

    @classmethod
    def _format_ok(cls, value: str) -> bool:
        if value in GENERIC_RFCS:
            return True
        if len(value) == _INDIVIDUAL_LENGTH:
            return bool(_INDIVIDUAL_PATTERN.match(value)) and value[:4] not in RESERVED_PREFIXES
        return bool(_LEGAL_ENTITY_PATTERN.match(value))

    @classmethod
    def _components_ok(cls, value: str, as_of: date) -> bool:
        if value in GENERIC_RFCS:
            return True
        registered = parse_compact_date(cls._date_part(value))
        return registered is not None and registered <= as_of

    @classmethod
    def _check_digit_ok(cls, value: str) -> bool:
        if value in GENERIC_RFCS:
            return True
        return super()._check_digit_ok(value)

    @staticmethod
    def _date_part(value: str) -> str:
        offset = 4 if len(value) == _INDIVIDUAL_LENGTH else 3
        return value[offset : offset + 6]

    @property
    def kind(self) -> RfcKind:
        """Return the taxpayer category."""
        if self.value in GENERIC_RFCS:
            return RfcKind.GENERIC
        if len(self.value) == _INDIVIDUAL_LENGTH:
            return RfcKind.INDIVIDUAL
        return RfcKind.LEGAL_ENTITY

    @property
    def registration_date(self) -> date | None:
        """Return the birth (individual) or incorporation (legal entity) date."""
        return parse_compact_date(self._date_part(self.value))

    @property
    def homoclave(self) -> str:
        """Return the three trailing characters assigned by the tax authority."""
        return self.value[-3:]
