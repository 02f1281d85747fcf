"""Population registry identifier (CURP)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, ClassVar

from layoutguard.identifiers.base import RESERVED_PREFIXES, ChecksumIdentifier, parse_compact_date

if TYPE_CHECKING:
    from datetime import date

_PATTERN = re.compile(r"^[A-Z][AEIOUX][A-Z]{2}\d{6}[HMX][A-Z]{2}[B-DF-HJ-NP-TV-Z]{3}[A-Z0-9]\d$")
_ALPHABET = "0123456789ABCDEFGHIJKLMNÑOPQRSTUVWXYZ"

STATE_CODES = frozenset(
    {
        "AS", "BC", "BS", "CC", "CL", "CM", "CS", "CH", "DF", "DG", "GT",
        "GR", "HG", "JC", "MC", "MN", "MS", "NT", "NL", "OC", "PL", "QT",
        "QR", "SP", "SL", "SR", "TC", "TS", "TL", "VZ", "YN", "ZS", "NE",
    },
)  # fmt: skip


class Curp(ChecksumIdentifier):
    """18-character population registry key.

    Layout: surname/name initials (4), birth date YYMMDD (6), sex (1), state (2),
    internal consonants (3), homoclave (1), verification digit (1).
    """

    label: ClassVar[str] = "CURP"
    lengths: ClassVar[tuple[int, ...]] = (18,)

    @classmethod
    def compute_check_digit(cls, prefix: str) -> str:
        """Compute the CURP verification digit.

        Each of the 17 leading characters is weighted by 18 minus its position.

        Args:
            prefix: First 17 characters.

        Returns:
            str: Expected verification digit.
        """
        total = 0
        for index, char in enumerate(prefix[:17]):
            position = _ALPHABET.find(char)
            if position < 0:
                return ""
            total += position * (18 - index)
        return str((10 - total % 10) % 10)

    @classmethod
    def _format_ok(cls, value: str) -> bool:
        return bool(_PATTERN.match(value)) and value[:4] not in RESERVED_PREFIXES

    @classmethod
    def _components_ok(cls, value: str, as_of: date) -> bool:
        if value[11:13] not in STATE_CODES:
            return False
        born = parse_compact_date(value[4:10])
        return born is not None and born <= as_of

    @property
    def birth_date(self) -> date | None:
        """Return the embedded birth date."""
        return parse_compact_date(self.value[4:10])

    @property
    def sex(self) -> str:
        """Return the sex marker (H, M or X)."""
        return self.value[10]

    @property
    def state_code(self) -> str:
        """Return the two-letter state of birth (NE for born abroad)."""
        return self.value[11:13]

    @property
    def internal_consonants(self) -> str:
        """Return the first internal consonants of surnames and given name."""
        return self.value[13:16]

    @property
    def homoclave(self) -> str:
        """Return the disambiguation character."""
        return self.value[16]
