"""Social security number (NSS)."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from layoutguard.identifiers.base import ChecksumIdentifier, luhn_check_digit

if TYPE_CHECKING:
    from datetime import date


class Nss(ChecksumIdentifier):
    """11-digit social security number.

    Layout: subdelegation (2), registration year (2), birth year (2),
    sequence (4), verification digit (1).
    """

    label: ClassVar[str] = "NSS"
    lengths: ClassVar[tuple[int, ...]] = (11,)
    strip_separators: ClassVar[bool] = True

    @classmethod
    def compute_check_digit(cls, prefix: str) -> str:
        """Compute the verification digit, doubling even 0-based positions.

        Args:
            prefix: First 10 digits.

        Returns:
            str: Expected verification digit.
        """
        return luhn_check_digit(prefix[:10], doubled_parity=0)

    @classmethod
    def _format_ok(cls, value: str) -> bool:
        return value.isascii() and value.isdigit()

    @classmethod
    def _components_ok(cls, value: str, as_of: date) -> bool:  # noqa: ARG003
        return 1 <= int(value[0:2]) <= 99  # noqa: PLR2004

    @property
    def subdelegation(self) -> str:
        """Return the issuing subdelegation."""
        return self.value[0:2]

    @property
    def registration_year(self) -> str:
        """Return the two-digit year of registration."""
        return self.value[2:4]

    @property
    def birth_year(self) -> str:
        """Return the two-digit year of birth."""
        return self.value[4:6]

    @property
    def sequence(self) -> str:
        """Return the sequence within the subdelegation."""
        return self.value[6:10]

    def formatted(self) -> str:
        """Return the value as XX-XX-XX-XXXX-X."""
        value = self.value
        return f"{value[0:2]}-{value[2:4]}-{value[4:6]}-{value[6:10]}-{value[10]}"
