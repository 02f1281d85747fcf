"""Individual retirement account number."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from layoutguard.identifiers.base import ChecksumIdentifier, luhn_check_digit

if TYPE_CHECKING:
    from datetime import date


class AccountNumber(ChecksumIdentifier):
    """11-digit account: administrator code (3), type (1), sequence (6), verification digit (1)."""

    label: ClassVar[str] = "account number"
    lengths: ClassVar[tuple[int, ...]] = (11,)
    strip_separators: ClassVar[bool] = True

    @classmethod
    def compute_check_digit(cls, prefix: str) -> str:
        """Compute the verification digit, doubling odd 0-based positions.

        Args:
            prefix: First 10 digits.

        Returns:
            str: Expected verification digit.
        """
        return luhn_check_digit(prefix[:10], doubled_parity=1)

    @classmethod
    def _format_ok(cls, value: str) -> bool:
        return value.isascii() and value.isdigit()

    @classmethod
    def _components_ok(cls, value: str, as_of: date) -> bool:  # noqa: ARG003
        return 1 <= int(value[0:3]) <= 99 and value[3] != "0"  # noqa: PLR2004

    @property
    def administrator_code(self) -> str:
        """Return the fund administrator code."""
        return self.value[0:3]

    @property
    def account_type(self) -> str:
        """Return the account type digit."""
        return self.value[3]

    @property
    def sequence(self) -> str:
        """Return the account sequence."""
        return self.value[4:10]

    def formatted(self) -> str:
        """Return the value as XXX-X-XXXXXX-X."""
        value = self.value
        return f"{value[0:3]}-{value[3]}-{value[4:10]}-{value[10]}"
