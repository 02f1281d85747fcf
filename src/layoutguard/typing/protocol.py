"""Structural interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import date

    from layoutguard.typing.enums import IdentifierFailure


class IdentifierValidator(Protocol):
    """Non-throwing validation entry points of an identifier type."""

    label: str

    def normalize(self, raw: str) -> str:
        """Normalize a raw value.

        Args:
            raw: Raw identifier text.

        Returns:
            str: Normalized text.
        """

    def check(self, raw: str | None, *, as_of: date | None = None) -> IdentifierFailure | None:
        """Return the first failing validation step.

        Args:
            raw: Raw identifier text.
            as_of: Evaluation date for embedded dates.

        Returns:
            IdentifierFailure | None: Failure reason or None.
        """

    def is_valid(self, raw: str | None, *, as_of: date | None = None) -> bool:
        """Return whether the raw value is valid.

        Args:
            raw: Raw identifier text.
            as_of: Evaluation date for embedded dates.

        Returns:
            bool: Verdict.
        """
