"""Shared machinery for checksum-validated identifiers."""

from __future__ import annotations

import re
from datetime import date
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, field_validator

from layoutguard.exceptions import IdentifierError
from layoutguard.typing.enums import IdentifierFailure

_SEPARATORS = re.compile(r"[\s\-]+")

# Four-letter prefixes the registry replaces before issuing a population or taxpayer ID.
RESERVED_PREFIXES = frozenset(
    {
        "BACA", "BAKA", "BUEI", "BUEY", "CACA", "CACO", "CAGA", "CAGO", "CAKA", "CAKO",
        "COGE", "COGI", "COJA", "COJE", "COJI", "COJO", "COLA", "CULO", "FALO", "FETO",
        "GETA", "GUEI", "GUEY", "JETA", "JOTO", "KACA", "KACO", "KAGA", "KAGO", "KAKA",
        "KAKO", "KOGE", "KOGI", "KOJA", "KOJE", "KOJI", "KOJO", "KOLA", "KULO", "LILO",
        "LOCA", "LOCO", "LOKA", "LOKO", "MAME", "MAMO", "MEAR", "MEAS", "MEON", "MIAR",
        "MION", "MOCO", "MOKO", "MULA", "MULO", "NACA", "NACO", "PEDA", "PEDO", "PENE",
        "PIPI", "PITO", "POPO", "PUTA", "PUTO", "QULO", "RATA", "ROBA", "ROBE", "ROBO",
        "RUIN", "SENO", "TETA", "VACA", "VAGA", "VAGO", "VAKA", "VUEI", "VUEY", "WUEI",
        "WUEY",
    },
)  # fmt: skip

CENTURY_PIVOT = 30


def parse_compact_date(text: str) -> date | None:
    """Resolve a YYMMDD component into a calendar date.

    Two-digit years up to the pivot belong to the 2000s, the rest to the 1900s.

    Args:
        text: Six digit component.

    Returns:
        date | None: Resolved date, or None when the component is not a real date.
    """
    if len(text) != 6 or not text.isdigit():  # noqa: PLR2004
        return None
    year_part, month, day = int(text[0:2]), int(text[2:4]), int(text[4:6])
    year = 2000 + year_part if year_part <= CENTURY_PIVOT else 1900 + year_part
    try:
        return date(year, month, day)
    except ValueError:
        return None


def luhn_check_digit(digits: str, *, doubled_parity: int) -> str:
    """Compute a Luhn-style verification digit.

    Args:
        digits: Digits preceding the verification digit.
        doubled_parity: Parity (0 or 1) of the 0-based positions that are doubled.

    Returns:
        str: Single verification digit.
    """
    total = 0
    for index, char in enumerate(digits):
        digit = int(char)
        if index % 2 == doubled_parity:
            digit *= 2
            if digit > 9:  # noqa: PLR2004
                digit -= 9
        total += digit
    return str((10 - total % 10) % 10)


class ChecksumIdentifier(BaseModel):
    """Immutable identifier whose value passed every validation step.

    Validation runs in a fixed order, cheapest first: emptiness, exact length,
    per-position format, embedded components, then the verification digit.
    `check` stops at the first failing step and never builds an instance.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: ClassVar[str] = "identifier"
    lengths: ClassVar[tuple[int, ...]] = ()
    strip_separators: ClassVar[bool] = False

    value: str

    @field_validator("value")
    @classmethod
    def _validate_value(cls, value: str) -> str:
        failure = cls.check(value)
        if failure is not None:
            message = f"Invalid {cls.label}: {failure}"
            raise ValueError(message)
        return cls.normalize(value)

    @classmethod
    def normalize(cls, raw: str) -> str:
        """Trim, drop separators where allowed and uppercase a raw value.

        Args:
            raw: Raw identifier text.

        Returns:
            str: Normalized text.
        """
        text = raw.strip()
        if cls.strip_separators:
            text = _SEPARATORS.sub("", text)
        return text.upper()

    @classmethod
    def check(cls, raw: str | None, *, as_of: date | None = None) -> IdentifierFailure | None:
        """Return the first failing validation step for a raw value.

        Args:
            raw: Raw identifier text.
            as_of: Evaluation date for embedded dates; defaults to today.

        Returns:
            IdentifierFailure | None: Failure reason, or None when the value is valid.
        """
        if raw is None:
            return IdentifierFailure.EMPTY
        value = cls.normalize(raw)
        if not value:
            return IdentifierFailure.EMPTY
        if len(value) not in cls.lengths:
            return IdentifierFailure.WRONG_LENGTH
        if not cls._format_ok(value):
            return IdentifierFailure.MALFORMED
        if not cls._components_ok(value, as_of or date.today()):
            return IdentifierFailure.BAD_COMPONENT
        if not cls._check_digit_ok(value):
            return IdentifierFailure.BAD_CHECK_DIGIT
        return None

    @classmethod
    def is_valid(cls, raw: str | None, *, as_of: date | None = None) -> bool:
        """Return whether a raw value is a valid identifier.

        Args:
            raw: Raw identifier text.
            as_of: Evaluation date for embedded dates.

        Returns:
            bool: True when every validation step passes.
        """
        return cls.check(raw, as_of=as_of) is None

    @classmethod
    def create(cls, raw: str, *, as_of: date | None = None) -> Self:
        """Build a validated identifier.

        Args:
            raw: Raw identifier text.
            as_of: Evaluation date for embedded dates.

        Raises:
            IdentifierError: If any validation step fails.

        Returns:
            Self: Validated identifier.
        """
        failure = cls.check(raw, as_of=as_of)
        if failure is not None:
            raise IdentifierError(identifier=cls.label, value=raw, reason=failure)
        return cls.model_construct(value=cls.normalize(raw))

    @classmethod
    def compute_check_digit(cls, prefix: str) -> str:
        """Compute the verification digit for the characters preceding it.

        Args:
            prefix: Normalized identifier without its verification digit.

        Returns:
            str: Expected verification digit.
        """
        raise NotImplementedError

    @classmethod
    def _format_ok(cls, value: str) -> bool:
        raise NotImplementedError

    @classmethod
    def _components_ok(cls, value: str, as_of: date) -> bool:  # noqa: ARG003
        return True

    @classmethod
    def _check_digit_ok(cls, value: str) -> bool:
        return cls.compute_check_digit(value[:-1]) == value[-1]

    @property
    def check_digit(self) -> str:
        """Return the trailing verification digit."""
        return self.value[-1]

    def formatted(self) -> str:
        """Return the value with conventional display separators."""
        return self.value

    def __str__(self) -> str:
        """Return normalized value."""
        return self.value
