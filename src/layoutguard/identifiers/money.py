"""Monetary amounts bound to a currency."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, field_validator

from layoutguard.exceptions import CurrencyMismatchError, MoneyFormatError
from layoutguard.typing.enums import Currency

_CENT = Decimal("0.01")
_DIGITS = re.compile(r"^[0-9]+$")
DEFAULT_WIDTH = 15

_DISPLAY = {
    Currency.MXN: "${amount} MXN",
    Currency.USD: "${amount} USD",
    Currency.EUR: "€{amount}",
    Currency.UDI: "{amount} UDI",
}


class Money(BaseModel):
    """Decimal amount rounded half-to-even to cents.

    Arithmetic and ordering between different currencies raise
    `CurrencyMismatchError`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: Decimal
    currency: Currency = Currency.MXN

    @field_validator("amount")
    @classmethod
    def _round_amount(cls, value: Decimal) -> Decimal:
        return value.quantize(_CENT, rounding=ROUND_HALF_EVEN)

    @classmethod
    def zero(cls, currency: Currency = Currency.MXN) -> Self:
        """Return a zero amount."""
        return cls(amount=Decimal(0), currency=currency)

    @classmethod
    def from_cents(cls, cents: int, currency: Currency = Currency.MXN) -> Self:
        """Build an amount from integer cents.

        Args:
            cents: Amount expressed in cents.
            currency: Currency of the amount.

        Returns:
            Self: Amount.
        """
        return cls(amount=Decimal(cents).scaleb(-2), currency=currency)

    @classmethod
    def decode(cls, text: str, currency: Currency = Currency.MXN, *, width: int | None = None) -> Self:
        """Decode the regulator's zero-padded integer-cents representation.

        Args:
            text: Fixed-width digits, e.g. "000123450" for 1234.50.
            currency: Currency of the file.
            width: Expected width, checked when given.

        Raises:
            MoneyFormatError: If the payload is not digits only or has the wrong width.

        Returns:
            Self: Decoded amount.
        """
        if not _DIGITS.match(text):
            raise MoneyFormatError(message=f"Amount payload must contain digits only: '{text}'")
        if width is not None and len(text) != width:
            raise MoneyFormatError(message=f"Amount payload must be {width} digits, got {len(text)}")
        return cls.from_cents(int(text), currency)

    def to_cents(self) -> int:
        """Return the amount in integer cents."""
        return int(self.amount.scaleb(2))

    def encode(self, width: int = DEFAULT_WIDTH) -> str:
        """Encode as zero-padded integer cents.

        Args:
            width: Number of digits of the target field.

        Raises:
            MoneyFormatError: If the amount is negative or does not fit the width.

        Returns:
            str: Digits-only string of exactly `width` characters.
        """
        cents = self.to_cents()
        if cents < 0:
            raise MoneyFormatError(message=f"Negative amounts cannot be encoded: {self.amount}")
        digits = str(cents)
        if len(digits) > width:
            raise MoneyFormatError(message=f"Amount {self.amount} does not fit in {width} digits")
        return digits.zfill(width)

    @property
    def is_zero(self) -> bool:
        """Return whether the amount is zero."""
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        """Return whether the amount is greater than zero."""
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        """Return whether the amount is lower than zero."""
        return self.amount < 0

    def _require_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(currency1=self.currency, currency2=other.currency)

    def __add__(self, other: Money) -> Money:
        """Add two amounts of the same currency."""
        self._require_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        """Subtract two amounts of the same currency."""
        self._require_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int) -> Money:
        """Scale the amount."""
        return Money(amount=self.amount * Decimal(factor), currency=self.currency)

    def __truediv__(self, divisor: Decimal | int) -> Money:
        """Divide the amount; dividing by zero raises `ZeroDivisionError`."""
        return Money(amount=self.amount / Decimal(divisor), currency=self.currency)

    def __neg__(self) -> Money:
        """Return the negated amount."""
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        """Return the absolute amount."""
        return Money(amount=abs(self.amount), currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        """Compare amounts of the same currency."""
        self._require_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        """Compare amounts of the same currency."""
        self._require_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        """Compare amounts of the same currency."""
        self._require_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        """Compare amounts of the same currency."""
        self._require_same_currency(other)
        return self.amount >= other.amount

    def formatted(self) -> str:
        """Return the amount for display, e.g. "$1,234.50 MXN"."""
        return _DISPLAY[self.currency].format(amount=f"{self.amount:,.2f}")

    def __str__(self) -> str:
        """Return the display form."""
        return self.formatted()
