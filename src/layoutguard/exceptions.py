"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from layoutguard.typing.enums import IdentifierFailure


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class SchemaDefinitionError(PackageError):
    """Raised when a layout definition breaks a schema invariant."""

    message: str
    layout: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"[{self.layout}] {self.message}" if self.layout else self.message


@dataclass(frozen=True)
class RuleDefinitionError(PackageError):
    """Raised when a rule or its condition tree is inconsistent with the layouts."""

    message: str
    rule_code: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Rule '{self.rule_code}': {self.message}" if self.rule_code else self.message


@dataclass(frozen=True)
class LayoutStoreError(PackageError):
    """Raised when a layout bundle cannot be read."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class UnknownFileTypeError(PackageError):
    """Raised when no layout is registered for a file type."""

    file_type: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"No layout registered for file type '{self.file_type}'"


@dataclass(frozen=True)
class IdentifierError(PackageError):
    """Raised when an identifier value fails validation on construction."""

    identifier: str
    value: str
    reason: IdentifierFailure

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Invalid {self.identifier} '{self.value}': {self.reason}"


@dataclass(frozen=True)
class CurrencyMismatchError(PackageError):
    """Raised when two amounts in different currencies are combined or compared."""

    currency1: str
    currency2: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Currency mismatch: expected '{self.currency1}', got '{self.currency2}'"


@dataclass(frozen=True)
class MoneyFormatError(PackageError):
    """Raised when an amount cannot be encoded to or decoded from fixed-width cents."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class ShardExecutionError(PackageError):
    """Raised when a validation shard fails while running concurrently."""

    result: BaseException
    message: str = "Validation shard failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"
