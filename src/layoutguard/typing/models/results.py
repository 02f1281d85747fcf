"""Parsed records, violations and validation results."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from layoutguard.typing.enums import (
    FileType,
    RecordKind,
    Severity,
    TrailingPolicy,
    ValidationStatus,
    ViolationKind,
)

if TYPE_CHECKING:
    from layoutguard.settings import Settings


class UnparsedValue(BaseModel):
    """Field content that could not be converted to its declared type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    raw: str

    def __str__(self) -> str:
        """Return the raw content."""
        return self.raw


class Violation(BaseModel):
    """Single structural, field-level or rule-triggered finding."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    line_number: int | None = Field(default=None, description="None for file-level findings.")
    code: str
    kind: ViolationKind
    severity: Severity = Severity.ERROR
    message: str
    field_name: str | None = None
    observed_value: str | None = None
    expected: str | None = Field(default=None, description="Expected value or pattern.")


class ParsedRecord(BaseModel):
    """One physical line after applying its record schema."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    line_number: int = Field(ge=1)
    record_type: str = Field(description="Discriminator as read from the line.")
    kind: RecordKind | None = Field(default=None, description="None when the discriminator is unknown.")
    field_values: dict[str, Any] = Field(default_factory=dict)
    field_text: dict[str, str] = Field(default_factory=dict)
    raw_line: str | None = None
    raw_slices: dict[str, str] | None = None
    violations: tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        """Return whether no error-level violation was recorded."""
        return not any(violation.severity == Severity.ERROR for violation in self.violations)

    @property
    def is_structurally_sound(self) -> bool:
        """Return whether the line shape allows rule evaluation."""
        return self.kind is not None and not any(
            violation.kind == ViolationKind.STRUCTURAL for violation in self.violations
        )

    def value(self, name: str) -> Any:  # noqa: ANN401
        """Return a typed field value, None when absent."""
        return self.field_values.get(name)


class RecordOutcome(BaseModel):
    """Verdict for one record."""

    model_config = ConfigDict(extra="forbid")

    line_number: int
    record_type: str
    kind: RecordKind | None = None
    is_valid: bool
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0


class FileValidationResult(BaseModel):
    """Per-record verdicts, ordered violations and file-level counters."""

    model_config = ConfigDict(extra="forbid")

    file_type: FileType
    status: ValidationStatus
    total_records: int = 0
    valid_records: int = 0
    invalid_records: int = 0
    warning_records: int = 0
    structural_errors: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    rule_trigger_counts: dict[str, int] = Field(default_factory=dict)
    violated_codes: list[str] = Field(default_factory=list)
    violations: list[Violation] = Field(default_factory=list)
    records: list[RecordOutcome] = Field(default_factory=list)
    aggregates: dict[str, str] = Field(default_factory=dict)
    truncated: bool = Field(default=False, description="True when violation entries were capped.")

    @property
    def is_compliant(self) -> bool:
        """Return whether the file has no error-level finding."""
        return self.error_count == 0

    def violations_for(self, line_number: int) -> list[Violation]:
        """Return the violations recorded for one line."""
        return [violation for violation in self.violations if violation.line_number == line_number]


class ValidationOptions(BaseModel):
    """Explicit knobs for a validation run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    as_of: date | None = Field(default=None, description="Evaluation date; today when unset.")
    trailing_policy: TrailingPolicy = TrailingPolicy.IGNORE
    keep_raw: bool = False
    max_violations: int | None = Field(default=None, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings, *, as_of: date | None = None) -> ValidationOptions:
        """Build options from runtime settings.

        Args:
            settings (Settings): Runtime settings.
            as_of (date | None): Evaluation date override.

        Returns:
            ValidationOptions: Options for the orchestrator.
        """
        return cls(
            as_of=as_of,
            trailing_policy=settings.trailing_policy,
            max_violations=settings.max_violations,
        )

    def resolved(self) -> ValidationOptions:
        """Return options with the evaluation date pinned."""
        if self.as_of is not None:
            return self
        return self.model_copy(update={"as_of": date.today()})

    @property
    def evaluation_date(self) -> date:
        """Return the evaluation date."""
        return self.as_of or date.today()
