"""One-pass validation of parsed records against a file layout and its rules."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from layoutguard import codes, logger
from layoutguard.identifiers import Money
from layoutguard.parsing import parse_lines
from layoutguard.rules import run_rules
from layoutguard.typing.enums import RecordKind, Severity, ValidationStatus, ViolationKind
from layoutguard.typing.models import (
    DETAIL_COUNT,
    RECORD_COUNT,
    FileValidationResult,
    RecordOutcome,
    ValidationOptions,
    Violation,
    sum_aggregate_name,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from layoutguard.registry import LayoutRegistry, RulePlan
    from layoutguard.typing.enums import Currency, FileType
    from layoutguard.typing.models import FileSchema, ParsedRecord


@dataclass
class RunningAggregate:
    """Counts and sums of the records seen so far, exposed to footer rules."""

    currency: Currency
    summed_fields: tuple[str, ...] = ()
    detail_count: int = 0
    record_count: int = 0
    sums: dict[str, Money] = field(default_factory=dict)

    def observe(self, record: ParsedRecord) -> None:
        """Account for one record.

        Args:
            record (ParsedRecord): Record in file order.
        """
        self.record_count += 1
        if record.kind != RecordKind.DETAIL:
            return
        self.detail_count += 1
        for name in self.summed_fields:
            value = record.field_values.get(name)
            if isinstance(value, Money):
                self.sums[name] = self.sum_of(name) + value

    def sum_of(self, name: str) -> Money:
        """Return the running sum of a summed field."""
        total = self.sums.get(name)
        return Money.zero(self.currency) if total is None else total

    def merge(self, other: RunningAggregate) -> None:
        """Add the counts and sums of a later portion of the file.

        Args:
            other (RunningAggregate): Aggregate of the following records.
        """
        self.detail_count += other.detail_count
        self.record_count += other.record_count
        for name in self.summed_fields:
            if name in other.sums:
                self.sums[name] = self.sum_of(name) + other.sums[name]

    def copy(self) -> RunningAggregate:
        """Return an independent copy."""
        return RunningAggregate(
            currency=self.currency,
            summed_fields=self.summed_fields,
            detail_count=self.detail_count,
            record_count=self.record_count,
            sums=dict(self.sums),
        )

    def values(self) -> dict[str, Any]:
        """Return the virtual fields keyed by aggregate name."""
        values: dict[str, Any] = {DETAIL_COUNT: self.detail_count, RECORD_COUNT: self.record_count}
        for name in self.summed_fields:
            values[sum_aggregate_name(name)] = self.sum_of(name)
        return values

    def rendered(self) -> dict[str, str]:
        """Return the virtual fields as display text."""
        return {
            name: str(value.amount) if isinstance(value, Money) else str(value)
            for name, value in self.values().items()
        }

    @classmethod
    def for_schema(cls, file_schema: FileSchema) -> RunningAggregate:
        """Return an empty aggregate for a file layout."""
        return cls(currency=file_schema.currency, summed_fields=file_schema.summed_fields)


@dataclass
class FileValidationAccumulator:
    """Mutable counters of a validation run, combinable across shards.

    Records are added in file order; `merge` appends the accumulator of the
    records that follow. `snapshot` can be taken at any time.
    """

    file_schema: FileSchema
    max_violations: int | None = None
    aggregate: RunningAggregate = field(init=False)
    total_records: int = 0
    valid_records: int = 0
    invalid_records: int = 0
    warning_records: int = 0
    structural_errors: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    rule_trigger_counts: Counter[str] = field(default_factory=Counter)
    violated_codes: dict[str, None] = field(default_factory=dict)
    violations: list[Violation] = field(default_factory=list)
    records: list[RecordOutcome] = field(default_factory=list)
    truncated: bool = False

    def __post_init__(self) -> None:
        """Start an empty aggregate for the layout."""
        self.aggregate = RunningAggregate.for_schema(self.file_schema)

    def _count(self, violation: Violation) -> None:
        if violation.severity == Severity.ERROR:
            self.error_count += 1
        elif violation.severity == Severity.WARNING:
            self.warning_count += 1
        else:
            self.info_count += 1
        if violation.kind == ViolationKind.STRUCTURAL:
            self.structural_errors += 1
        if violation.kind == ViolationKind.RULE:
            self.rule_trigger_counts[violation.code] += 1
        self.violated_codes.setdefault(violation.code, None)

    def _retain(self, violations: Iterable[Violation]) -> None:
        for violation in violations:
            if self.max_violations is not None and len(self.violations) >= self.max_violations:
                self.truncated = True
                return
            self.violations.append(violation)

    def add_record(self, record: ParsedRecord, violations: list[Violation]) -> RecordOutcome:
        """Account for one record and its complete list of violations.

        The running aggregate is not touched; callers observe records separately.

        Args:
            record (ParsedRecord): Parsed record.
            violations (list[Violation]): Structural, field and rule violations of the record.

        Returns:
            RecordOutcome: Verdict of the record.
        """
        severities = Counter(violation.severity for violation in violations)
        outcome = RecordOutcome(
            line_number=record.line_number,
            record_type=record.record_type,
            kind=record.kind,
            is_valid=severities[Severity.ERROR] == 0,
            error_count=severities[Severity.ERROR],
            warning_count=severities[Severity.WARNING],
            info_count=severities[Severity.INFO],
        )

        self.total_records += 1
        if outcome.is_valid:
            self.valid_records += 1
        else:
            self.invalid_records += 1
        if outcome.warning_count:
            self.warning_records += 1
        for violation in violations:
            self._count(violation)
        self._retain(violations)
        self.records.append(outcome)
        return outcome

    def merge(self, other: FileValidationAccumulator) -> None:
        """Append the partial result of the records that follow.

        Args:
            other (FileValidationAccumulator): Accumulator of a later shard.
        """
        self.total_records += other.total_records
        self.valid_records += other.valid_records
        self.invalid_records += other.invalid_records
        self.warning_records += other.warning_records
        self.structural_errors += other.structural_errors
        self.error_count += other.error_count
        self.warning_count += other.warning_count
        self.info_count += other.info_count
        self.rule_trigger_counts.update(other.rule_trigger_counts)
        for code in other.violated_codes:
            self.violated_codes.setdefault(code, None)
        self.truncated = self.truncated or other.truncated
        self._retain(other.violations)
        self.records.extend(other.records)
        self.aggregate.merge(other.aggregate)

    def _file_violations(self, records: list[RecordOutcome]) -> list[Violation]:
        """Return structural findings about the sequence of record kinds."""
        if not records:
            return [
                Violation(
                    code=codes.STRUCT_EMPTY_FILE,
                    kind=ViolationKind.STRUCTURAL,
                    message="File contains no records",
                ),
            ]

        violations: list[Violation] = []
        headers = [record for record in records if record.kind == RecordKind.HEADER]
        footers = [record for record in records if record.kind == RecordKind.FOOTER]

        if self.file_schema.header is not None and not headers:
            violations.append(
                Violation(
                    code=codes.STRUCT_MISSING_HEADER,
                    kind=ViolationKind.STRUCTURAL,
                    message="File has no header record",
                    expected=self.file_schema.header.code,
                ),
            )
        for index, header in enumerate(headers):
            if index == 0 and header is records[0]:
                continue
            violations.append(
                Violation(
                    line_number=header.line_number,
                    code=codes.STRUCT_HEADER_POSITION,
                    kind=ViolationKind.STRUCTURAL,
                    message="Header record must be the first and only header of the file",
                    observed_value=header.record_type,
                ),
            )

        if self.file_schema.footer is not None and not footers:
            violations.append(
                Violation(
                    code=codes.STRUCT_MISSING_FOOTER,
                    kind=ViolationKind.STRUCTURAL,
                    message="File has no footer record",
                    expected=self.file_schema.footer.code,
                ),
            )
        for index, footer in enumerate(footers):
            if index == len(footers) - 1 and footer is records[-1]:
                continue
            violations.append(
                Violation(
                    line_number=footer.line_number,
                    code=codes.STRUCT_FOOTER_POSITION,
                    kind=ViolationKind.STRUCTURAL,
                    message="Footer record must be the last and only footer of the file",
                    observed_value=footer.record_type,
                ),
            )
        return violations

    def snapshot(self) -> FileValidationResult:
        """Return the result for the records accounted so far.

        File-level structural checks are computed here and are always retained.

        Returns:
            FileValidationResult: Result; the accumulator is left unchanged.
        """
        records = sorted(self.records, key=lambda record: record.line_number)
        file_violations = self._file_violations(records)

        error_count = self.error_count + len(file_violations)
        structural_errors = self.structural_errors + len(file_violations)
        violated_codes = dict(self.violated_codes)
        for violation in file_violations:
            violated_codes.setdefault(violation.code, None)
        violations = sorted(
            [*self.violations, *file_violations],
            key=lambda violation: (violation.line_number is None, violation.line_number or 0),
        )

        if error_count:
            status = ValidationStatus.FAILED
        elif self.warning_count:
            status = ValidationStatus.PASSED_WITH_WARNINGS
        else:
            status = ValidationStatus.PASSED

        return FileValidationResult(
            file_type=self.file_schema.file_type,
            status=status,
            total_records=self.total_records,
            valid_records=self.valid_records,
            invalid_records=self.invalid_records,
            warning_records=self.warning_records,
            structural_errors=structural_errors,
            error_count=error_count,
            warning_count=self.warning_count,
            info_count=self.info_count,
            rule_trigger_counts=dict(self.rule_trigger_counts),
            violated_codes=list(violated_codes),
            violations=violations,
            records=records,
            aggregates=self.aggregate.rendered(),
            truncated=self.truncated,
        )


def record_violations(
    record: ParsedRecord,
    plan: RulePlan,
    *,
    aggregates: dict[str, Any] | None = None,
    as_of: date | None = None,
) -> list[Violation]:
    """Return the parse violations of a record followed by its rule violations.

    Rules only run on structurally sound records.

    Args:
        record (ParsedRecord): Parsed record.
        plan (RulePlan): Rules grouped by record kind.
        aggregates (dict[str, Any] | None): Virtual fields, for footers.
        as_of (date | None): Evaluation date.

    Returns:
        list[Violation]: Violations of the record.
    """
    violations = list(record.violations)
    if record.kind is not None and record.is_structurally_sound:
        violations.extend(run_rules(record, plan.get(record.kind, ()), aggregates=aggregates, as_of=as_of))
    return violations


def consume(
    accumulator: FileValidationAccumulator,
    records: Iterable[ParsedRecord],
    plan: RulePlan,
    *,
    as_of: date,
) -> None:
    """Validate records in file order into an accumulator.

    Footer rules see the aggregate of every record preceding the footer.

    Args:
        accumulator (FileValidationAccumulator): Target accumulator.
        records (Iterable[ParsedRecord]): Parsed records in file order.
        plan (RulePlan): Rules grouped by record kind.
        as_of (date): Evaluation date.
    """
    running = accumulator.aggregate
    for record in records:
        aggregates = running.values() if record.kind == RecordKind.FOOTER else None
        accumulator.add_record(record, record_violations(record, plan, aggregates=aggregates, as_of=as_of))
        running.observe(record)


def log_summary(result: FileValidationResult) -> FileValidationResult:
    """Log the outcome of a validated file and return the result unchanged."""
    logger.info(
        "File validated",
        extra={
            "status": str(result.status),
            "total_records": result.total_records,
            "invalid_records": result.invalid_records,
            "error_count": result.error_count,
            "warning_count": result.warning_count,
            "violated_codes": result.violated_codes,
        },
    )
    return result


def validate(
    file_type: FileType | str,
    parsed_records: Iterable[ParsedRecord],
    registry: LayoutRegistry,
    *,
    options: ValidationOptions | None = None,
) -> FileValidationResult:
    """Validate parsed records of one file in a single streaming pass.

    Bad data never raises: it is reported as violations.

    Args:
        file_type (FileType | str): File type of the records.
        parsed_records (Iterable[ParsedRecord]): Records in file order.
        registry (LayoutRegistry): Loaded layouts and rules.
        options (ValidationOptions | None): Validation options.

    Raises:
        UnknownFileTypeError: If the file type has no registered layout.

    Returns:
        FileValidationResult: Validation result.
    """
    file_schema = registry.get(file_type)
    options = (options or ValidationOptions()).resolved()
    plan = registry.rules_for(file_schema.file_type)

    with structlog.contextvars.bound_contextvars(file_type=str(file_schema.file_type)):
        accumulator = FileValidationAccumulator(file_schema=file_schema, max_violations=options.max_violations)
        consume(accumulator, parsed_records, plan, as_of=options.evaluation_date)
        return log_summary(accumulator.snapshot())


def validate_lines(
    file_type: FileType | str,
    lines: Iterable[str],
    registry: LayoutRegistry,
    *,
    options: ValidationOptions | None = None,
) -> FileValidationResult:
    """Parse and validate raw lines of one file.

    Args:
        file_type (FileType | str): File type of the lines.
        lines (Iterable[str]): Physical lines in file order.
        registry (LayoutRegistry): Loaded layouts and rules.
        options (ValidationOptions | None): Validation options.

    Returns:
        FileValidationResult: Validation result.
    """
    file_schema = registry.get(file_type)
    options = (options or ValidationOptions()).resolved()
    records = parse_lines(lines, file_schema, options=options)
    return validate(file_schema.file_type, records, registry, options=options)
