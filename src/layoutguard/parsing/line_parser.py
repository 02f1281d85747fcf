"""Schema-driven parsing of fixed-width lines."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from layoutguard import codes
from layoutguard.parsing.values import convert_value, extract_text
from layoutguard.typing.enums import FieldType, Severity, TrailingPolicy, ViolationKind
from layoutguard.typing.models import ParsedRecord, UnparsedValue, ValidationOptions, Violation

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from layoutguard.typing.models import FieldDefinition, FileSchema, RecordSchema

_DEFAULT_OPTIONS = ValidationOptions()


def read_discriminator(line: str, file_schema: FileSchema) -> str:
    """Return the discriminator slice of a line.

    Args:
        line: Raw line without its line terminator.
        file_schema: Layout of the file.

    Returns:
        str: Discriminator text (may be shorter than declared for short lines).
    """
    start, end = file_schema.discriminator_range
    return line[start - 1 : end]


def parse_line(
    line: str,
    file_schema: FileSchema,
    *,
    line_number: int = 1,
    options: ValidationOptions | None = None,
) -> ParsedRecord:
    """Parse one physical line.

    Never raises for malformed content: unknown discriminators and wrong
    lengths become structural violations, unconvertible values become field
    violations.

    Args:
        line: Raw line, a trailing line terminator is ignored.
        file_schema: Layout of the file.
        line_number: 1-indexed physical line number.
        options: Validation options.

    Returns:
        ParsedRecord: Parsed record.
    """
    options = options or _DEFAULT_OPTIONS
    text_line = line.rstrip("\r\n")
    record_type = read_discriminator(text_line, file_schema)
    raw_line = text_line if options.keep_raw else None

    schema = file_schema.record_for(record_type)
    if schema is None:
        violation = Violation(
            line_number=line_number,
            code=codes.STRUCT_UNKNOWN_RECORD_TYPE,
            kind=ViolationKind.STRUCTURAL,
            message=f"Unknown record type '{record_type}'",
            observed_value=record_type,
            expected=",".join(record.code for record in file_schema.records),
        )
        return ParsedRecord(
            line_number=line_number,
            record_type=record_type,
            raw_line=raw_line,
            violations=(violation,),
        )

    violations = _check_length(text_line, schema, line_number, options.trailing_policy)
    evaluation_date = options.evaluation_date

    field_values: dict[str, Any] = {}
    field_text: dict[str, str] = {}
    raw_slices: dict[str, str] = {}
    for index, definition in enumerate(schema.fields):
        present = len(text_line) >= definition.end
        raw = text_line[definition.start - 1 : definition.end] if present else ""
        text = extract_text(raw, definition)
        value = convert_value(definition, text, currency=file_schema.currency)

        field_values[definition.name] = value
        field_text[definition.name] = text
        raw_slices[definition.name] = raw
        if present and index > 0:
            violations.extend(_check_field(definition, text, value, line_number, evaluation_date))

    return ParsedRecord(
        line_number=line_number,
        record_type=record_type,
        kind=schema.kind,
        field_values=field_values,
        field_text=field_text,
        raw_line=raw_line,
        raw_slices=raw_slices if options.keep_raw else None,
        violations=tuple(violations),
    )


def parse_lines(
    lines: Iterable[str],
    file_schema: FileSchema,
    *,
    options: ValidationOptions | None = None,
    start_line: int = 1,
) -> Iterator[ParsedRecord]:
    """Lazily parse physical lines, skipping empty ones but keeping their numbers.

    Args:
        lines: Raw lines in file order.
        file_schema: Layout of the file.
        options: Validation options.
        start_line: Physical number of the first line.

    Yields:
        ParsedRecord: Parsed records in file order.
    """
    for line_number, line in enumerate(lines, start=start_line):
        if not line.rstrip("\r\n"):
            continue
        yield parse_line(line, file_schema, line_number=line_number, options=options)


def _check_length(
    line: str,
    schema: RecordSchema,
    line_number: int,
    policy: TrailingPolicy,
) -> list[Violation]:
    length = len(line)
    expected = str(schema.line_length)
    if length < schema.line_length:
        return [
            Violation(
                line_number=line_number,
                code=codes.STRUCT_LINE_TOO_SHORT,
                kind=ViolationKind.STRUCTURAL,
                message=f"Record {schema.code} has {length} characters, expected {expected}",
                observed_value=str(length),
                expected=expected,
            ),
        ]
    if length == schema.line_length or policy == TrailingPolicy.IGNORE:
        return []
    if policy == TrailingPolicy.BLANK_ONLY and not line[schema.line_length :].strip():
        return []
    return [
        Violation(
            line_number=line_number,
            code=codes.STRUCT_LINE_TOO_LONG,
            kind=ViolationKind.STRUCTURAL,
            message=f"Record {schema.code} has {length} characters, expected {expected}",
            observed_value=str(length),
            expected=expected,
        ),
    ]


def _field_violation(
    definition: FieldDefinition,
    line_number: int,
    code: str,
    message: str,
    *,
    observed: str | None = None,
    expected: str | None = None,
) -> Violation:
    return Violation(
        line_number=line_number,
        code=code,
        kind=ViolationKind.FIELD,
        severity=Severity.ERROR,
        message=message,
        field_name=definition.name,
        observed_value=observed,
        expected=expected,
    )


def _check_field(
    definition: FieldDefinition,
    text: str,
    value: object,
    line_number: int,
    evaluation_date: date,
) -> list[Violation]:
    """Check a converted value against its definition's constraints.

    Args:
        definition: Field definition.
        text: Extracted text.
        value: Converted value.
        line_number: Physical line number.
        evaluation_date: Date future dates are measured against.

    Returns:
        list[Violation]: Field-level violations, at most one per field.
    """
    label = definition.label or definition.name
    if value is None:
        if definition.required:
            return [_field_violation(definition, line_number, codes.FIELD_REQUIRED, f"{label} is required")]
        return []

    if isinstance(value, UnparsedValue):
        if definition.type == FieldType.DATE:
            return [
                _field_violation(
                    definition,
                    line_number,
                    codes.FIELD_INVALID_DATE,
                    f"{label} is not a valid YYYYMMDD date",
                    observed=text,
                    expected="YYYYMMDD",
                ),
            ]
        return [
            _field_violation(
                definition,
                line_number,
                codes.FIELD_UNPARSEABLE,
                f"{label} is not a valid {definition.type} value",
                observed=text,
            ),
        ]

    if definition.not_future and isinstance(value, date) and value > evaluation_date:
        return [
            _field_violation(
                definition,
                line_number,
                codes.FIELD_FUTURE_DATE,
                f"{label} is later than {evaluation_date.isoformat()}",
                observed=value.isoformat(),
                expected=f"<= {evaluation_date.isoformat()}",
            ),
        ]

    if definition.allowed_values and text not in definition.allowed_values:
        return [
            _field_violation(
                definition,
                line_number,
                codes.FIELD_NOT_ALLOWED,
                f"{label} must be one of {', '.join(definition.allowed_values)}",
                observed=text,
                expected=",".join(definition.allowed_values),
            ),
        ]

    pattern = definition.compiled_pattern
    if pattern is not None and not pattern.fullmatch(text):
        return [
            _field_violation(
                definition,
                line_number,
                codes.FIELD_PATTERN,
                f"{label} does not match the expected format",
                observed=text,
                expected=definition.pattern,
            ),
        ]
    return []
