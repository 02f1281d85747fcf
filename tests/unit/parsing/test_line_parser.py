from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import pytest

from layoutguard import codes
from layoutguard.identifiers import Money
from layoutguard.parsing import parse_line, parse_lines, read_discriminator
from layoutguard.typing.enums import RecordKind, TrailingPolicy, ViolationKind
from layoutguard.typing.models import FileSchema, UnparsedValue, ValidationOptions

type Builder = Callable[..., list[str]]


def _detail_line(nomina_file: Builder, **values: str) -> str:
    return nomina_file([values])[1]


def test_parse_valid_detail(nomina_file: Builder, nomina_schema: FileSchema, options: ValidationOptions) -> None:
    record = parse_line(_detail_line(nomina_file), nomina_schema, line_number=2, options=options)

    assert record.kind == RecordKind.DETAIL
    assert record.record_type == "02"
    assert record.line_number == 2
    assert record.violations == ()
    assert record.is_valid
    assert record.is_structurally_sound
    assert record.value("nss") == "12345678907"
    assert record.value("employee_name") == "JUAN PEREZ LOPEZ"
    assert record.value("amount") == Money(amount=Decimal("1234.50"))
    assert record.value("payment_date") == date(2024, 1, 15)
    assert record.field_text["amount"] == "000123450"
    assert record.raw_line is None
    assert record.raw_slices is None


def test_parse_is_deterministic(nomina_file: Builder, nomina_schema: FileSchema, options: ValidationOptions) -> None:
    line = _detail_line(nomina_file)

    assert parse_line(line, nomina_schema, options=options) == parse_line(line, nomina_schema, options=options)


def test_header_values(nomina_file: Builder, nomina_schema: FileSchema, options: ValidationOptions) -> None:
    record = parse_line(nomina_file()[0], nomina_schema, options=options)

    assert record.kind == RecordKind.HEADER
    assert record.value("file_type") == "NOMINA"
    assert record.value("sequence_number") == 1
    assert record.value("file_date") == date(2024, 6, 15)
    assert record.violations == ()


def test_line_terminator_is_ignored(nomina_file: Builder, nomina_schema: FileSchema) -> None:
    line = _detail_line(nomina_file)

    assert parse_line(f"{line}\r\n", nomina_schema) == parse_line(line, nomina_schema)


def test_short_line_is_structural(nomina_file: Builder, nomina_schema: FileSchema, options: ValidationOptions) -> None:
    record = parse_line(_detail_line(nomina_file)[:50], nomina_schema, options=options)

    assert [violation.code for violation in record.violations] == [codes.STRUCT_LINE_TOO_SHORT]
    assert record.violations[0].kind == ViolationKind.STRUCTURAL
    assert record.violations[0].observed_value == "50"
    assert record.violations[0].expected == "100"
    assert not record.is_structurally_sound
    assert record.value("amount") is None


@pytest.mark.parametrize(
    ("policy", "suffix", "flagged"),
    [
        (TrailingPolicy.IGNORE, "XYZ", False),
        (TrailingPolicy.BLANK_ONLY, "   ", False),
        (TrailingPolicy.BLANK_ONLY, "  X", True),
        (TrailingPolicy.REJECT, "   ", True),
    ],
)
def test_trailing_characters_follow_policy(
    nomina_file: Builder,
    nomina_schema: FileSchema,
    policy: TrailingPolicy,
    suffix: str,
    *,
    flagged: bool,
) -> None:
    options = ValidationOptions(as_of=date(2024, 6, 30), trailing_policy=policy)
    record = parse_line(_detail_line(nomina_file) + suffix, nomina_schema, options=options)

    found = [violation.code for violation in record.violations]
    assert found == ([codes.STRUCT_LINE_TOO_LONG] if flagged else [])


def test_unknown_record_type(nomina_file: Builder, nomina_schema: FileSchema) -> None:
    line = "99" + _detail_line(nomina_file)[2:]
    record = parse_line(line, nomina_schema, line_number=7)

    assert record.kind is None
    assert record.record_type == "99"
    assert record.field_values == {}
    assert record.violations[0].code == codes.STRUCT_UNKNOWN_RECORD_TYPE
    assert record.violations[0].expected == "01,02,03"
    assert record.violations[0].line_number == 7
    assert not record.is_valid


def test_unparseable_amount_is_kept_distinct(
    nomina_file: Builder,
    nomina_schema: FileSchema,
    options: ValidationOptions,
) -> None:
    record = parse_line(_detail_line(nomina_file, amount="12A450"), nomina_schema, options=options)

    assert record.value("amount") == UnparsedValue(raw="00012A450")
    assert [violation.code for violation in record.violations] == [codes.FIELD_UNPARSEABLE]
    assert record.violations[0].field_name == "amount"
    assert record.is_structurally_sound


@pytest.mark.parametrize(
    ("values", "code", "field_name"),
    [
        ({"payment_date": "20241345"}, codes.FIELD_INVALID_DATE, "payment_date"),
        ({"payment_date": "20250101"}, codes.FIELD_FUTURE_DATE, "payment_date"),
        ({"payment_date": "00000000"}, codes.FIELD_REQUIRED, "payment_date"),
        ({"movement_type": "X"}, codes.FIELD_NOT_ALLOWED, "movement_type"),
        ({"employee_name": ""}, codes.FIELD_REQUIRED, "employee_name"),
    ],
)
def test_field_violations(
    nomina_file: Builder,
    nomina_schema: FileSchema,
    options: ValidationOptions,
    values: dict[str, str],
    code: str,
    field_name: str,
) -> None:
    record = parse_line(_detail_line(nomina_file, **values), nomina_schema, options=options)

    assert [(violation.code, violation.field_name) for violation in record.violations] == [(code, field_name)]
    assert record.violations[0].kind == ViolationKind.FIELD
    assert not record.is_valid


def test_header_pattern(nomina_file: Builder, nomina_schema: FileSchema, options: ValidationOptions) -> None:
    record = parse_line(nomina_file(header={"afore_code": "1A"})[0], nomina_schema, options=options)

    assert [violation.code for violation in record.violations] == [codes.FIELD_PATTERN]
    assert record.violations[0].expected == "\\d{2}"


def test_keep_raw(nomina_file: Builder, nomina_schema: FileSchema) -> None:
    line = _detail_line(nomina_file)
    record = parse_line(line, nomina_schema, options=ValidationOptions(as_of=date(2024, 6, 30), keep_raw=True))

    assert record.raw_line == line
    assert record.raw_slices is not None
    assert record.raw_slices["nss"] == "12345678907"
    assert record.raw_slices["employee_name"] == "JUAN PEREZ LOPEZ".ljust(40)


def test_parse_lines_skips_blank_lines(nomina_file: Builder, nomina_schema: FileSchema) -> None:
    header, detail, footer = nomina_file()
    records = list(parse_lines(["", header, "\r\n", detail, footer], nomina_schema, start_line=1))

    assert [record.line_number for record in records] == [2, 4, 5]
    assert [record.kind for record in records] == [RecordKind.HEADER, RecordKind.DETAIL, RecordKind.FOOTER]


def test_read_discriminator(nomina_schema: FileSchema) -> None:
    assert read_discriminator("02XYZ", nomina_schema) == "02"
    assert read_discriminator("0", nomina_schema) == "0"
