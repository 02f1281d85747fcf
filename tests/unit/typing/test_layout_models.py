from __future__ import annotations

import pytest

from layoutguard.exceptions import RuleDefinitionError, SchemaDefinitionError
from layoutguard.typing.enums import FieldType, FileType, RecordKind
from layoutguard.typing.models import FieldDefinition, FileSchema, RecordSchema, ValidatorRule


def _record(code: str, kind: str, *fields: dict) -> dict:
    return {"code": code, "kind": kind, "line_length": 10, "fields": list(fields)}


def _file_payload(**overrides: object) -> dict:
    payload: dict = {
        "file_type": "nomina",
        "code": "0100",
        "name": "Test layout",
        "summed_fields": ["amount"],
        "records": [
            _record(
                "01",
                "header",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "file_type", "start": 3, "end": 10},
            ),
            _record(
                "02",
                "detail",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "amount", "start": 3, "end": 10, "type": "currency"},
            ),
            _record(
                "03",
                "footer",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "total", "start": 3, "end": 10, "type": "currency"},
            ),
        ],
    }
    payload.update(overrides)
    return payload


def _rule(**overrides: object) -> dict:
    rule: dict = {
        "code": "t_01",
        "name": "Footer total",
        "record_types": ["footer"],
        "condition": {"type": "condition", "field": "total", "operator": "not_equals", "value_from": "@sum.amount"},
        "action": {"kind": "reject", "message": "Total mismatch"},
    }
    rule.update(overrides)
    return rule


def test_field_definition_width_and_padding() -> None:
    field = FieldDefinition(name="amount", start=72, end=80, type=FieldType.CURRENCY)

    assert field.width == 9
    assert field.pad_char == "0"
    assert field.render("123450") == "000123450"
    assert FieldDefinition(name="name", start=1, end=5).render("AB") == "AB   "


def test_field_definition_rejects_inverted_range() -> None:
    with pytest.raises(SchemaDefinitionError, match="ends"):
        FieldDefinition(name="broken", start=5, end=4)


def test_field_definition_rejects_inconsistent_length() -> None:
    with pytest.raises(SchemaDefinitionError, match="declares length 3"):
        FieldDefinition(name="broken", start=1, end=5, length=3)


def test_field_definition_rejects_bad_pattern() -> None:
    with pytest.raises(SchemaDefinitionError, match="Invalid pattern"):
        FieldDefinition(name="broken", start=1, end=5, pattern="([A-Z]")


def test_field_render_rejects_overflow() -> None:
    with pytest.raises(ValueError, match="field holds 2"):
        FieldDefinition(name="code", start=1, end=2).render("ABC")


def test_record_schema_rejects_overlap() -> None:
    with pytest.raises(SchemaDefinitionError, match="overlapping"):
        RecordSchema.model_validate(
            _record(
                "02",
                "detail",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "a", "start": 2, "end": 10},
            ),
        )


def test_record_schema_rejects_gap() -> None:
    with pytest.raises(SchemaDefinitionError, match="line length is 10"):
        RecordSchema.model_validate(
            _record(
                "02",
                "detail",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "a", "start": 4, "end": 10},
            ),
        )


def test_record_schema_rejects_duplicate_names() -> None:
    with pytest.raises(SchemaDefinitionError, match="Duplicate field 'a'"):
        RecordSchema.model_validate(
            _record(
                "02",
                "detail",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "a", "start": 3, "end": 5},
                {"name": "a", "start": 6, "end": 10},
            ),
        )


def test_record_schema_requires_leading_discriminator() -> None:
    with pytest.raises(SchemaDefinitionError, match="discriminator"):
        RecordSchema.model_validate(
            _record(
                "002",
                "detail",
                {"name": "record_type", "start": 1, "end": 2},
                {"name": "a", "start": 3, "end": 10},
            ),
        )


def test_record_schema_render_fills_discriminator_and_blanks() -> None:
    record = RecordSchema.model_validate(
        _record(
            "02",
            "detail",
            {"name": "record_type", "start": 1, "end": 2},
            {"name": "name", "start": 3, "end": 6},
            {"name": "amount", "start": 7, "end": 10, "type": "integer"},
        ),
    )

    assert record.render({"amount": "7"}) == "02    0007"
    assert record.field("name") is not None
    assert record.field_names == ("record_type", "name", "amount")
    with pytest.raises(ValueError, match="Unknown fields"):
        record.render({"missing": "x"})


def test_file_schema_indexes_records() -> None:
    schema = FileSchema.model_validate(_file_payload())

    assert schema.file_type == FileType.NOMINA
    assert schema.discriminator_range == (1, 2)
    assert schema.header is not None and schema.header.code == "01"
    assert schema.footer is not None and schema.footer.kind == RecordKind.FOOTER
    assert schema.record_for("02") is schema.details[0]
    assert schema.record_for("99") is None
    assert schema.aggregate_names == ("@detail_count", "@record_count", "@sum.amount")


def test_file_schema_requires_a_detail_record() -> None:
    payload = _file_payload(summed_fields=[])
    payload["records"] = [payload["records"][0], payload["records"][2]]
    with pytest.raises(SchemaDefinitionError, match="no detail record"):
        FileSchema.model_validate(payload)


def test_file_schema_rejects_duplicate_record_codes() -> None:
    payload = _file_payload()
    payload["records"] = [payload["records"][1], payload["records"][1]]
    with pytest.raises(SchemaDefinitionError, match="Duplicate record code"):
        FileSchema.model_validate(payload)


def test_file_schema_rejects_non_numeric_summed_field() -> None:
    with pytest.raises(SchemaDefinitionError, match="Summed field 'record_type'"):
        FileSchema.model_validate(_file_payload(summed_fields=["record_type"]))


def test_file_schema_accepts_rules_referencing_aggregates() -> None:
    schema = FileSchema.model_validate(_file_payload(rules=[_rule()]))

    assert schema.rules[0].code == "T_01"


def test_file_schema_rejects_unknown_rule_field() -> None:
    rule = _rule(condition={"type": "condition", "field": "nss", "operator": "is_empty"})
    with pytest.raises(RuleDefinitionError, match="Unknown field 'nss'"):
        FileSchema.model_validate(_file_payload(rules=[rule]))


def test_aggregates_are_only_visible_to_footer_rules() -> None:
    rule = _rule(
        record_types=["detail"],
        condition={"type": "condition", "field": "amount", "operator": "equals", "value_from": "@detail_count"},
    )
    with pytest.raises(RuleDefinitionError, match="@detail_count"):
        FileSchema.model_validate(_file_payload(rules=[rule]))


def test_with_rules_revalidates() -> None:
    schema = FileSchema.model_validate(_file_payload(rules=[_rule()]))
    duplicate = ValidatorRule.model_validate(_rule())

    with pytest.raises(RuleDefinitionError, match="Duplicate rule code"):
        schema.with_rules([duplicate])
