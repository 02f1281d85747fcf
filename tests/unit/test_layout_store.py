from __future__ import annotations

import json
from pathlib import Path

import pytest

from layoutguard.exceptions import LayoutStoreError, RuleDefinitionError, SchemaDefinitionError
from layoutguard.layout_store import (
    bundled_bundles,
    bundles_from_path,
    build_registry,
    load_bundle,
    load_registry,
    parse_bundle,
)
from layoutguard.typing.enums import FileType, RecordKind

EXTRA_RULE = {
    "code": "NOMINA_EXTRA_01",
    "name": "Only contributions",
    "file_types": ["nomina"],
    "record_types": ["detail"],
    "condition": {"type": "condition", "field": "movement_type", "operator": "not_equals", "value": "A"},
    "action": {"kind": "warn", "message": "Movement {value} is not a contribution"},
}


def test_bundled_bundles_are_sorted_by_name() -> None:
    sources = [bundle.source for bundle in bundled_bundles()]

    assert sources == [
        "layoutguard/layouts/common.json",
        "layoutguard/layouts/contable.json",
        "layoutguard/layouts/nomina.json",
        "layoutguard/layouts/regularizacion.json",
    ]


def test_load_registry_with_extra_rules(tmp_path: Path) -> None:
    (tmp_path / "extra.json").write_text(json.dumps({"layout_file_version": 1, "rules": [EXTRA_RULE]}), encoding="utf-8")

    registry = load_registry(tmp_path)

    nomina = [rule.code for rule in registry.rules_for(FileType.NOMINA)[RecordKind.DETAIL]]
    contable = [rule.code for rule in registry.rules_for(FileType.CONTABLE)[RecordKind.DETAIL]]
    assert "NOMINA_EXTRA_01" in nomina
    assert "NOMINA_EXTRA_01" not in contable


def test_extra_rule_with_unknown_field_is_rejected(tmp_path: Path) -> None:
    rule = {**EXTRA_RULE, "condition": {"type": "condition", "field": "missing", "operator": "is_empty"}}
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"rules": [rule]}), encoding="utf-8")

    with pytest.raises(RuleDefinitionError, match="Unknown field 'missing'"):
        load_registry(path)


def test_duplicate_layout_is_rejected() -> None:
    bundles = bundled_bundles()
    nomina = next(bundle for bundle in bundles if bundle.layout and bundle.layout.file_type == FileType.NOMINA)

    with pytest.raises(SchemaDefinitionError, match="Layout defined twice"):
        build_registry([*bundles, nomina])


def test_parse_bundle_rejects_invalid_json() -> None:
    with pytest.raises(LayoutStoreError, match="Invalid JSON"):
        parse_bundle("{not json", source="inline")


def test_parse_bundle_rejects_unsupported_version() -> None:
    with pytest.raises(LayoutStoreError, match="unsupported version 2"):
        parse_bundle(json.dumps({"layout_file_version": 2, "rules": [EXTRA_RULE]}))


def test_parse_bundle_rejects_non_object() -> None:
    with pytest.raises(LayoutStoreError, match="must be a JSON object"):
        parse_bundle("[]")


def test_parse_bundle_rejects_empty_bundle() -> None:
    with pytest.raises(LayoutStoreError, match="neither a layout nor rules"):
        parse_bundle("{}")


def test_parse_bundle_wraps_validation_errors() -> None:
    broken = {**EXTRA_RULE, "action": {"kind": "explode", "message": "x"}}

    with pytest.raises(RuleDefinitionError, match="Invalid rules in inline"):
        parse_bundle(json.dumps({"rules": [broken]}), source="inline")
    with pytest.raises(SchemaDefinitionError, match="Invalid layout"):
        parse_bundle(json.dumps({"layout": {"file_type": "nomina"}}))


def test_missing_paths(tmp_path: Path) -> None:
    with pytest.raises(LayoutStoreError, match="does not exist"):
        bundles_from_path(tmp_path / "absent")
    with pytest.raises(LayoutStoreError, match="not a file"):
        load_bundle(tmp_path)
