"""Pytest marker auto-assignment by folder and shared layout fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from layoutguard import logger
from layoutguard.layout_store import load_registry
from layoutguard.registry import LayoutRegistry
from layoutguard.typing.enums import FileType
from layoutguard.typing.models import FileSchema, ValidationOptions

AS_OF = date(2024, 6, 30)

NOMINA_HEADER = {
    "file_type": "NOMINA",
    "company_rfc": "ABC010203AB9",
    "file_date": "20240615",
    "sequence_number": "1",
    "afore_code": "12",
}

NOMINA_DETAIL = {
    "nss": "12345678907",
    "curp": "GODE561231HDFRRN00",
    "employee_name": "JUAN PEREZ LOPEZ",
    "amount": "123450",
    "movement_type": "A",
    "payment_date": "20240115",
    "account": "02112345679",
}

type NominaFileBuilder = Callable[..., list[str]]


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except OSError:
            logger.warning(
                f"Could not resolve path for test item {item.name!s}; skipping {marker!s} marker assignment",
            )
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


@pytest.fixture(scope="session")
def registry() -> LayoutRegistry:
    """Registry of the bundled layouts."""
    return load_registry()


@pytest.fixture
def nomina_schema(registry: LayoutRegistry) -> FileSchema:
    """Payroll contributions layout."""
    return registry.get(FileType.NOMINA)


@pytest.fixture
def options() -> ValidationOptions:
    """Options pinned to a fixed evaluation date."""
    return ValidationOptions(as_of=AS_OF)


@pytest.fixture
def nomina_file(nomina_schema: FileSchema) -> NominaFileBuilder:
    """Return a builder of payroll files.

    Footer totals are derived from the details unless overridden.
    """

    def _build(
        details: list[dict[str, str]] | None = None,
        *,
        header: dict[str, str] | None = None,
        footer: dict[str, str] | None = None,
    ) -> list[str]:
        rows = [{**NOMINA_DETAIL, **row} for row in (details if details is not None else [{}])]
        header_record = nomina_schema.header
        footer_record = nomina_schema.footer
        assert header_record is not None
        assert footer_record is not None

        total_cents = sum(int(row["amount"]) for row in rows if row["amount"].isdigit())
        footer_values = {"total_records": str(len(rows)), "total_amount": str(total_cents), **(footer or {})}
        detail_record = nomina_schema.details[0]
        return [
            header_record.render({**NOMINA_HEADER, **(header or {})}),
            *(detail_record.render(row) for row in rows),
            footer_record.render(footer_values),
        ]

    return _build
