"""Loading of layout and rule bundles from JSON data files."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from layoutguard import logger
from layoutguard.exceptions import LayoutStoreError, RuleDefinitionError, SchemaDefinitionError
from layoutguard.registry import LayoutRegistry
from layoutguard.typing.models import FileSchema, ValidatorRule

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layoutguard.typing.enums import FileType

_LAYOUT_FILE_VERSION = 1
_BUNDLE_SUFFIX = ".json"


class LayoutBundle(BaseModel):
    """Content of one bundle file: a file layout, standalone rules, or both."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str = Field(default="<memory>", description="Origin of the bundle, for diagnostics.")
    layout: FileSchema | None = None
    rules: tuple[ValidatorRule, ...] = Field(
        default=(),
        description="Rules attached to every layout matching their file types.",
    )

    @model_validator(mode="after")
    def _check_not_empty(self) -> LayoutBundle:
        if self.layout is None and not self.rules:
            raise LayoutStoreError(message=f"Bundle {self.source} declares neither a layout nor rules")
        return self


def load_bundle(path: Path) -> LayoutBundle:
    """Load one bundle file.

    Args:
        path (Path): Bundle file path.

    Raises:
        LayoutStoreError: If the file is missing or not valid JSON.

    Returns:
        LayoutBundle: Loaded bundle.
    """
    if not path.is_file():
        raise LayoutStoreError(message=f"Layout bundle is not a file: {path}")
    return parse_bundle(path.read_text(encoding="utf-8"), source=str(path))


def parse_bundle(text: str, *, source: str = "<memory>") -> LayoutBundle:
    """Parse bundle JSON text.

    Args:
        text (str): JSON document.
        source (str): Origin used in error messages.

    Raises:
        LayoutStoreError: If the document is not valid JSON or has an unsupported version.
        SchemaDefinitionError: If a layout breaks a schema invariant.
        RuleDefinitionError: If a rule is malformed.

    Returns:
        LayoutBundle: Parsed bundle.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LayoutStoreError(message=f"Invalid JSON in {source}: {exc}") from exc
    migrated = _migrate_bundle_payload(payload, source=source)
    try:
        return LayoutBundle.model_validate({**migrated, "source": source})
    except ValidationError as exc:
        if "rules" in migrated and "layout" not in migrated:
            raise RuleDefinitionError(message=f"Invalid rules in {source}: {exc}") from exc
        raise SchemaDefinitionError(message=f"Invalid layout in {source}: {exc}") from exc


def bundled_bundles() -> list[LayoutBundle]:
    """Load the bundles shipped with the package.

    Returns:
        list[LayoutBundle]: Bundles in file name order.
    """
    directory = resources.files("layoutguard").joinpath("layouts")
    entries = sorted(
        (entry for entry in directory.iterdir() if entry.name.endswith(_BUNDLE_SUFFIX)),
        key=lambda entry: entry.name,
    )
    return [parse_bundle(entry.read_text(encoding="utf-8"), source=f"layoutguard/layouts/{entry.name}") for entry in entries]


def bundles_from_path(path: Path) -> list[LayoutBundle]:
    """Load a bundle file, or every `*.json` bundle of a directory.

    Args:
        path (Path): File or directory.

    Raises:
        LayoutStoreError: If the path does not exist.

    Returns:
        list[LayoutBundle]: Loaded bundles.
    """
    if path.is_dir():
        return [load_bundle(item) for item in sorted(path.glob(f"*{_BUNDLE_SUFFIX}"))]
    if path.is_file():
        return [load_bundle(path)]
    raise LayoutStoreError(message=f"Layout path does not exist: {path}")


def build_registry(bundles: Iterable[LayoutBundle]) -> LayoutRegistry:
    """Assemble a registry from bundles.

    Layouts are registered first; standalone rules are then appended to every
    layout their file types select (all layouts when they name none).

    Args:
        bundles (Iterable[LayoutBundle]): Bundles to merge.

    Raises:
        SchemaDefinitionError: If two bundles define the same file type.

    Returns:
        LayoutRegistry: Registry.
    """
    materialized = list(bundles)
    schemas: dict[FileType, FileSchema] = {}
    for bundle in materialized:
        if bundle.layout is None:
            continue
        file_type = bundle.layout.file_type
        if file_type in schemas:
            raise SchemaDefinitionError(message=f"Layout defined twice (again in {bundle.source})", layout=file_type)
        schemas[file_type] = bundle.layout

    for bundle in materialized:
        for file_type, schema in list(schemas.items()):
            extra = [rule for rule in bundle.rules if not rule.file_types or file_type in rule.file_types]
            if extra:
                schemas[file_type] = schema.with_rules(extra)

    registry = LayoutRegistry(schemas=schemas)
    logger.info(
        "Layout registry loaded",
        extra={
            "file_types": [str(file_type) for file_type in registry.file_types],
            "rule_count": sum(len(schema.rules) for schema in registry.schemas.values()),
        },
    )
    return registry


def load_registry(extra_path: Path | str | None = None) -> LayoutRegistry:
    """Load the bundled layouts plus an optional extra bundle file or directory.

    Args:
        extra_path (Path | str | None): Extra bundles, typically from `RULES_PATH`.

    Returns:
        LayoutRegistry: Registry ready to be shared read-only.
    """
    bundles = bundled_bundles()
    if extra_path is not None:
        bundles.extend(bundles_from_path(Path(extra_path)))
    return build_registry(bundles)


def _migrate_bundle_payload(payload: object, *, source: str) -> dict[str, object]:
    """Unwrap the versioned envelope of a bundle payload.

    Args:
        payload (object): Raw JSON payload.
        source (str): Origin used in error messages.

    Raises:
        LayoutStoreError: If the payload is not an object or has an unsupported version.

    Returns:
        dict[str, object]: Bundle fields.
    """
    if not isinstance(payload, dict):
        raise LayoutStoreError(message=f"Bundle {source} must be a JSON object")

    payload_obj = cast("dict[str, object]", payload)
    version = payload_obj.get("layout_file_version", _LAYOUT_FILE_VERSION)
    if version != _LAYOUT_FILE_VERSION:
        raise LayoutStoreError(message=f"Bundle {source} has unsupported version {version!r}")
    return {key: value for key, value in payload_obj.items() if key in {"layout", "rules"}}
