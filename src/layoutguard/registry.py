"""Immutable registry of file layouts and their rules."""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, model_validator

from layoutguard.exceptions import RuleDefinitionError, UnknownFileTypeError
from layoutguard.typing.enums import FileType, RecordKind
from layoutguard.typing.models import FileSchema

if TYPE_CHECKING:
    from layoutguard.typing.models import ValidatorRule

type RulePlan = dict[RecordKind, tuple[ValidatorRule, ...]]


class LayoutRegistry(BaseModel):
    """File schemas keyed by file type, loaded once and shared read-only."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    schemas: dict[FileType, FileSchema]

    @model_validator(mode="after")
    def _check_rule_codes(self) -> LayoutRegistry:
        seen: dict[str, ValidatorRule] = {}
        for schema in self.schemas.values():
            for rule in schema.rules:
                known = seen.setdefault(rule.code, rule)
                if known != rule:
                    raise RuleDefinitionError(message="Code reused by a different rule", rule_code=rule.code)
        return self

    @property
    def file_types(self) -> tuple[FileType, ...]:
        """Return registered file types."""
        return tuple(self.schemas)

    def get(self, file_type: FileType | str) -> FileSchema:
        """Return the schema of a file type.

        Args:
            file_type: File type or its name.

        Raises:
            UnknownFileTypeError: If no layout is registered for it.

        Returns:
            FileSchema: File schema.
        """
        try:
            key = FileType.from_str(file_type) if isinstance(file_type, str) else file_type
        except ValueError as exc:
            raise UnknownFileTypeError(file_type=str(file_type)) from exc
        schema = self.schemas.get(key)
        if schema is None:
            raise UnknownFileTypeError(file_type=str(file_type))
        return schema

    def rules_for(self, file_type: FileType) -> RulePlan:
        """Return enabled rules grouped by record kind, in run order.

        Args:
            file_type: Validated file type.

        Returns:
            RulePlan: Rules per record kind.
        """
        schema = self.get(file_type)
        ordered = sorted(schema.rules, key=lambda rule: (rule.run_order, rule.code))
        return {kind: tuple(rule for rule in ordered if rule.applies_to(file_type, kind)) for kind in RecordKind}

    def detect_file_type(self, header_line: str | None, file_name: str | None = None) -> FileType | None:
        """Detect a file type from its header line, falling back to the file name.

        Args:
            header_line: First line of the file.
            file_name: File name whose extension may carry the regulator file code.

        Returns:
            FileType | None: Detected file type.
        """
        if header_line:
            line = header_line.rstrip("\r\n")
            for schema in self.schemas.values():
                header = schema.header
                if header is None or schema.header_tag is None:
                    continue
                tag_field = header.field(schema.tag_field)
                if tag_field is None or not line.startswith(header.code):
                    continue
                if line[tag_field.start - 1 : tag_field.end].strip().upper() == schema.header_tag.upper():
                    return schema.file_type

        if file_name:
            extension = PurePath(file_name).suffix.lstrip(".")
            for schema in self.schemas.values():
                if extension and extension == schema.code:
                    return schema.file_type
        return None
