"""Fixed-width layout models: fields, record types and file types."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from layoutguard.exceptions import RuleDefinitionError, SchemaDefinitionError
from layoutguard.typing.enums import Currency, FieldType, FileType, RecordKind
from layoutguard.typing.models.rules import ValidatorRule, iter_leaves

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

AGGREGATE_PREFIX = "@"
DETAIL_COUNT = "@detail_count"
RECORD_COUNT = "@record_count"

_NUMERIC_TYPES = frozenset({FieldType.INTEGER, FieldType.CURRENCY})


def sum_aggregate_name(field_name: str) -> str:
    """Return the virtual field name holding the running sum of a detail field."""
    return f"{AGGREGATE_PREFIX}sum.{field_name}"


class FieldDefinition(BaseModel):
    """One field of a record: a 1-indexed inclusive character range and its constraints."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    label: str | None = None
    start: int = Field(ge=1)
    end: int = Field(ge=1)
    length: int | None = Field(default=None, description="Optional; must equal end - start + 1.")
    type: FieldType = FieldType.TEXT
    required: bool = False
    trim: bool = True
    pad: str | None = Field(default=None, min_length=1, max_length=1)
    pattern: str | None = None
    allowed_values: tuple[str, ...] = ()
    not_future: bool = Field(default=False, description="Dates must not be after the evaluation date.")
    description: str | None = None

    _compiled: re.Pattern[str] | None = PrivateAttr(default=None)

    @model_validator(mode="after")
    def _check_range(self) -> FieldDefinition:
        if self.end < self.start:
            raise SchemaDefinitionError(message=f"Field '{self.name}' ends ({self.end}) before it starts ({self.start})")
        if self.length is not None and self.length != self.width:
            raise SchemaDefinitionError(
                message=f"Field '{self.name}' declares length {self.length} but spans {self.width} characters",
            )
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise SchemaDefinitionError(message=f"Invalid pattern for field '{self.name}': {exc}") from exc
        return self

    def model_post_init(self, __context: object, /) -> None:
        """Compile the value pattern once."""
        if self.pattern is not None:
            self._compiled = re.compile(self.pattern)

    @property
    def width(self) -> int:
        """Return the number of characters the field spans."""
        return self.end - self.start + 1

    @property
    def compiled_pattern(self) -> re.Pattern[str] | None:
        """Return the compiled value pattern."""
        return self._compiled

    @property
    def pad_char(self) -> str:
        """Return the padding character (zero for numerics, space otherwise)."""
        if self.pad is not None:
            return self.pad
        return "0" if self.type in _NUMERIC_TYPES else " "

    def render(self, text: str) -> str:
        """Pad a value to the field width, right-aligned for numerics.

        Args:
            text: Value text.

        Raises:
            ValueError: If the value is wider than the field.

        Returns:
            str: Fixed-width slice.
        """
        if len(text) > self.width:
            message = f"Value for '{self.name}' is {len(text)} characters, field holds {self.width}"
            raise ValueError(message)
        if self.type in _NUMERIC_TYPES:
            return text.rjust(self.width, self.pad_char)
        return text.ljust(self.width, self.pad_char)


class RecordSchema(BaseModel):
    """Ordered fields of one record type, routed by its discriminator value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str = Field(min_length=1, description="Discriminator value, e.g. '01'.")
    kind: RecordKind
    line_length: int = Field(ge=1)
    fields: tuple[FieldDefinition, ...]
    description: str | None = None

    _by_name: dict[str, FieldDefinition] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _check_layout(self) -> RecordSchema:
        label = f"record {self.code}"
        if not self.fields:
            raise SchemaDefinitionError(message="Record declares no fields", layout=label)

        previous_end = 0
        names: set[str] = set()
        for definition in self.fields:
            if definition.name in names:
                raise SchemaDefinitionError(message=f"Duplicate field '{definition.name}'", layout=label)
            names.add(definition.name)
            if definition.start <= previous_end:
                raise SchemaDefinitionError(
                    message=f"Field '{definition.name}' starts at {definition.start}, overlapping offset {previous_end}",
                    layout=label,
                )
            previous_end = definition.end

        total = sum(definition.width for definition in self.fields)
        if total != self.line_length or previous_end != self.line_length:
            raise SchemaDefinitionError(
                message=f"Fields cover {total} characters ending at {previous_end}, line length is {self.line_length}",
                layout=label,
            )

        discriminator = self.fields[0]
        if discriminator.start != 1 or discriminator.width != len(self.code):
            raise SchemaDefinitionError(
                message=f"First field must be the {len(self.code)}-character discriminator at offset 1",
                layout=label,
            )

        return self

    def model_post_init(self, __context: object, /) -> None:
        """Index fields by name."""
        self._by_name = {definition.name: definition for definition in self.fields}

    @property
    def discriminator(self) -> FieldDefinition:
        """Return the discriminator field."""
        return self.fields[0]

    @property
    def field_names(self) -> tuple[str, ...]:
        """Return field names in layout order."""
        return tuple(definition.name for definition in self.fields)

    def field(self, name: str) -> FieldDefinition | None:
        """Return a field definition by name."""
        return self._by_name.get(name)

    def render(self, values: Mapping[str, str]) -> str:
        """Compose a fixed-width line; missing fields are padded blanks.

        Args:
            values: Field text keyed by field name.

        Raises:
            ValueError: If a value is wider than its field or names an unknown field.

        Returns:
            str: Line of exactly `line_length` characters.
        """
        unknown = set(values) - set(self._by_name)
        if unknown:
            message = f"Unknown fields for record {self.code}: {', '.join(sorted(unknown))}"
            raise ValueError(message)
        parts: list[str] = []
        for definition in self.fields:
            text = values.get(definition.name)
            if text is None and definition is self.discriminator:
                text = self.code
            parts.append(definition.render(text) if text else " " * definition.width)
        return "".join(parts)


class FileSchema(BaseModel):
    """Record types and rules of one regulated file type.

    Built once from static layout data and shared read-only afterwards.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    file_type: FileType
    code: str = Field(description="Regulator file code, e.g. '0100'.")
    name: str
    description: str | None = None
    currency: Currency = Currency.MXN
    header_tag: str | None = Field(default=None, description="Expected value of the header's tag field.")
    tag_field: str = "file_type"
    summed_fields: tuple[str, ...] = ()
    records: tuple[RecordSchema, ...]
    rules: tuple[ValidatorRule, ...] = ()

    _by_code: dict[str, RecordSchema] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _check_file(self) -> FileSchema:
        label = str(self.file_type)
        if not self.records:
            raise SchemaDefinitionError(message="File declares no record types", layout=label)

        by_code: dict[str, RecordSchema] = {}
        for record in self.records:
            if record.code in by_code:
                raise SchemaDefinitionError(message=f"Duplicate record code '{record.code}'", layout=label)
            by_code[record.code] = record

        first = self.records[0].discriminator
        for record in self.records[1:]:
            if (record.discriminator.start, record.discriminator.end) != (first.start, first.end):
                raise SchemaDefinitionError(
                    message=f"Record {record.code} reads its discriminator at a different offset",
                    layout=label,
                )

        kinds = [record.kind for record in self.records]
        if RecordKind.DETAIL not in kinds:
            raise SchemaDefinitionError(message="File declares no detail record", layout=label)
        for kind in (RecordKind.HEADER, RecordKind.FOOTER):
            if kinds.count(kind) > 1:
                raise SchemaDefinitionError(message=f"File declares more than one {kind} record", layout=label)

        self._check_summed_fields(label)
        self._check_rules()
        return self

    def model_post_init(self, __context: object, /) -> None:
        """Index record schemas by discriminator value."""
        self._by_code = {record.code: record for record in self.records}

    def _check_summed_fields(self, label: str) -> None:
        for name in self.summed_fields:
            definitions = [record.field(name) for record in self.details]
            if not any(definition is not None and definition.type in _NUMERIC_TYPES for definition in definitions):
                raise SchemaDefinitionError(
                    message=f"Summed field '{name}' is not a numeric detail field",
                    layout=label,
                )

    def _check_rules(self) -> None:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.code in seen:
                raise RuleDefinitionError(message="Duplicate rule code", rule_code=rule.code)
            seen.add(rule.code)
            if rule.file_types and self.file_type not in rule.file_types:
                continue
            known = self.known_fields(rule.record_types)
            references = [rule.field] if rule.field else []
            for leaf in iter_leaves(rule.condition):
                references.append(leaf.field)
                if leaf.value_from is not None:
                    references.append(leaf.value_from)
            for name in references:
                if name not in known:
                    raise RuleDefinitionError(message=f"Unknown field '{name}'", rule_code=rule.code)

    @property
    def discriminator_range(self) -> tuple[int, int]:
        """Return the 1-indexed inclusive discriminator offsets."""
        discriminator = self.records[0].discriminator
        return discriminator.start, discriminator.end

    @property
    def header(self) -> RecordSchema | None:
        """Return the header record schema."""
        return next((record for record in self.records if record.kind == RecordKind.HEADER), None)

    @property
    def footer(self) -> RecordSchema | None:
        """Return the footer record schema."""
        return next((record for record in self.records if record.kind == RecordKind.FOOTER), None)

    @property
    def details(self) -> tuple[RecordSchema, ...]:
        """Return the detail record schemas."""
        return tuple(record for record in self.records if record.kind == RecordKind.DETAIL)

    @property
    def aggregate_names(self) -> tuple[str, ...]:
        """Return the virtual fields exposed to footer rules."""
        return (DETAIL_COUNT, RECORD_COUNT, *(sum_aggregate_name(name) for name in self.summed_fields))

    def record_for(self, code: str) -> RecordSchema | None:
        """Return the record schema routed by a discriminator value."""
        return self._by_code.get(code)

    def known_fields(self, kinds: Iterable[RecordKind] = ()) -> set[str]:
        """Return field names visible to rules scoped to record kinds.

        Args:
            kinds: Record kinds; empty means every kind.

        Returns:
            set[str]: Field names, plus aggregates when footers are in scope.
        """
        scope = set(kinds) or set(RecordKind)
        names: set[str] = set()
        for record in self.records:
            if record.kind in scope:
                names.update(record.field_names)
        if RecordKind.FOOTER in scope:
            names.update(self.aggregate_names)
        return names

    def with_rules(self, rules: Iterable[ValidatorRule]) -> FileSchema:
        """Return a copy with extra rules appended, revalidated.

        Args:
            rules: Rules to append.

        Returns:
            FileSchema: New file schema.
        """
        payload = dict(self)
        payload["rules"] = (*self.rules, *rules)
        return FileSchema(**payload)
