"""Condition trees and validator rules."""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from layoutguard.exceptions import RuleDefinitionError
from layoutguard.typing.enums import (
    ActionKind,
    ConditionOperator,
    DataType,
    FileType,
    LogicalOperator,
    RecordKind,
    Severity,
)

_UNARY_OPERATORS = frozenset(
    {
        ConditionOperator.IS_EMPTY,
        ConditionOperator.IS_NOT_EMPTY,
        ConditionOperator.IS_VALID,
        ConditionOperator.IS_INVALID,
    },
)
_LIST_OPERATORS = frozenset({ConditionOperator.IN_LIST, ConditionOperator.NOT_IN_LIST})

_SEVERITY_BY_ACTION = {
    ActionKind.REJECT: Severity.ERROR,
    ActionKind.WARN: Severity.WARNING,
    ActionKind.LOG: Severity.INFO,
}


class ConditionLeaf(BaseModel):
    """Single comparison between a record field and a literal or another field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["condition"] = "condition"
    field: str = Field(min_length=1)
    data_type: DataType = DataType.STRING
    operator: ConditionOperator
    value: Any = None
    value_to: Any = None
    value_from: str | None = Field(default=None, description="Compare against this field instead of `value`.")
    message: str | None = None

    @model_validator(mode="after")
    def _check_operands(self) -> ConditionLeaf:
        operator = self.operator
        if operator in _UNARY_OPERATORS:
            return self
        if operator == ConditionOperator.BETWEEN:
            if self.value is None or self.value_to is None:
                raise RuleDefinitionError(message=f"'between' on '{self.field}' needs value and value_to")
            return self
        if self.value is None and self.value_from is None:
            raise RuleDefinitionError(message=f"'{operator}' on '{self.field}' needs value or value_from")
        if operator in _LIST_OPERATORS and not isinstance(self.value, (list, tuple, str)):
            raise RuleDefinitionError(message=f"'{operator}' on '{self.field}' needs a list or a CSV string")
        if operator == ConditionOperator.MATCHES_REGEX and self.value is not None:
            try:
                re.compile(str(self.value))
            except re.error as exc:
                raise RuleDefinitionError(message=f"Invalid pattern for '{self.field}': {exc}") from exc
        return self

    @property
    def expected(self) -> str | None:
        """Return a human-readable rendering of the right-hand operand."""
        if self.value_from is not None:
            return self.value_from
        if self.operator == ConditionOperator.BETWEEN:
            return f"{self.value}..{self.value_to}"
        if isinstance(self.value, (list, tuple)):
            return ",".join(str(item) for item in self.value)
        return None if self.value is None else str(self.value)


class ConditionGroup(BaseModel):
    """Logical combination of child nodes.

    An empty AND is true and an empty OR is false; NOT takes exactly one child.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["group"] = "group"
    operator: LogicalOperator = LogicalOperator.AND
    conditions: tuple[ConditionNode, ...] = ()

    @model_validator(mode="after")
    def _check_arity(self) -> ConditionGroup:
        if self.operator == LogicalOperator.NOT and len(self.conditions) != 1:
            raise RuleDefinitionError(message=f"'not' group needs exactly one child, got {len(self.conditions)}")
        return self


ConditionNode = Annotated[ConditionLeaf | ConditionGroup, Field(discriminator="type")]

ConditionGroup.model_rebuild()


def iter_leaves(node: ConditionLeaf | ConditionGroup) -> list[ConditionLeaf]:
    """Return every leaf of a condition tree in document order.

    Args:
        node: Root node.

    Returns:
        list[ConditionLeaf]: Leaves.
    """
    if isinstance(node, ConditionLeaf):
        return [node]
    leaves: list[ConditionLeaf] = []
    for child in node.conditions:
        leaves.extend(iter_leaves(child))
    return leaves


class RuleAction(BaseModel):
    """Effect attached to a rule."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ActionKind = ActionKind.REJECT
    message: str = Field(min_length=1)
    code: str | None = Field(default=None, description="Violation code; defaults to the rule code.")
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def severity(self) -> Severity:
        """Return the severity of violations produced by this action."""
        return _SEVERITY_BY_ACTION[self.kind]


class ValidatorRule(BaseModel):
    """Condition tree bound to file/record filters and an action.

    The action fires when the condition evaluates true.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    name: str
    description: str | None = None
    file_types: tuple[FileType, ...] = Field(default=(), description="Empty means every file type.")
    record_types: tuple[RecordKind, ...] = Field(default=(), description="Empty means every record kind.")
    condition: ConditionNode
    action: RuleAction
    field: str | None = Field(default=None, description="Field reported on violations.")
    category: str | None = None
    regulatory_reference: str | None = None
    enabled: bool = True
    run_order: int = 100
    stop_on_trigger: bool = False

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise RuleDefinitionError(message="Rule code must not be blank")
        return code

    @property
    def violation_code(self) -> str:
        """Return the code carried by violations of this rule."""
        return self.action.code or self.code

    @property
    def severity(self) -> Severity:
        """Return the severity of violations of this rule."""
        return self.action.severity

    def applies_to(self, file_type: FileType, kind: RecordKind) -> bool:
        """Return whether the rule applies to a record kind of a file type.

        Args:
            file_type: Validated file type.
            kind: Record kind.

        Returns:
            bool: True when both filters accept the pair.
        """
        if not self.enabled:
            return False
        if self.file_types and file_type not in self.file_types:
            return False
        return not self.record_types or kind in self.record_types
