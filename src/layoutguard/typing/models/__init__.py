"""Core domain model exports."""

from layoutguard.typing.models.layout import (
    AGGREGATE_PREFIX,
    DETAIL_COUNT,
    RECORD_COUNT,
    FieldDefinition,
    FileSchema,
    RecordSchema,
    sum_aggregate_name,
)
from layoutguard.typing.models.results import (
    FileValidationResult,
    ParsedRecord,
    RecordOutcome,
    UnparsedValue,
    ValidationOptions,
    Violation,
)
from layoutguard.typing.models.rules import (
    ConditionGroup,
    ConditionLeaf,
    ConditionNode,
    RuleAction,
    ValidatorRule,
    iter_leaves,
)

__all__ = [
    "AGGREGATE_PREFIX",
    "DETAIL_COUNT",
    "RECORD_COUNT",
    "ConditionGroup",
    "ConditionLeaf",
    "ConditionNode",
    "FieldDefinition",
    "FileSchema",
    "FileValidationResult",
    "ParsedRecord",
    "RecordOutcome",
    "RecordSchema",
    "RuleAction",
    "UnparsedValue",
    "ValidationOptions",
    "ValidatorRule",
    "Violation",
    "iter_leaves",
    "sum_aggregate_name",
]
