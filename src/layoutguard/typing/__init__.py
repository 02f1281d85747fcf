"""Typing-centric domain modules."""

from layoutguard.typing.enums import (
    ActionKind,
    ConditionOperator,
    Currency,
    DataType,
    FieldType,
    FileType,
    IdentifierFailure,
    LogicalOperator,
    RecordKind,
    Severity,
    TrailingPolicy,
    ValidationStatus,
    ViolationKind,
)
from layoutguard.typing.models import (
    ConditionGroup,
    ConditionLeaf,
    FieldDefinition,
    FileSchema,
    FileValidationResult,
    ParsedRecord,
    RecordSchema,
    RuleAction,
    ValidationOptions,
    ValidatorRule,
    Violation,
)
from layoutguard.typing.protocol import IdentifierValidator

__all__ = [
    "ActionKind",
    "ConditionGroup",
    "ConditionLeaf",
    "ConditionOperator",
    "Currency",
    "DataType",
    "FieldDefinition",
    "FieldType",
    "FileSchema",
    "FileType",
    "FileValidationResult",
    "IdentifierFailure",
    "IdentifierValidator",
    "LogicalOperator",
    "ParsedRecord",
    "RecordKind",
    "RecordSchema",
    "RuleAction",
    "Severity",
    "TrailingPolicy",
    "ValidationOptions",
    "ValidationStatus",
    "ValidatorRule",
    "Violation",
    "ViolationKind",
]
