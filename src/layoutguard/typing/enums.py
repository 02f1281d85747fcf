"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class FileType(_EnumMixin):
    """Regulated file types with a bundled layout."""

    NOMINA = "nomina"
    CONTABLE = "contable"
    REGULARIZACION = "regularizacion"


class RecordKind(_EnumMixin):
    """Role of a record inside a file."""

    HEADER = "header"
    DETAIL = "detail"
    FOOTER = "footer"


class FieldType(_EnumMixin):
    """Storage type of a fixed-width field."""

    TEXT = "text"
    INTEGER = "integer"
    DATE = "date"
    CURRENCY = "currency"
    BOOLEAN = "boolean"


class DataType(_EnumMixin):
    """Semantic type a condition coerces both operands to."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CURP = "curp"
    RFC = "rfc"
    NSS = "nss"
    ACCOUNT = "account"
    CURRENCY = "currency"


class ConditionOperator(_EnumMixin):
    """Comparison operators available to condition leaves."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    MATCHES_REGEX = "matches_regex"
    IN_LIST = "in_list"
    NOT_IN_LIST = "not_in_list"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    BETWEEN = "between"
    IS_VALID = "is_valid"
    IS_INVALID = "is_invalid"


class LogicalOperator(_EnumMixin):
    """Operators combining condition groups."""

    AND = "and"
    OR = "or"
    NOT = "not"


class ActionKind(_EnumMixin):
    """Effect of a triggered rule."""

    REJECT = "reject"
    WARN = "warn"
    LOG = "log"


class Severity(_EnumMixin):
    """Severity of a violation entry."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ViolationKind(_EnumMixin):
    """Origin of a violation entry."""

    STRUCTURAL = "structural"
    FIELD = "field"
    RULE = "rule"


class IdentifierFailure(_EnumMixin):
    """Reason an identifier failed validation."""

    EMPTY = "empty"
    WRONG_LENGTH = "wrong_length"
    MALFORMED = "malformed"
    BAD_COMPONENT = "bad_component"
    BAD_CHECK_DIGIT = "bad_check_digit"


class Currency(StrEnum):
    """Currencies accepted for monetary amounts."""

    MXN = "MXN"
    USD = "USD"
    EUR = "EUR"
    UDI = "UDI"


class TrailingPolicy(_EnumMixin):
    """Treatment of characters beyond a record's declared length."""

    IGNORE = "ignore"
    BLANK_ONLY = "blank_only"
    REJECT = "reject"


class ValidationStatus(_EnumMixin):
    """Overall verdict for a validated file."""

    PASSED = "passed"
    PASSED_WITH_WARNINGS = "passed_with_warnings"
    FAILED = "failed"
