"""Recursive evaluation of condition trees against parsed records."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Final

from layoutguard.identifiers import IDENTIFIER_TYPES, Money
from layoutguard.parsing.values import parse_fixed_date
from layoutguard.typing.enums import ConditionOperator, DataType, LogicalOperator
from layoutguard.typing.models import AGGREGATE_PREFIX, ConditionGroup, ConditionLeaf, UnparsedValue

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from layoutguard.typing.models import ParsedRecord

TODAY_TOKEN = "@today"

_TRUE_LITERALS = frozenset({"TRUE", "S", "Y", "1", "T"})
_FALSE_LITERALS = frozenset({"FALSE", "N", "0", "F"})
_NUMERIC_TYPES = frozenset({DataType.NUMBER, DataType.CURRENCY})


class _Unparseable:
    """Marker for operands present but not convertible to the declared type."""

    def __repr__(self) -> str:
        return "UNPARSEABLE"


UNPARSEABLE: Final = _Unparseable()


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _lookup(record: ParsedRecord, name: str, aggregates: Mapping[str, Any] | None) -> tuple[Any, str | None]:
    """Return the typed value and text of a field or aggregate, empty when absent."""
    if name.startswith(AGGREGATE_PREFIX):
        value = (aggregates or {}).get(name)
        if value is None:
            return None, None
        return value, str(value.amount) if isinstance(value, Money) else str(value)
    return record.field_values.get(name), record.field_text.get(name)


def _to_decimal(value: Any) -> Decimal | _Unparseable | None:  # noqa: ANN401
    if value is None:
        return None
    if isinstance(value, UnparsedValue):
        return UNPARSEABLE
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, (bool, date)):
        return UNPARSEABLE
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return UNPARSEABLE
    return number if number.is_finite() else UNPARSEABLE


def _to_date(value: Any, as_of: date) -> date | _Unparseable | None:  # noqa: ANN401
    if value is None:
        return None
    if isinstance(value, UnparsedValue):
        return UNPARSEABLE
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.lower() == TODAY_TOKEN:
        return as_of
    parsed = parse_fixed_date(text)
    if parsed is not None:
        return parsed
    try:
        return date.fromisoformat(text)
    except ValueError:
        return UNPARSEABLE


def _to_bool(value: Any) -> bool | _Unparseable | None:  # noqa: ANN401
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().upper()
    if not text:
        return None
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    return UNPARSEABLE


def coerce(value: Any, text: str | None, data_type: DataType, *, as_of: date | None = None) -> Any:  # noqa: ANN401
    """Coerce an operand to a semantic type.

    Args:
        value: Typed value (field value, aggregate or literal).
        text: Extracted text when the operand is a field.
        data_type: Declared semantic type of the leaf.
        as_of: Evaluation date used by the `@today` literal.

    Returns:
        Any: Coerced operand, None when empty, `UNPARSEABLE` when not convertible.
    """
    if data_type in _NUMERIC_TYPES:
        return _to_decimal(value)
    if data_type == DataType.DATE:
        return _to_date(value, as_of or date.today())
    if data_type == DataType.BOOLEAN:
        return _to_bool(value)

    source = text if text is not None else (None if value is None else str(value))
    if source is None or not source.strip():
        return None
    validator = IDENTIFIER_TYPES.get(data_type)
    if validator is not None:
        return validator.normalize(source)
    return source


def _as_text(operand: Any) -> str:  # noqa: ANN401
    if operand is None or operand is UNPARSEABLE:
        return ""
    if isinstance(operand, date):
        return operand.isoformat()
    return str(operand)


def _equals(left: Any, right: Any) -> bool:  # noqa: ANN401
    if left is UNPARSEABLE or right is UNPARSEABLE:
        return False
    if isinstance(left, str) and isinstance(right, str):
        return left.casefold() == right.casefold()
    return bool(left == right)


def _order(left: Any, right: Any, compare: Callable[[Any, Any], bool]) -> bool:  # noqa: ANN401
    if left is None or right is None or left is UNPARSEABLE or right is UNPARSEABLE:
        return False
    if isinstance(left, str) and isinstance(right, str):
        left, right = left.casefold(), right.casefold()
    try:
        return compare(left, right)
    except TypeError:
        return False


def _matches(text: str, pattern: str) -> bool:
    """Search a pattern in text; a malformed pattern read from a record never matches."""
    try:
        compiled = _compile(pattern)
    except re.error:
        return False
    return compiled.search(text) is not None


def _list_items(value: Any) -> list[Any]:  # noqa: ANN401
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _is_empty(value: Any, text: str | None) -> bool:  # noqa: ANN401
    """Return whether an operand is blank, judging parsed fields by their typed value."""
    if value is None:
        return True
    if isinstance(value, str):
        return not (text if text is not None else value).strip()
    return False


def _is_valid(leaf: ConditionLeaf, value: Any, text: str | None, as_of: date) -> bool:  # noqa: ANN401
    validator = IDENTIFIER_TYPES.get(leaf.data_type)
    if validator is not None:
        source = text if text is not None else (None if value is None else str(value))
        return validator.is_valid(source, as_of=as_of)
    operand = coerce(value, text, leaf.data_type, as_of=as_of)
    return operand is not None and operand is not UNPARSEABLE


def _evaluate_leaf(
    leaf: ConditionLeaf,
    record: ParsedRecord,
    aggregates: Mapping[str, Any] | None,
    as_of: date,
) -> bool:
    """Evaluate one comparison.

    Args:
        leaf: Comparison.
        record: Parsed record.
        aggregates: Virtual fields visible to the record.
        as_of: Evaluation date.

    Returns:
        bool: Comparison result.
    """
    operator = leaf.operator
    value, text = _lookup(record, leaf.field, aggregates)

    if operator in {ConditionOperator.IS_EMPTY, ConditionOperator.IS_NOT_EMPTY}:
        empty = _is_empty(value, text)
        return empty if operator == ConditionOperator.IS_EMPTY else not empty
    if operator in {ConditionOperator.IS_VALID, ConditionOperator.IS_INVALID}:
        valid = _is_valid(leaf, value, text, as_of)
        return valid if operator == ConditionOperator.IS_VALID else not valid

    data_type = leaf.data_type
    left = coerce(value, text, data_type, as_of=as_of)

    if operator in {ConditionOperator.IN_LIST, ConditionOperator.NOT_IN_LIST}:
        items = [coerce(item, None, data_type, as_of=as_of) for item in _list_items(leaf.value)]
        found = left is not None and any(_equals(left, item) for item in items)
        return found if operator == ConditionOperator.IN_LIST else not found

    if operator == ConditionOperator.BETWEEN:
        low = coerce(leaf.value, None, data_type, as_of=as_of)
        high = coerce(leaf.value_to, None, data_type, as_of=as_of)
        return _order(low, left, lambda a, b: a <= b) and _order(left, high, lambda a, b: a <= b)

    if leaf.value_from is not None:
        other_value, other_text = _lookup(record, leaf.value_from, aggregates)
        right = coerce(other_value, other_text, data_type, as_of=as_of)
    else:
        right = coerce(leaf.value, None, data_type, as_of=as_of)

    return _apply(operator, left, right)


def _apply(operator: ConditionOperator, left: Any, right: Any) -> bool:  # noqa: ANN401, PLR0911
    """Apply a binary operator to coerced operands."""
    match operator:
        case ConditionOperator.EQUALS:
            return _equals(left, right)
        case ConditionOperator.NOT_EQUALS:
            return not _equals(left, right)
        case ConditionOperator.GREATER_THAN:
            return _order(left, right, lambda a, b: a > b)
        case ConditionOperator.GREATER_THAN_OR_EQUAL:
            return _order(left, right, lambda a, b: a >= b)
        case ConditionOperator.LESS_THAN:
            return _order(left, right, lambda a, b: a < b)
        case ConditionOperator.LESS_THAN_OR_EQUAL:
            return _order(left, right, lambda a, b: a <= b)
        case ConditionOperator.CONTAINS:
            return _as_text(right).casefold() in _as_text(left).casefold()
        case ConditionOperator.NOT_CONTAINS:
            return _as_text(right).casefold() not in _as_text(left).casefold()
        case ConditionOperator.STARTS_WITH:
            return _as_text(left).casefold().startswith(_as_text(right).casefold())
        case ConditionOperator.ENDS_WITH:
            return _as_text(left).casefold().endswith(_as_text(right).casefold())
        case ConditionOperator.MATCHES_REGEX:
            return _matches(_as_text(left), _as_text(right))
    message = f"Operator '{operator}' is not a binary comparison"
    raise ValueError(message)


def evaluate(
    node: ConditionLeaf | ConditionGroup,
    record: ParsedRecord,
    *,
    aggregates: Mapping[str, Any] | None = None,
    as_of: date | None = None,
) -> bool:
    """Evaluate a condition tree against a record.

    AND stops at the first false child, OR at the first true one. An empty AND
    is true, an empty OR is false, NOT inverts its only child.

    Args:
        node: Root of the tree.
        record: Parsed record.
        aggregates: Virtual fields (running totals) visible to the record.
        as_of: Evaluation date; today when unset.

    Returns:
        bool: True when the condition holds.
    """
    evaluation_date = as_of or date.today()
    if isinstance(node, ConditionLeaf):
        return _evaluate_leaf(node, record, aggregates, evaluation_date)

    children = node.conditions
    if node.operator == LogicalOperator.AND:
        return all(evaluate(child, record, aggregates=aggregates, as_of=evaluation_date) for child in children)
    if node.operator == LogicalOperator.OR:
        return any(evaluate(child, record, aggregates=aggregates, as_of=evaluation_date) for child in children)
    return not evaluate(children[0], record, aggregates=aggregates, as_of=evaluation_date)


def explain(
    node: ConditionLeaf | ConditionGroup,
    record: ParsedRecord,
    *,
    aggregates: Mapping[str, Any] | None = None,
    as_of: date | None = None,
) -> ConditionLeaf | None:
    """Return the leaf that decided a tree's current outcome.

    For a true AND (or false OR) every child agrees, so the first child is
    followed; otherwise the first child with the deciding outcome is.

    Args:
        node: Root of the tree.
        record: Parsed record.
        aggregates: Virtual fields visible to the record.
        as_of: Evaluation date.

    Returns:
        ConditionLeaf | None: Deciding leaf, None for an empty group.
    """
    if isinstance(node, ConditionLeaf):
        return node
    if not node.conditions:
        return None
    if node.operator == LogicalOperator.NOT:
        return explain(node.conditions[0], record, aggregates=aggregates, as_of=as_of)

    deciding = node.operator == LogicalOperator.OR
    for child in node.conditions:
        if evaluate(child, record, aggregates=aggregates, as_of=as_of) == deciding:
            return explain(child, record, aggregates=aggregates, as_of=as_of)
    return explain(node.conditions[0], record, aggregates=aggregates, as_of=as_of)


def operand_text(record: ParsedRecord, name: str, aggregates: Mapping[str, Any] | None = None) -> str | None:
    """Return the display text of a field or aggregate.

    Args:
        record: Parsed record.
        name: Field or aggregate name.
        aggregates: Virtual fields visible to the record.

    Returns:
        str | None: Text, None when absent. Amounts and integers are shown
        without their zero padding.
    """
    value, text = _lookup(record, name, aggregates)
    if isinstance(value, Money):
        return str(value.amount)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return text
