"""Execution of validator rules against parsed records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from layoutguard.conditions import evaluate, explain, operand_text
from layoutguard.typing.enums import Severity, ViolationKind
from layoutguard.typing.models import Violation

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import date

    from layoutguard.typing.models import ConditionGroup, ConditionLeaf, ParsedRecord, ValidatorRule


class _TemplateValues(dict[str, str]):
    """Mapping that renders unknown placeholders verbatim."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_message(template: str, **values: str) -> str:
    """Render an action message template.

    Supported placeholders are `{field}`, `{value}`, `{expected}`, `{line}` and
    `{code}`; anything else is left as written.

    Args:
        template (str): Message template.
        **values (str): Placeholder values.

    Returns:
        str: Rendered message.
    """
    try:
        return template.format_map(_TemplateValues(values))
    except (ValueError, IndexError, AttributeError):
        return template


def _expected_text(
    leaf: ConditionLeaf | None,
    record: ParsedRecord,
    aggregates: Mapping[str, Any] | None,
) -> str | None:
    if leaf is None:
        return None
    if leaf.value_from is not None:
        return operand_text(record, leaf.value_from, aggregates)
    return leaf.expected


def apply_rule(
    rule: ValidatorRule,
    record: ParsedRecord,
    *,
    aggregates: Mapping[str, Any] | None = None,
    as_of: date | None = None,
) -> Violation | None:
    """Evaluate one rule and build its violation when triggered.

    Args:
        rule (ValidatorRule): Rule to run.
        record (ParsedRecord): Structurally sound record.
        aggregates (Mapping[str, Any] | None): Virtual fields visible to the record.
        as_of (date | None): Evaluation date.

    Returns:
        Violation | None: Violation when the condition holds, otherwise None.
    """
    condition: ConditionLeaf | ConditionGroup = rule.condition
    if not evaluate(condition, record, aggregates=aggregates, as_of=as_of):
        return None

    leaf = explain(condition, record, aggregates=aggregates, as_of=as_of)
    field_name = rule.field or (leaf.field if leaf is not None else None)
    observed = operand_text(record, field_name, aggregates) if field_name else None
    expected = _expected_text(leaf, record, aggregates)
    code = rule.violation_code

    template = rule.action.message
    if leaf is not None and leaf.message:
        template = leaf.message
    message = render_message(
        template,
        field=field_name or "",
        value=observed or "",
        expected=expected or "",
        line=str(record.line_number),
        code=code,
    )
    return Violation(
        line_number=record.line_number,
        code=code,
        kind=ViolationKind.RULE,
        severity=rule.severity,
        message=message,
        field_name=field_name,
        observed_value=observed,
        expected=expected,
    )


def run_rules(
    record: ParsedRecord,
    rules: Iterable[ValidatorRule],
    *,
    aggregates: Mapping[str, Any] | None = None,
    as_of: date | None = None,
) -> list[Violation]:
    """Run rules in order against a record.

    A triggered reject rule flagged `stop_on_trigger` skips the remaining rules.

    Args:
        record (ParsedRecord): Structurally sound record.
        rules (Iterable[ValidatorRule]): Rules already filtered and sorted for the record kind.
        aggregates (Mapping[str, Any] | None): Virtual fields visible to the record.
        as_of (date | None): Evaluation date.

    Returns:
        list[Violation]: Rule violations in run order.
    """
    violations: list[Violation] = []
    for rule in rules:
        violation = apply_rule(rule, record, aggregates=aggregates, as_of=as_of)
        if violation is None:
            continue
        violations.append(violation)
        if rule.stop_on_trigger and violation.severity == Severity.ERROR:
            break
    return violations
