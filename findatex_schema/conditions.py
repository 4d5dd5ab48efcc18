"""
conditions.py - cross-field conditional rules ("B is required if A = 'Y'")

A rule is skipped entirely when its trigger field is absent from the
record; reporting the trigger's own absence is the engine's job.
"""

from __future__ import annotations

from typing import Any, Mapping

from . import utils
from .catalog import Condition, ConditionalRule, Consequence, SchemaCatalog
from .report import ErrorKind, ValidationError

__all__ = ["matches", "evaluate", "evaluate_all"]


def _same(a: Any, b: Any) -> bool:
    """Equality that never treats ``True`` as ``1``."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def matches(condition: Condition, record: Mapping[str, Any]) -> bool:
    """True iff the trigger field is present and satisfies *condition*."""
    value = record.get(condition.field)
    if utils._is_missing(value):
        return False
    if condition.op == "present":
        return not utils._is_blank(value)
    return any(_same(value, v) for v in condition.values)


def evaluate(rule: ConditionalRule, record: Mapping[str, Any]) -> list[ValidationError]:
    if not matches(rule.condition, record):
        return []

    trigger = rule.condition.field
    because = f"because {trigger} = {record[trigger]!r}"
    value = record.get(rule.target)
    blank = utils._is_blank(value)

    if rule.consequence is Consequence.REQUIRED:
        if not blank:
            return []
        message = f"{rule.target}: required {because}"
    elif rule.consequence is Consequence.FORBIDDEN:
        if blank:
            return []
        message = f"{rule.target}: not allowed {because}"
    else:
        if not blank and _same(value, rule.expected):
            return []
        message = f"{rule.target}: must equal {rule.expected!r} {because}"

    return [
        ValidationError(
            field=rule.target,
            kind=ErrorKind.CONDITIONAL_REQUIREMENT_VIOLATION,
            message=message,
            triggers=(trigger,),
            value=None if utils._is_missing(value) else value,
        )
    ]


def evaluate_all(catalog: SchemaCatalog, record: Mapping[str, Any]) -> list[ValidationError]:
    """Run every catalog rule against *record* in declaration order."""
    errors: list[ValidationError] = []
    for rule in catalog.rules:
        errors.extend(evaluate(rule, record))
    return errors
