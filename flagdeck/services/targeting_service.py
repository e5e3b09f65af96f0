# FlagDeck/flagdeck/services/targeting_service.py
"""Targeting rule matching for FlagDeck.

Decides whether one targeting rule matches one evaluation context. Matching
is pure and synchronous: unrecognized rule types, attributes or operators
never raise, they simply do not match (fail closed).

A stored :class:`~flagdeck.models.flag.TargetingRule` is compiled into one of
the matcher variants below, selected by its ``(type, attribute)`` pair:

- ``UserIdRule``       -> ``ctx.id``
- ``UserEmailRule``    -> ``ctx.email``
- ``UserCountryRule``  -> ``ctx.country``
- ``GroupNameRule``    -> any element of ``ctx.groups``
- ``UnknownRule``      -> never matches
"""


from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple, Type

from flagdeck.models.flag import EvaluationContext, TargetingRule


class Operator(str, Enum):
    """Comparison operators supported by targeting rules."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


RULE_TYPES = ("user", "group")
OPERATORS = tuple(op.value for op in Operator)


_OPERATOR_FUNCS: Dict[Operator, Callable[[str, Sequence[str]], bool]] = {
    Operator.EQUALS: lambda s, values: s in values,
    Operator.NOT_EQUALS: lambda s, values: s not in values,
    Operator.STARTS_WITH: lambda s, values: any(s.startswith(v) for v in values),
    Operator.ENDS_WITH: lambda s, values: any(s.endswith(v) for v in values),
    Operator.CONTAINS: lambda s, values: any(v in s for v in values),
    Operator.NOT_CONTAINS: lambda s, values: all(v not in s for v in values),
}


def _parse_operator(operator: str) -> Optional[Operator]:
    try:
        return Operator(operator)
    except ValueError:
        return None


def evaluate_condition(
    subject: Optional[str], operator: str, values: Sequence[str]
) -> bool:
    """Compare one subject string against the rule's values.

    Args:
        subject: The context attribute (user id, email, country or group).
        operator: Operator name, e.g. ``"ends_with"``.
        values: Comparison strings from the rule.

    Returns:
        bool: ``False`` when the subject is empty or missing (even for
        ``not_equals`` / ``not_contains``) or the operator is unknown;
        otherwise the operator's verdict.
    """
    if not subject:
        return False

    op = _parse_operator(operator)
    if op is None:
        return False

    return _OPERATOR_FUNCS[op](subject, values)


class RuleMatcher:
    """Base class for compiled targeting rules."""

    def __init__(self, operator: str, values: Sequence[str]) -> None:
        self.operator = operator
        self.values: Tuple[str, ...] = tuple(values)

    def matches(self, ctx: EvaluationContext) -> bool:
        raise NotImplementedError


class _UserAttributeRule(RuleMatcher):
    """Matches a single user attribute of the context."""

    def subject(self, ctx: EvaluationContext) -> str:
        raise NotImplementedError

    def matches(self, ctx: EvaluationContext) -> bool:
        return evaluate_condition(self.subject(ctx), self.operator, self.values)


class UserIdRule(_UserAttributeRule):
    def subject(self, ctx: EvaluationContext) -> str:
        return ctx.id


class UserEmailRule(_UserAttributeRule):
    def subject(self, ctx: EvaluationContext) -> str:
        return ctx.email


class UserCountryRule(_UserAttributeRule):
    def subject(self, ctx: EvaluationContext) -> str:
        return ctx.country


class GroupNameRule(RuleMatcher):
    """Matches when any of the context's groups satisfies the operator."""

    def matches(self, ctx: EvaluationContext) -> bool:
        return any(
            evaluate_condition(group, self.operator, self.values)
            for group in ctx.groups
        )


class UnknownRule(RuleMatcher):
    """Unsupported type/attribute combination: never matches."""

    def matches(self, ctx: EvaluationContext) -> bool:
        return False


_RULE_VARIANTS: Dict[Tuple[str, str], Type[RuleMatcher]] = {
    ("user", "id"): UserIdRule,
    ("user", "email"): UserEmailRule,
    ("user", "country"): UserCountryRule,
    ("group", "name"): GroupNameRule,
}


def compile_rule(rule: TargetingRule) -> RuleMatcher:
    """Compile a stored rule into its matcher variant."""
    variant = _RULE_VARIANTS.get((rule.type, rule.attribute), UnknownRule)
    return variant(rule.operator, rule.values)


def rule_matches(rule: TargetingRule, ctx: EvaluationContext) -> bool:
    """Return whether ``rule`` matches the evaluation context ``ctx``."""
    return compile_rule(rule).matches(ctx)
