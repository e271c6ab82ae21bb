"""
Conditional Logic Rules for form fields

A field can carry two condition groups:
    - showWhen:    the field is presented only when the group matches
    - requireWhen: the field becomes required only when the group matches

Each group combines one or more comparison rules with ALL/ANY logic.
Rules reference other fields by their *key*, never by internal field id.

ARCHITECTURAL RULE:
    This module defines rule STRUCTURE only.
    Evaluating a rule against submitted answers belongs to the runtime
    that consumes the canonical model, not here.
"""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class ConditionOperator(Enum):
    """
    Canonical comparison operators.

    The enum value is the persisted token written by the serializer.
    """

    EQ = "eq"
    NEQ = "neq"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    IN = "in"
    NOT_IN = "not_in"


class ConditionMode(Enum):
    """How the rules of a group are combined."""

    ALL = "all"
    ANY = "any"


OPERATOR_LABELS: Dict[ConditionOperator, str] = {
    ConditionOperator.EQ: "Equals",
    ConditionOperator.NEQ: "Not equals",
    ConditionOperator.CONTAINS: "Contains",
    ConditionOperator.NOT_CONTAINS: "Does not contain",
    ConditionOperator.GT: "Greater than",
    ConditionOperator.GTE: "Greater than or equal",
    ConditionOperator.LT: "Less than",
    ConditionOperator.LTE: "Less than or equal",
    ConditionOperator.EXISTS: "Has any value",
    ConditionOperator.NOT_EXISTS: "Is empty",
    ConditionOperator.IN: "In list (comma separated)",
    ConditionOperator.NOT_IN: "Not in list (comma separated)",
}

VALUELESS_OPERATORS = frozenset({ConditionOperator.EXISTS, ConditionOperator.NOT_EXISTS})

_OPERATOR_ALIASES: Dict[str, ConditionOperator] = {
    # Symbols
    "==": ConditionOperator.EQ,
    "=": ConditionOperator.EQ,
    "!=": ConditionOperator.NEQ,
    "<>": ConditionOperator.NEQ,
    ">": ConditionOperator.GT,
    ">=": ConditionOperator.GTE,
    "<": ConditionOperator.LT,
    "<=": ConditionOperator.LTE,
    # Run-together spellings
    "notcontains": ConditionOperator.NOT_CONTAINS,
    "notexists": ConditionOperator.NOT_EXISTS,
    "notin": ConditionOperator.NOT_IN,
    # Long names
    "equals": ConditionOperator.EQ,
    "not_equals": ConditionOperator.NEQ,
    "notequals": ConditionOperator.NEQ,
    "greater_than": ConditionOperator.GT,
    "greater_or_equal": ConditionOperator.GTE,
    "less_than": ConditionOperator.LT,
    "less_or_equal": ConditionOperator.LTE,
    "in_list": ConditionOperator.IN,
    "not_in_list": ConditionOperator.NOT_IN,
}


def normalize_operator(raw: Any) -> ConditionOperator:
    """
    Map any accepted operator spelling to a canonical operator.

    Accepts canonical tokens ("eq", "not_exists"), symbols ("==", "<>", ">="),
    case and spacing variants ("Not Exists", "not-in") and run-together
    spellings ("notExists"). Anything unrecognised falls back to EQ.

    Args:
        raw: Operator token of any type (None, str, enum member, ...)

    Returns:
        ConditionOperator (never raises)
    """
    if isinstance(raw, ConditionOperator):
        return raw
    token = str(raw if raw is not None else "").strip().lower()
    if token in _OPERATOR_ALIASES:
        return _OPERATOR_ALIASES[token]
    token = re.sub(r"[\s\-]+", "_", token)
    if token in _OPERATOR_ALIASES:
        return _OPERATOR_ALIASES[token]
    try:
        return ConditionOperator(token)
    except ValueError:
        logger.debug("operator_defaulted", extra={"operator": raw})
        return ConditionOperator.EQ


def operator_needs_value(operator: ConditionOperator) -> bool:
    """True for every operator except exists/not_exists."""
    return operator not in VALUELESS_OPERATORS


@dataclass(frozen=True)
class ConditionRule:
    """
    A single comparison against another field's answer.

    Example:
        "show this field when country == DE"

        ConditionRule(field_key="country", operator=ConditionOperator.EQ, value="DE")

    Properties:
        field_key: Key of the field whose answer is compared
        operator: ConditionOperator
        value: Comparison value as a string; None for exists/not_exists

    IMPORTANT:
        The rule does not check that field_key exists in the form.
        That is a form-level concern (see formlogic.analyzer).
    """

    field_key: str
    operator: ConditionOperator = ConditionOperator.EQ
    value: Optional[str] = None

    def with_operator(self, operator: Any) -> "ConditionRule":
        """
        Return a copy using a new operator, keeping value presence consistent.

        Switching to exists/not_exists drops the value. Switching to a
        value operator keeps the current value, or starts from "".
        """
        normalized = normalize_operator(operator)
        if not operator_needs_value(normalized):
            return replace(self, operator=normalized, value=None)
        return replace(self, operator=normalized, value=self.value if self.value is not None else "")


@dataclass(frozen=True)
class ConditionGroup:
    """
    One or more rules combined with ALL (and) or ANY (or).

    A group always holds at least one rule. A group that would become
    empty must be removed by its owner instead of being kept around.
    """

    rules: Tuple[ConditionRule, ...]
    mode: ConditionMode = ConditionMode.ALL

    def __post_init__(self) -> None:
        rules = tuple(self.rules)
        if not rules:
            raise ValueError("ConditionGroup requires at least one rule")
        object.__setattr__(self, "rules", rules)

    def referenced_keys(self) -> Set[str]:
        return {rule.field_key for rule in self.rules}

    def without_keys(self, keys: Iterable[str]) -> Optional["ConditionGroup"]:
        """Drop rules targeting any of ``keys``; None if nothing is left."""
        dropped = set(keys)
        remaining = tuple(rule for rule in self.rules if rule.field_key not in dropped)
        if not remaining:
            return None
        return replace(self, rules=remaining)

    def retarget(self, old_key: str, new_key: str) -> "ConditionGroup":
        return replace(
            self,
            rules=tuple(
                replace(rule, field_key=new_key) if rule.field_key == old_key else rule
                for rule in self.rules
            ),
        )
