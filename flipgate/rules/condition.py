"""
Condition - one property/operator/comparator rule.

Example:
    Condition(
        {"type": "property", "value": "plan"},
        {"type": "operator", "value": "eq"},
        {"type": "string", "value": "basic"},
    )

Evaluation never raises. Anything the evaluator cannot make sense of
(unknown operand type, unknown operator, wrong comparator shape) is a
non-match.
"""

import json
import random
from typing import Any, Callable

import structlog

from ..actor import Actor
from ..bucketing import percentage_match

logger = structlog.get_logger()


class Unresolved:
    """Sentinel for operands that could not be resolved."""

    def __repr__(self) -> str:
        return "<unresolved>"


UNRESOLVED = Unresolved()

LITERAL_TYPES = {"string", "integer", "array", "boolean"}

# Properties answered by the actor itself rather than its property bag
SPECIAL_PROPERTIES = {"flipper_id"}


# ============================================================
# OPERAND RESOLUTION
# ============================================================

def resolve_operand(operand: dict[str, Any], actor: Actor | None) -> Any:
    """Resolve a {type, value} operand against an actor."""
    if not isinstance(operand, dict):
        return UNRESOLVED

    operand_type = operand.get("type")
    value = operand.get("value")
    if not isinstance(operand_type, str):
        return UNRESOLVED

    if operand_type == "property":
        if not isinstance(value, str):
            return UNRESOLVED
        if actor is None:
            return None
        if value in SPECIAL_PROPERTIES:
            return getattr(actor, value)
        return actor.properties.get(value)

    if operand_type == "random":
        upper = value if isinstance(value, int) and not isinstance(value, bool) else 100
        if upper < 1:
            return UNRESOLVED
        return random.randrange(upper)

    if operand_type in LITERAL_TYPES:
        return value

    return UNRESOLVED


def to_number(value: Any) -> int | float | None:
    """Coerce an operand to a number, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            return None
    return None


# ============================================================
# OPERATORS
# ============================================================

def _compare(check: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def operator(left: Any, right: Any, **_: Any) -> bool:
        left_number = to_number(left)
        right_number = to_number(right)
        if left_number is None or right_number is None:
            return False
        return check(left_number, right_number)
    return operator


def _same(left: Any, right: Any) -> bool:
    """Equality that keeps booleans apart from the numbers 0 and 1."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(map(_same, left, right))
    return left == right


def _eq(left: Any, right: Any, **_: Any) -> bool:
    return _same(left, right)


def _neq(left: Any, right: Any, **_: Any) -> bool:
    return not _eq(left, right)


def _in(left: Any, right: Any, **_: Any) -> bool:
    return isinstance(right, list) and any(_same(left, item) for item in right)


def _nin(left: Any, right: Any, **_: Any) -> bool:
    return isinstance(right, list) and not any(_same(left, item) for item in right)


def _percentage(left: Any, right: Any, *, feature_key: str) -> bool:
    if left is None or isinstance(right, bool) or not isinstance(right, int):
        return False
    if right < 0 or right > 100:
        return False
    return percentage_match(feature_key, str(left), right)


OPERATORS: dict[str, Callable[..., bool]] = {
    "eq": _eq,
    "neq": _neq,
    "gt": _compare(lambda left, right: left > right),
    "gte": _compare(lambda left, right: left >= right),
    "lt": _compare(lambda left, right: left < right),
    "lte": _compare(lambda left, right: left <= right),
    "in": _in,
    "nin": _nin,
    "percentage": _percentage,
}


# ============================================================
# CONDITION
# ============================================================

class Condition:
    """
    A single rule comparing an actor property to a literal.

    Two conditions are equal when all three operands are deeply equal.
    """

    def __init__(
        self,
        left: dict[str, Any],
        operator: dict[str, Any],
        right: dict[str, Any],
    ):
        self.left = left
        self.operator = operator
        self.right = right

    @property
    def operator_name(self) -> str | None:
        if isinstance(self.operator, dict):
            name = self.operator.get("value")
            if isinstance(name, str):
                return name
        return None

    def matches(self, feature_key: str, actor: Actor | None) -> bool:
        """Check whether the actor satisfies this condition."""
        operator = OPERATORS.get(self.operator_name)
        if operator is None:
            logger.warning(
                "Unknown condition operator",
                feature=feature_key,
                operator=self.operator,
            )
            return False

        left = resolve_operand(self.left, actor)
        right = resolve_operand(self.right, actor)
        if left is UNRESOLVED or right is UNRESOLVED:
            logger.warning(
                "Unresolved condition operand",
                feature=feature_key,
                left=self.left,
                right=self.right,
            )
            return False

        return operator(left, right, feature_key=feature_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "Condition",
            "value": {
                "left": self.left,
                "operator": self.operator,
                "right": self.right,
            },
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return (
            self.left == other.left
            and self.operator == other.operator
            and self.right == other.right
        )

    def __hash__(self) -> int:
        return hash(json.dumps(self.to_dict(), sort_keys=True, default=str))

    def __repr__(self) -> str:
        return f"<Condition {self.left!r} {self.operator_name} {self.right!r}>"
