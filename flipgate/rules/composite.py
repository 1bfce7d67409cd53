"""
Composite rules and rule (de)serialization.

AnyOf and AllOf combine conditions (or other composites). Documents look like:

    {"type": "Any", "value": [
        {"type": "Condition", "value": {"left": ..., "operator": ..., "right": ...}},
        {"type": "All", "value": [...]},
    ]}
"""

from typing import Any

import structlog

from ..actor import Actor
from .condition import Condition

logger = structlog.get_logger()


class _Composite:
    type_name = ""

    def __init__(self, *rules: Any):
        self.rules = tuple(rules)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "value": [rule.to_dict() for rule in self.rules],
        }

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.rules == other.rules

    def __hash__(self) -> int:
        return hash((self.type_name, self.rules))

    def __repr__(self) -> str:
        return f"<{self.type_name} {list(self.rules)!r}>"


class AnyOf(_Composite):
    """Matches when at least one nested rule matches."""

    type_name = "Any"

    def matches(self, feature_key: str, actor: Actor | None) -> bool:
        return any(rule.matches(feature_key, actor) for rule in self.rules)


class AllOf(_Composite):
    """Matches when every nested rule matches. Empty All never matches."""

    type_name = "All"

    def matches(self, feature_key: str, actor: Actor | None) -> bool:
        if not self.rules:
            return False
        return all(rule.matches(feature_key, actor) for rule in self.rules)


class _Never:
    """Stand-in for documents that could not be understood."""

    def __init__(self, document: Any):
        self.document = document

    def matches(self, feature_key: str, actor: Actor | None) -> bool:
        return False

    def to_dict(self) -> Any:
        return self.document


def build_rule(document: dict[str, Any]) -> Condition | AnyOf | AllOf | _Never:
    """
    Build a rule from its document form.

    Malformed documents produce a rule that never matches.
    """
    if not isinstance(document, dict):
        logger.warning("Malformed rule document", document=document)
        return _Never(document)

    rule_type = document.get("type")
    value = document.get("value")

    if rule_type == "Condition" and isinstance(value, dict):
        return Condition(value.get("left"), value.get("operator"), value.get("right"))

    if rule_type in ("Any", "All") and isinstance(value, list):
        rules = [build_rule(item) for item in value]
        return AnyOf(*rules) if rule_type == "Any" else AllOf(*rules)

    logger.warning("Unknown rule type", rule_type=rule_type)
    return _Never(document)
