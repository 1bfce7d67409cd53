"""
Tests for condition rules.
"""

import random

import pytest

from flipgate.actor import Actor
from flipgate.rules import Condition, build_rule, to_number

FEATURE = "search"


def condition(prop: str, operator: str, value_type: str, value) -> Condition:
    return Condition(
        {"type": "property", "value": prop},
        {"type": "operator", "value": operator},
        {"type": value_type, "value": value},
    )


# ============================================================
# EQUALITY
# ============================================================

def test_equal_conditions():
    rule = condition("plan", "eq", "string", "basic")
    other = condition("plan", "eq", "string", "basic")
    assert rule == other
    assert hash(rule) == hash(other)


def test_different_operand_breaks_equality():
    rule = condition("plan", "eq", "string", "basic")
    assert rule != condition("plan", "eq", "string", "premium")
    assert rule != condition("plan", "neq", "string", "basic")
    assert rule != condition("tier", "eq", "string", "basic")


def test_condition_never_equals_other_objects():
    rule = condition("plan", "eq", "string", "basic")
    assert (rule == object()) is False
    assert rule != rule.to_dict()


# ============================================================
# OPERATORS
# ============================================================

@pytest.mark.parametrize(
    "operator, value_type, value, actor_value, expected",
    [
        ("eq", "string", "basic", "basic", True),
        ("eq", "string", "basic", "premium", False),
        ("neq", "string", "basic", "premium", True),
        ("neq", "string", "basic", "basic", False),
        ("gt", "integer", 20, 21, True),
        ("gt", "integer", 20, 20, False),
        ("gte", "integer", 20, 20, True),
        ("gte", "integer", 20, 19, False),
        ("lt", "integer", 21, 20, True),
        ("lt", "integer", 21, 21, False),
        ("lte", "integer", 21, 21, True),
        ("lte", "integer", 21, 22, False),
        ("in", "array", [20, 21, 22], 21, True),
        ("in", "array", [20, 21, 22], 10, False),
        ("nin", "array", [20, 21, 22], 10, True),
        ("nin", "array", [20, 21, 22], 20, False),
    ],
)
def test_operators(operator, value_type, value, actor_value, expected):
    prop = "plan" if value_type == "string" else "age"
    rule = condition(prop, operator, value_type, value)
    actor = Actor("User;1", {prop: actor_value})
    assert rule.matches(FEATURE, actor) is expected


def test_eq_does_not_coerce_types():
    rule = condition("age", "eq", "integer", 21)
    assert rule.matches(FEATURE, Actor("User;1", {"age": 21})) is True
    assert rule.matches(FEATURE, Actor("User;1", {"age": "21"})) is False


@pytest.mark.parametrize(
    "operator, value_type, value, actor_value, expected",
    [
        ("eq", "integer", 1, True, False),
        ("eq", "integer", 0, False, False),
        ("eq", "boolean", True, 1, False),
        ("eq", "boolean", True, True, True),
        ("neq", "integer", 1, True, True),
        ("neq", "boolean", False, False, False),
        ("in", "array", [1, 2], True, False),
        ("in", "array", [True], 1, False),
        ("in", "array", [True, 2], True, True),
        ("nin", "array", [1, 2], True, True),
        ("nin", "array", [0], False, True),
        ("nin", "array", [False], False, False),
        ("eq", "array", [1, 0], [True, False], False),
    ],
)
def test_booleans_never_equal_numbers(operator, value_type, value, actor_value, expected):
    rule = condition("beta", operator, value_type, value)
    assert rule.matches(FEATURE, Actor("User;1", {"beta": actor_value})) is expected


def test_comparison_coerces_numeric_strings():
    rule = condition("age", "gt", "integer", 20)
    assert rule.matches(FEATURE, Actor("User;1", {"age": "21"})) is True
    assert rule.matches(FEATURE, Actor("User;1", {"age": "20.5"})) is True
    assert rule.matches(FEATURE, Actor("User;1", {"age": "old"})) is False


def test_comparison_with_missing_property_never_matches():
    for operator in ("gt", "gte", "lt", "lte"):
        rule = condition("age", operator, "integer", 20)
        assert rule.matches(FEATURE, Actor("User;1")) is False


def test_neq_matches_missing_property():
    rule = condition("plan", "neq", "string", "basic")
    assert rule.matches(FEATURE, Actor("User;1")) is True


def test_in_requires_array_comparator():
    assert condition("age", "in", "integer", 21).matches(
        FEATURE, Actor("User;1", {"age": 21})
    ) is False
    assert condition("age", "nin", "integer", 21).matches(
        FEATURE, Actor("User;1", {"age": 10})
    ) is False


def test_to_number():
    assert to_number(5) == 5
    assert to_number(2.5) == 2.5
    assert to_number("7") == 7
    assert to_number("7.25") == 7.25
    assert to_number(True) is None
    assert to_number(None) is None
    assert to_number([1]) is None


# ============================================================
# SPECIAL OPERANDS
# ============================================================

def test_flipper_id_property():
    rule = condition("flipper_id", "eq", "string", "User;1")
    assert rule.matches(FEATURE, Actor("User;1")) is True
    assert rule.matches(FEATURE, Actor("User;2")) is False


def test_percentage_operator_distribution():
    rule = condition("flipper_id", "percentage", "integer", 25)
    enabled = [
        n for n in range(1, 1001)
        if rule.matches(FEATURE, Actor(f"User;{n}"))
    ]
    assert abs(len(enabled) - 250) <= 30


def test_percentage_operator_is_stable_per_actor():
    rule = condition("flipper_id", "percentage", "integer", 25)
    # User;1 buckets at 7600 for "search"
    assert rule.matches(FEATURE, Actor("User;1")) is False
    assert rule.matches(FEATURE, Actor("User;11")) is True


def test_percentage_operator_ignores_anonymous():
    rule = condition("flipper_id", "percentage", "integer", 100)
    assert rule.matches(FEATURE, Actor.anonymous()) is False


def test_percentage_operator_rejects_bad_comparator():
    rule = condition("flipper_id", "percentage", "integer", 150)
    assert rule.matches(FEATURE, Actor("User;1")) is False


def test_random_operand_is_drawn_per_call():
    random.seed(1234)
    rule = Condition(
        {"type": "random", "value": 100},
        {"type": "operator", "value": "lt"},
        {"type": "integer", "value": 25},
    )
    actor = Actor("User;1")
    results = [rule.matches(FEATURE, actor) for _ in range(10_000)]
    assert abs(sum(results) - 2500) <= 200


# ============================================================
# FAILING CLOSED
# ============================================================

def test_unknown_operator_does_not_match():
    rule = condition("plan", "contains", "string", "bas")
    assert rule.matches(FEATURE, Actor("User;1", {"plan": "basic"})) is False


def test_unknown_operand_type_does_not_match():
    rule = Condition(
        {"type": "property", "value": "plan"},
        {"type": "operator", "value": "eq"},
        {"type": "regex", "value": "^basic$"},
    )
    assert rule.matches(FEATURE, Actor("User;1", {"plan": "basic"})) is False


def test_malformed_operands_do_not_raise():
    rule = Condition(None, "eq", ["basic"])
    assert rule.matches(FEATURE, Actor("User;1")) is False


@pytest.mark.parametrize(
    "left, operator",
    [
        ({"type": "property", "value": ["plan"]}, {"type": "operator", "value": "eq"}),
        ({"type": "property", "value": {"name": "plan"}}, {"type": "operator", "value": "eq"}),
        ({"type": ["property"], "value": "plan"}, {"type": "operator", "value": "eq"}),
        ({"type": "property", "value": "plan"}, {"type": "operator", "value": ["eq"]}),
        ({"type": "property", "value": "plan"}, {"type": "operator", "value": {"op": "eq"}}),
    ],
)
def test_unhashable_operands_do_not_raise(left, operator):
    rule = Condition(left, operator, {"type": "string", "value": "basic"})
    assert rule.matches(FEATURE, Actor("User;1", {"plan": "basic"})) is False
    assert rule.matches(FEATURE, None) is False


def test_unhashable_operands_in_rule_documents_do_not_raise():
    document = {
        "type": "Any",
        "value": [{
            "type": "Condition",
            "value": {
                "left": {"type": "property", "value": "plan"},
                "operator": {"type": "operator", "value": ["eq"]},
                "right": {"type": "string", "value": "basic"},
            },
        }],
    }
    assert build_rule(document).matches(FEATURE, Actor("User;1", {"plan": "basic"})) is False


def test_property_without_actor_resolves_to_none():
    rule = condition("plan", "eq", "string", "basic")
    assert rule.matches(FEATURE, None) is False
