"""
Targeting rules for group predicates.
"""

from .condition import Condition, OPERATORS, resolve_operand, to_number
from .composite import AnyOf, AllOf, build_rule

__all__ = [
    "Condition",
    "OPERATORS",
    "resolve_operand",
    "to_number",
    "AnyOf",
    "AllOf",
    "build_rule",
]
