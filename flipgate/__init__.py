"""
Feature Gate System.

Decides whether a feature is on for an actor using a fixed set of gates:
- Boolean (on for everybody)
- Actors (individual flipper_ids)
- Groups (named predicates registered by the application)
- Percentage of actors (stable per-actor bucketing)
- Percentage of time (global ramp, no actor needed)
- JSON (document stored for the caller's own logic)

Usage Levels:

Level 1 - Global switch:
    service = FeatureService(MemoryAdapter())
    await service.enable("new_dashboard")
    await service.is_enabled("new_dashboard")  # True for everybody

Level 2 - Individual actors:
    await service.enable_actor("search", Actor("User;1"))
    await service.is_enabled("search", Actor("User;1"))

Level 3 - Groups with conditions:
    groups = GroupRegistry()
    groups.register("adults", Condition(
        {"type": "property", "value": "age"},
        {"type": "operator", "value": "gte"},
        {"type": "integer", "value": 18},
    ))
    service = FeatureService(adapter, groups=groups)
    await service.enable_group("checkout", "adults")

Level 4 - Gradual rollout:
    await service.enable_percentage_of_actors("new_ui", 25)

Level 5 - Batched reads:
    snapshot = await service.preload(["search", "new_ui"])
    snapshot.is_enabled("search", actor)
"""

from .actor import Actor
from .bucketing import bucket, percentage_match, percentage_of_time_match
from .exceptions import (
    FlipgateError,
    GroupNotRegisteredError,
    InvalidActorError,
    InvalidPercentageError,
    UnsupportedDataTypeError,
)
from .gates import GATES, DataType, Gate, GateKey
from .groups import GroupRegistry
from .interfaces import Adapter, EvaluationResult, FeatureState, GateValues
from .rules import AllOf, AnyOf, Condition, build_rule
from .service import FeatureService, FeatureSnapshot
from .backends import DatabaseAdapter, MemoryAdapter

__all__ = [
    # Actor
    "Actor",
    # Bucketing
    "bucket",
    "percentage_match",
    "percentage_of_time_match",
    # Errors
    "FlipgateError",
    "GroupNotRegisteredError",
    "InvalidActorError",
    "InvalidPercentageError",
    "UnsupportedDataTypeError",
    # Gates
    "GATES",
    "DataType",
    "Gate",
    "GateKey",
    "GroupRegistry",
    # Interfaces
    "Adapter",
    "EvaluationResult",
    "FeatureState",
    "GateValues",
    # Rules
    "AllOf",
    "AnyOf",
    "Condition",
    "build_rule",
    # Service
    "FeatureService",
    "FeatureSnapshot",
    # Adapters
    "DatabaseAdapter",
    "MemoryAdapter",
]
