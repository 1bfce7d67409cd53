"""
Gates - the fixed set of mechanisms that can turn a feature on.

Every feature has exactly these six gates. Only their stored values
change. Evaluation dispatches through a closed table with one function
per gate kind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .actor import Actor
from .bucketing import percentage_match, percentage_of_time_match
from .exceptions import UnsupportedDataTypeError

if TYPE_CHECKING:
    from .groups import GroupRegistry
    from .interfaces import GateValues


class GateKey(str, Enum):
    BOOLEAN = "boolean"
    ACTORS = "actors"
    GROUPS = "groups"
    PERCENTAGE_OF_ACTORS = "percentage_of_actors"
    PERCENTAGE_OF_TIME = "percentage_of_time"
    JSON = "json"


class DataType(str, Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    SET = "set"
    JSON = "json"


@dataclass(frozen=True)
class Gate:
    key: GateKey
    data_type: DataType


GATES: dict[GateKey, Gate] = {
    GateKey.BOOLEAN: Gate(GateKey.BOOLEAN, DataType.BOOLEAN),
    GateKey.ACTORS: Gate(GateKey.ACTORS, DataType.SET),
    GateKey.GROUPS: Gate(GateKey.GROUPS, DataType.SET),
    GateKey.PERCENTAGE_OF_ACTORS: Gate(GateKey.PERCENTAGE_OF_ACTORS, DataType.INTEGER),
    GateKey.PERCENTAGE_OF_TIME: Gate(GateKey.PERCENTAGE_OF_TIME, DataType.INTEGER),
    GateKey.JSON: Gate(GateKey.JSON, DataType.JSON),
}

# Order in which gates are consulted. The json gate carries data for the
# caller and never decides.
EVALUATION_ORDER: tuple[GateKey, ...] = (
    GateKey.BOOLEAN,
    GateKey.ACTORS,
    GateKey.GROUPS,
    GateKey.PERCENTAGE_OF_ACTORS,
    GateKey.PERCENTAGE_OF_TIME,
)


def check_supported(gate: Gate) -> Gate:
    """
    Make sure a gate is one of the declared gates.

    Raises:
        UnsupportedDataTypeError: For any other key/data type pairing
    """
    declared = GATES.get(gate.key) if isinstance(gate.key, GateKey) else None
    if declared is None or declared.data_type != gate.data_type:
        raise UnsupportedDataTypeError(
            getattr(gate.key, "value", str(gate.key)),
            getattr(gate.data_type, "value", str(gate.data_type)),
        )
    return gate


# ============================================================
# PER-GATE EVALUATION
# ============================================================

@dataclass(frozen=True)
class GateContext:
    """Everything a gate needs to decide for one (feature, actor) pair."""
    feature_key: str
    values: "GateValues"
    actor: Actor | None
    groups: "GroupRegistry"
    now: float | None = None

    @property
    def actor_id(self) -> str | None:
        return self.actor.flipper_id if self.actor is not None else None


def _boolean_open(ctx: GateContext) -> bool:
    return ctx.values.boolean


def _actors_open(ctx: GateContext) -> bool:
    if ctx.actor_id is None:
        return False
    return ctx.actor_id in ctx.values.actors


def _groups_open(ctx: GateContext) -> bool:
    if ctx.actor_id is None:
        return False
    return any(
        ctx.groups.matches(name, ctx.feature_key, ctx.actor)
        for name in sorted(ctx.values.groups)
    )


def _percentage_of_actors_open(ctx: GateContext) -> bool:
    percentage = ctx.values.percentage_of_actors
    if ctx.actor_id is None or not percentage:
        return False
    return percentage_match(ctx.feature_key, ctx.actor_id, percentage)


def _percentage_of_time_open(ctx: GateContext) -> bool:
    percentage = ctx.values.percentage_of_time
    if not percentage:
        return False
    return percentage_of_time_match(ctx.feature_key, percentage, ctx.now)


def _json_open(ctx: GateContext) -> bool:
    return False


_EVALUATORS: dict[GateKey, Callable[[GateContext], bool]] = {
    GateKey.BOOLEAN: _boolean_open,
    GateKey.ACTORS: _actors_open,
    GateKey.GROUPS: _groups_open,
    GateKey.PERCENTAGE_OF_ACTORS: _percentage_of_actors_open,
    GateKey.PERCENTAGE_OF_TIME: _percentage_of_time_open,
    GateKey.JSON: _json_open,
}


def gate_open(gate_key: GateKey, ctx: GateContext) -> bool:
    """Check whether one gate lets the actor through."""
    return _EVALUATORS[gate_key](ctx)
