"""
Feature Gate Interfaces - Core abstractions.

These define the storage contract every adapter implements and the value
types that flow between adapters, the evaluator and callers.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from .gates import Gate, GateKey


# ============================================================
# GATE VALUES
# ============================================================

def default_gate_values() -> dict[str, Any]:
    """Raw values of a feature with nothing stored."""
    return {
        GateKey.BOOLEAN.value: None,
        GateKey.ACTORS.value: set(),
        GateKey.GROUPS.value: set(),
        GateKey.PERCENTAGE_OF_ACTORS.value: None,
        GateKey.PERCENTAGE_OF_TIME.value: None,
        GateKey.JSON.value: None,
    }


def default_gate_values_map() -> defaultdict[str, dict[str, Any]]:
    """Mapping of feature key to raw values; unknown keys read as empty."""
    return defaultdict(default_gate_values)


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class GateValues:
    """
    Decoded gate values for one feature.

    Adapters hand back raw values (``"true"``, ``"25"``, sets of strings,
    decoded JSON). This is the typed view the evaluator works on.
    """
    boolean: bool = False
    actors: frozenset[str] = frozenset()
    groups: frozenset[str] = frozenset()
    percentage_of_actors: int | None = None
    percentage_of_time: int | None = None
    json: Any = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "GateValues":
        raw = raw or {}
        boolean = raw.get(GateKey.BOOLEAN.value)
        return cls(
            boolean=boolean is True or boolean == "true",
            actors=frozenset(raw.get(GateKey.ACTORS.value) or ()),
            groups=frozenset(raw.get(GateKey.GROUPS.value) or ()),
            percentage_of_actors=_to_int(raw.get(GateKey.PERCENTAGE_OF_ACTORS.value)),
            percentage_of_time=_to_int(raw.get(GateKey.PERCENTAGE_OF_TIME.value)),
            json=raw.get(GateKey.JSON.value),
        )

    @property
    def is_empty(self) -> bool:
        return not self.enabled_gates()

    def enabled_gates(self) -> list[GateKey]:
        """Gates holding a value that can let somebody through."""
        enabled = []
        if self.boolean:
            enabled.append(GateKey.BOOLEAN)
        if self.actors:
            enabled.append(GateKey.ACTORS)
        if self.groups:
            enabled.append(GateKey.GROUPS)
        if self.percentage_of_actors:
            enabled.append(GateKey.PERCENTAGE_OF_ACTORS)
        if self.percentage_of_time:
            enabled.append(GateKey.PERCENTAGE_OF_TIME)
        if self.json is not None:
            enabled.append(GateKey.JSON)
        return enabled

    def to_dict(self) -> dict[str, Any]:
        return {
            GateKey.BOOLEAN.value: self.boolean,
            GateKey.ACTORS.value: sorted(self.actors),
            GateKey.GROUPS.value: sorted(self.groups),
            GateKey.PERCENTAGE_OF_ACTORS.value: self.percentage_of_actors,
            GateKey.PERCENTAGE_OF_TIME.value: self.percentage_of_time,
            GateKey.JSON.value: self.json,
        }


class FeatureState(str, Enum):
    ON = "on"
    OFF = "off"
    CONDITIONAL = "conditional"


@dataclass
class EvaluationResult:
    """
    Result of feature evaluation.

    Includes the decision, the gate that decided it and a reason for
    debugging/logging.
    """
    enabled: bool
    reason: str
    feature_key: str
    gate: GateKey | None = None
    actor_id: str | None = None

    @classmethod
    def yes(
        cls,
        feature_key: str,
        gate: GateKey,
        actor_id: str | None = None,
    ) -> "EvaluationResult":
        return cls(
            enabled=True,
            reason=f"Gate {gate.value} open",
            feature_key=feature_key,
            gate=gate,
            actor_id=actor_id,
        )

    @classmethod
    def no(cls, feature_key: str, reason: str, actor_id: str | None = None) -> "EvaluationResult":
        return cls(enabled=False, reason=reason, feature_key=feature_key, actor_id=actor_id)


# ============================================================
# ADAPTER CONTRACT
# ============================================================

class Adapter(ABC):
    """
    Abstract storage for features and gate values.

    Implementations:
    - MemoryAdapter: In-memory (dev/testing)
    - DatabaseAdapter: SQLAlchemy (PostgreSQL, SQLite)

    Guarantees every implementation must keep:
    - Reads return whole features; no feature is ever seen with only some
      of its gates fetched.
    - add() and set-member enable() are idempotent, also when racing a
      duplicate call.
    - remove() drops the feature and its gate values together.
    - Enabling the boolean gate replaces every other gate value of that
      feature in the same write; disabling it clears the feature.
    - Single-value writes (boolean, integer, json) register the feature and
      are last-writer-wins, also between concurrent transactions: the
      database adapter locks the feature row (SELECT ... FOR UPDATE) before
      replacing the value, so at most one value per gate survives.
    - Gates outside the declared set raise UnsupportedDataTypeError.
    """

    name: str = "adapter"

    @abstractmethod
    async def features(self) -> set[str]:
        """Keys of all known features."""
        pass

    @abstractmethod
    async def add(self, key: str) -> bool:
        """Add a feature to the set of known features."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove a feature and all of its gate values."""
        pass

    @abstractmethod
    async def clear(self, key: str) -> bool:
        """Delete every gate value of a feature, keeping the feature."""
        pass

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any]:
        """Raw gate values for one feature (empty defaults if unknown)."""
        pass

    @abstractmethod
    async def get_multi(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Raw gate values for exactly the requested features."""
        pass

    @abstractmethod
    async def get_all(self) -> defaultdict[str, dict[str, Any]]:
        """Raw gate values for every known feature."""
        pass

    @abstractmethod
    async def enable(self, key: str, gate: Gate, value: Any) -> bool:
        """
        Enable a gate for a value.

        boolean: replaces all gate values with "true"
        integer: overwrites the stored percentage
        set: ensures the member is present
        json: overwrites the stored document
        """
        pass

    @abstractmethod
    async def disable(self, key: str, gate: Gate, value: Any) -> bool:
        """
        Disable a gate for a value.

        boolean: clears the feature
        integer/json: deletes the stored value
        set: removes exactly that member
        """
        pass
