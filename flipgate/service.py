"""
Feature Service - Main entry point.

Reads gate values through the adapter and hands them to the pure
evaluator. Mutations pass through to the adapter.

Evaluation order (first open gate wins):
1. boolean
2. actors
3. groups
4. percentage_of_actors
5. percentage_of_time
"""

import time
from typing import Any, Callable, Iterable, Mapping

import structlog

from .actor import Actor
from .bucketing import validate_percentage
from .evaluator import evaluate
from .exceptions import GroupNotRegisteredError, InvalidActorError
from .gates import GATES, GateKey
from .groups import GroupRegistry
from .interfaces import Adapter, EvaluationResult, FeatureState, GateValues

logger = structlog.get_logger()


class FeatureSnapshot:
    """
    Gate values for a batch of features, read once.

    Evaluations against a snapshot never touch storage. Features that were
    not part of the batch read as having no gates enabled.
    """

    def __init__(
        self,
        values: Mapping[str, GateValues],
        groups: GroupRegistry,
        clock: Callable[[], float] = time.time,
    ):
        self._values = dict(values)
        self._groups = groups
        self._clock = clock

    def keys(self) -> set[str]:
        return set(self._values)

    def gate_values(self, key: str) -> GateValues:
        return self._values.get(key) or GateValues()

    def evaluate(self, key: str, actor: Any | None = None) -> EvaluationResult:
        return evaluate(key, self.gate_values(key), Actor.wrap(actor), self._groups, self._clock())

    def is_enabled(self, key: str, actor: Any | None = None) -> bool:
        return self.evaluate(key, actor).enabled


class FeatureService:
    """
    Feature gate service.

    Usage:
        service = FeatureService(MemoryAdapter(), groups=groups)

        await service.enable_percentage_of_actors("search", 25)
        if await service.is_enabled("search", Actor("User;1")):
            ...
    """

    def __init__(
        self,
        adapter: Adapter,
        groups: GroupRegistry | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.adapter = adapter
        self.groups = groups if groups is not None else GroupRegistry()
        self.clock = clock

    # ============================================================
    # EVALUATION
    # ============================================================

    async def is_enabled(self, key: str, actor: Any | None = None) -> bool:
        """
        Check if a feature is enabled.

        Args:
            key: Feature key
            actor: Actor, or any object with flipper_id/id (optional)

        Returns:
            True if any gate lets the actor through
        """
        result = await self.evaluate(key, actor)
        return result.enabled

    async def evaluate(self, key: str, actor: Any | None = None) -> EvaluationResult:
        """
        Evaluate a feature with detailed result.

        Returns EvaluationResult with the deciding gate and a reason.
        """
        values = await self.get_gate_values(key)
        return evaluate(key, values, Actor.wrap(actor), self.groups, self.clock())

    # ============================================================
    # READS
    # ============================================================

    async def get_gate_values(self, key: str) -> GateValues:
        return GateValues.from_dict(await self.adapter.get(key))

    async def get_gate_values_multi(self, keys: Iterable[str]) -> dict[str, GateValues]:
        raw = await self.adapter.get_multi(list(keys))
        return {key: GateValues.from_dict(values) for key, values in raw.items()}

    async def get_all_gate_values(self) -> dict[str, GateValues]:
        raw = await self.adapter.get_all()
        return {key: GateValues.from_dict(values) for key, values in raw.items()}

    async def preload(self, keys: Iterable[str]) -> FeatureSnapshot:
        """Read several features in one batch for repeated evaluation."""
        return FeatureSnapshot(await self.get_gate_values_multi(keys), self.groups, self.clock)

    async def preload_all(self) -> FeatureSnapshot:
        return FeatureSnapshot(await self.get_all_gate_values(), self.groups, self.clock)

    async def features(self) -> set[str]:
        return await self.adapter.features()

    async def exists(self, key: str) -> bool:
        return key in await self.adapter.features()

    async def state(self, key: str) -> FeatureState:
        """
        Summarize a feature.

        on: everybody gets it (boolean, or a percentage gate at 100)
        off: no gate holds a value
        conditional: anything in between
        """
        values = await self.get_gate_values(key)
        if (
            values.boolean
            or values.percentage_of_actors == 100
            or values.percentage_of_time == 100
        ):
            return FeatureState.ON
        if values.is_empty:
            return FeatureState.OFF
        return FeatureState.CONDITIONAL

    async def enabled_gates(self, key: str) -> list[GateKey]:
        values = await self.get_gate_values(key)
        return values.enabled_gates()

    # ============================================================
    # MUTATIONS (passthrough to adapter)
    # ============================================================

    async def add(self, key: str) -> bool:
        return await self.adapter.add(key)

    async def remove(self, key: str) -> bool:
        result = await self.adapter.remove(key)
        logger.info("Feature removed", feature=key, adapter=self.adapter.name)
        return result

    async def clear(self, key: str) -> bool:
        result = await self.adapter.clear(key)
        logger.info("Feature cleared", feature=key, adapter=self.adapter.name)
        return result

    async def enable(self, key: str) -> bool:
        """
        Turn a feature on for everybody.

        Replaces every other gate value of the feature; the boolean gate
        never shares a feature with targeting state.
        """
        return await self._enable(key, GateKey.BOOLEAN, True)

    async def disable(self, key: str) -> bool:
        """Turn a feature off for everybody (clears every gate)."""
        return await self._disable(key, GateKey.BOOLEAN, False)

    async def enable_actor(self, key: str, actor: Any) -> bool:
        return await self._enable(key, GateKey.ACTORS, self._actor_id(actor))

    async def disable_actor(self, key: str, actor: Any) -> bool:
        return await self._disable(key, GateKey.ACTORS, self._actor_id(actor))

    async def enable_group(self, key: str, name: str) -> bool:
        """
        Enable a registered group.

        Raises:
            GroupNotRegisteredError: If the group has no predicate
        """
        if not self.groups.is_registered(name):
            raise GroupNotRegisteredError(name)
        return await self._enable(key, GateKey.GROUPS, name)

    async def disable_group(self, key: str, name: str) -> bool:
        return await self._disable(key, GateKey.GROUPS, name)

    async def enable_percentage_of_actors(self, key: str, percentage: int) -> bool:
        validate_percentage(percentage)
        return await self._enable(key, GateKey.PERCENTAGE_OF_ACTORS, percentage)

    async def disable_percentage_of_actors(self, key: str) -> bool:
        return await self._disable(key, GateKey.PERCENTAGE_OF_ACTORS, 0)

    async def enable_percentage_of_time(self, key: str, percentage: int) -> bool:
        validate_percentage(percentage)
        return await self._enable(key, GateKey.PERCENTAGE_OF_TIME, percentage)

    async def disable_percentage_of_time(self, key: str) -> bool:
        return await self._disable(key, GateKey.PERCENTAGE_OF_TIME, 0)

    async def enable_json(self, key: str, document: Any) -> bool:
        """
        Store a JSON document for the caller's own logic.

        A None document is not stored; it clears the gate like disable_json.
        """
        if document is None:
            return await self.disable_json(key)
        return await self._enable(key, GateKey.JSON, document)

    async def disable_json(self, key: str) -> bool:
        return await self._disable(key, GateKey.JSON, None)

    # ============================================================
    # HELPERS
    # ============================================================

    async def _enable(self, key: str, gate_key: GateKey, value: Any) -> bool:
        await self.adapter.add(key)
        await self.adapter.enable(key, GATES[gate_key], value)
        logger.info(
            "Feature gate enabled",
            feature=key,
            gate=gate_key.value,
            value=value,
            adapter=self.adapter.name,
        )
        return True

    async def _disable(self, key: str, gate_key: GateKey, value: Any) -> bool:
        await self.adapter.add(key)
        await self.adapter.disable(key, GATES[gate_key], value)
        logger.info(
            "Feature gate disabled",
            feature=key,
            gate=gate_key.value,
            value=value,
            adapter=self.adapter.name,
        )
        return True

    def _actor_id(self, actor: Any) -> str:
        wrapped = Actor.wrap(actor)
        if wrapped is None or wrapped.flipper_id is None:
            raise InvalidActorError("Actor gates need an actor with a flipper_id")
        return wrapped.flipper_id
