"""
Feature evaluation over a snapshot of gate values.

Pure function: no storage access, no side effects. The service fetches
gate values and hands them in.
"""

import structlog

from .actor import Actor
from .gates import EVALUATION_ORDER, GateContext, gate_open
from .groups import GroupRegistry
from .interfaces import EvaluationResult, GateValues

logger = structlog.get_logger()


def evaluate(
    feature_key: str,
    values: GateValues,
    actor: Actor | None = None,
    groups: GroupRegistry | None = None,
    now: float | None = None,
) -> EvaluationResult:
    """
    Decide whether a feature is on for an actor.

    Gates are consulted in order (first open gate wins):
    1. boolean (on for everybody)
    2. actors
    3. groups
    4. percentage_of_actors
    5. percentage_of_time

    Anonymous actors (no actor, or no flipper_id) can only get through
    the boolean and percentage_of_time gates.
    """
    ctx = GateContext(
        feature_key=feature_key,
        values=values,
        actor=actor,
        groups=groups if groups is not None else GroupRegistry(),
        now=now,
    )

    for gate_key in EVALUATION_ORDER:
        if gate_open(gate_key, ctx):
            logger.debug(
                "Feature enabled",
                feature=feature_key,
                gate=gate_key.value,
                actor=ctx.actor_id,
            )
            return EvaluationResult.yes(feature_key, gate_key, ctx.actor_id)

    if values.is_empty:
        return EvaluationResult.no(feature_key, "No gates enabled", ctx.actor_id)
    return EvaluationResult.no(feature_key, "No gate matched", ctx.actor_id)
