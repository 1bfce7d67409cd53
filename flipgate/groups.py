"""
Group registry.

A group is a named predicate over actors. The groups gate stores only
names; the predicates live here, registered by the application.

Usage:
    groups = GroupRegistry()

    groups.register("premium", Condition(
        {"type": "property", "value": "plan"},
        {"type": "operator", "value": "eq"},
        {"type": "string", "value": "premium"},
    ))

    @groups.register("staff")
    def is_staff(actor: Actor) -> bool:
        return actor.properties.get("staff", False)
"""

from typing import Any, Callable

from .actor import Actor
from .exceptions import GroupNotRegisteredError

Predicate = Callable[[Actor], bool]


class GroupRegistry:
    """
    Named group predicates.

    A predicate is either a rule (anything with
    ``matches(feature_key, actor)``, e.g. Condition, AnyOf, AllOf) or a
    plain callable taking the actor.
    """

    def __init__(self) -> None:
        self._groups: dict[str, Any] = {}

    # ============================================================
    # REGISTRATION
    # ============================================================

    def register(self, name: str, predicate: Any | None = None) -> Any:
        """
        Register a group. Works directly or as a decorator.

        Re-registering a name replaces the previous predicate.
        """
        if predicate is not None:
            self._groups[name] = predicate
            return predicate

        def decorator(func: Predicate) -> Predicate:
            self._groups[name] = func
            return func
        return decorator

    def unregister(self, name: str) -> bool:
        return self._groups.pop(name, None) is not None

    # ============================================================
    # LOOKUP
    # ============================================================

    def get(self, name: str) -> Any:
        """
        Get a group predicate by name.

        Raises:
            GroupNotRegisteredError: If nothing is registered under name
        """
        try:
            return self._groups[name]
        except KeyError:
            raise GroupNotRegisteredError(name) from None

    def is_registered(self, name: str) -> bool:
        return name in self._groups

    def names(self) -> set[str]:
        return set(self._groups)

    def matches(self, name: str, feature_key: str, actor: Actor) -> bool:
        """Evaluate one group. Unregistered names never match."""
        predicate = self._groups.get(name)
        if predicate is None:
            return False
        if hasattr(predicate, "matches"):
            return bool(predicate.matches(feature_key, actor))
        return bool(predicate(actor))
