"""
Actor - the entity a feature is checked for.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class Actor:
    """
    Identity plus read-only properties used by conditions.

    Attributes:
        flipper_id: Stable identity (e.g., "User;42"). None for anonymous.
        properties: Values conditions can read (plan, age, country...)
    """
    flipper_id: str | None
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.flipper_id is not None and not isinstance(self.flipper_id, str):
            object.__setattr__(self, "flipper_id", str(self.flipper_id))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def is_anonymous(self) -> bool:
        return self.flipper_id is None

    @classmethod
    def anonymous(cls, properties: Mapping[str, Any] | None = None) -> "Actor":
        return cls(flipper_id=None, properties=properties or {})

    @classmethod
    def wrap(cls, thing: Any) -> "Actor | None":
        """
        Adapt a caller object into an Actor.

        Accepts an Actor, None, a flipper_id string, or any object exposing
        ``flipper_id`` or ``id``. Extra properties are taken from
        ``flipper_properties`` when the object has it.
        """
        if thing is None or isinstance(thing, cls):
            return thing
        if isinstance(thing, str):
            return cls(flipper_id=thing)

        flipper_id = getattr(thing, "flipper_id", None)
        if flipper_id is None:
            flipper_id = getattr(thing, "id", None)

        properties = getattr(thing, "flipper_properties", None) or {}
        return cls(
            flipper_id=str(flipper_id) if flipper_id is not None else None,
            properties=properties,
        )
