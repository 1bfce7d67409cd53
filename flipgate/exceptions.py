"""
Feature gate exceptions.

Evaluation never raises these; they come from mutations and from
programmer errors in gate declarations.
"""


class FlipgateError(Exception):
    """Base class for all flipgate errors."""


class UnsupportedDataTypeError(FlipgateError, TypeError):
    """A gate was paired with a data type the adapters cannot store."""

    def __init__(self, gate_key: str, data_type: str):
        self.gate_key = gate_key
        self.data_type = data_type
        super().__init__(f"{data_type} is not supported for gate {gate_key}")


class InvalidPercentageError(FlipgateError, ValueError):
    """Percentage outside 0..100 or not an integer."""


class GroupNotRegisteredError(FlipgateError, KeyError):
    """Group name has no registered predicate."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Group '{self.name}' has not been registered"


class InvalidActorError(FlipgateError, ValueError):
    """Actor-scoped gate enabled for an actor without a flipper_id."""
