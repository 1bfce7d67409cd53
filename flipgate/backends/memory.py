"""
In-memory adapter for feature gates.

For development and testing. Data is lost on restart.
"""

import json
from collections import defaultdict
from typing import Any, Iterable

from ..gates import DataType, Gate, GateKey, check_supported
from ..interfaces import Adapter, default_gate_values, default_gate_values_map


class MemoryAdapter(Adapter):
    """
    In-memory feature gate storage.

    Useful for:
    - Development without database
    - Unit testing
    - Quick prototyping

    No method awaits anything while touching the store, so every
    operation runs to completion without interleaving on the event loop.
    """

    name = "memory"

    def __init__(self):
        self._features: set[str] = set()
        # feature key -> gate key -> str (single values) or set[str] (set gates)
        self._gates: dict[str, dict[str, Any]] = defaultdict(dict)

    # ============================================================
    # FEATURE OPERATIONS
    # ============================================================

    async def features(self) -> set[str]:
        return set(self._features)

    async def add(self, key: str) -> bool:
        self._features.add(key)
        return True

    async def remove(self, key: str) -> bool:
        self._features.discard(key)
        self._gates.pop(key, None)
        return True

    async def clear(self, key: str) -> bool:
        self._gates.pop(key, None)
        return True

    # ============================================================
    # READS
    # ============================================================

    async def get(self, key: str) -> dict[str, Any]:
        return self._result_for_feature(key)

    async def get_multi(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        return {key: self._result_for_feature(key) for key in keys}

    async def get_all(self) -> defaultdict[str, dict[str, Any]]:
        result = default_gate_values_map()
        for key in self._features:
            result[key] = self._result_for_feature(key)
        return result

    # ============================================================
    # WRITES
    # ============================================================

    async def enable(self, key: str, gate: Gate, value: Any) -> bool:
        check_supported(gate)

        if gate.data_type != DataType.SET:
            self._features.add(key)

        if gate.data_type == DataType.BOOLEAN:
            self._gates[key] = {gate.key.value: str(bool(value)).lower()}
        elif gate.data_type == DataType.INTEGER:
            self._gates[key][gate.key.value] = str(value)
        elif gate.data_type == DataType.JSON:
            self._gates[key][gate.key.value] = json.dumps(value)
        else:
            self._gates[key].setdefault(gate.key.value, set()).add(str(value))

        return True

    async def disable(self, key: str, gate: Gate, value: Any) -> bool:
        check_supported(gate)

        if gate.data_type == DataType.BOOLEAN:
            self._gates.pop(key, None)
        elif gate.data_type == DataType.SET:
            members = self._gates.get(key, {}).get(gate.key.value)
            if members is not None:
                members.discard(str(value))
        elif key in self._gates:
            self._gates[key].pop(gate.key.value, None)

        return True

    # ============================================================
    # HELPERS
    # ============================================================

    def _result_for_feature(self, key: str) -> dict[str, Any]:
        result = default_gate_values()
        stored = self._gates.get(key, {})

        for gate_key, raw in stored.items():
            if gate_key == GateKey.JSON.value:
                result[gate_key] = json.loads(raw)
            elif isinstance(raw, set):
                result[gate_key] = set(raw)
            else:
                result[gate_key] = raw

        return result

    # ============================================================
    # TEST HELPERS
    # ============================================================

    def reset(self) -> None:
        """Drop all data. Useful for testing."""
        self._features.clear()
        self._gates.clear()
