"""
Database adapter for feature gates.

Uses SQLAlchemy (async) for persistent storage. Works inside the caller's
session: writes are flushed, the caller commits or rolls back.
"""

import json
from collections import defaultdict
from typing import Any, Iterable

import structlog
from sqlalchemy import select, delete, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..gates import DataType, Gate, GateKey, check_supported
from ..interfaces import Adapter, default_gate_values, default_gate_values_map
from ..models import FeatureModel, GateModel

logger = structlog.get_logger()


class DatabaseAdapter(Adapter):
    """
    SQLAlchemy-backed feature gate storage.

    Production-ready with PostgreSQL; SQLite works for tests.
    """

    name = "database"

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============================================================
    # FEATURE OPERATIONS
    # ============================================================

    async def features(self) -> set[str]:
        result = await self.db.execute(select(FeatureModel.key))
        return set(result.scalars().all())

    async def add(self, key: str) -> bool:
        await self._insert_ignore(FeatureModel, key=key)
        await self.db.flush()
        return True

    async def remove(self, key: str) -> bool:
        await self.db.execute(delete(GateModel).where(GateModel.feature_key == key))
        await self.db.execute(delete(FeatureModel).where(FeatureModel.key == key))
        await self.db.flush()
        return True

    async def clear(self, key: str) -> bool:
        await self.db.execute(delete(GateModel).where(GateModel.feature_key == key))
        await self.db.flush()
        return True

    # ============================================================
    # READS
    # ============================================================

    async def get(self, key: str) -> dict[str, Any]:
        query = select(GateModel.key, GateModel.value).where(GateModel.feature_key == key)
        result = await self.db.execute(query)
        return self._result_for_feature(result.all())

    async def get_multi(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        keys = list(keys)
        if not keys:
            return {}

        query = select(GateModel.feature_key, GateModel.key, GateModel.value).where(
            GateModel.feature_key.in_(keys)
        )
        result = await self.db.execute(query)

        grouped: dict[str, list[tuple[str, str | None]]] = defaultdict(list)
        for feature_key, gate_key, value in result.all():
            grouped[feature_key].append((gate_key, value))

        return {key: self._result_for_feature(grouped.get(key, [])) for key in keys}

    async def get_all(self) -> defaultdict[str, dict[str, Any]]:
        # One statement, so every feature comes back with all of its gates
        query = select(FeatureModel.key, GateModel.key, GateModel.value).outerjoin(
            GateModel, GateModel.feature_key == FeatureModel.key
        )
        result = await self.db.execute(query)

        grouped: dict[str, list[tuple[str, str | None]]] = defaultdict(list)
        for feature_key, gate_key, value in result.all():
            rows = grouped[feature_key]
            if gate_key is not None:
                rows.append((gate_key, value))

        all_values = default_gate_values_map()
        for feature_key, rows in grouped.items():
            all_values[feature_key] = self._result_for_feature(rows)
        return all_values

    # ============================================================
    # WRITES
    # ============================================================

    async def enable(self, key: str, gate: Gate, value: Any) -> bool:
        check_supported(gate)

        if gate.data_type == DataType.BOOLEAN:
            await self._set(key, gate, str(bool(value)).lower(), clear=True)
        elif gate.data_type == DataType.INTEGER:
            await self._set(key, gate, str(value))
        elif gate.data_type == DataType.JSON:
            await self._set(key, gate, json.dumps(value))
        else:
            await self._insert_ignore(
                GateModel,
                feature_key=key,
                key=gate.key.value,
                value=str(value),
            )
            await self.db.flush()

        return True

    async def disable(self, key: str, gate: Gate, value: Any) -> bool:
        check_supported(gate)

        if gate.data_type == DataType.BOOLEAN:
            await self.clear(key)
        elif gate.data_type == DataType.SET:
            await self.db.execute(
                delete(GateModel).where(
                    GateModel.feature_key == key,
                    GateModel.key == gate.key.value,
                    GateModel.value == str(value),
                )
            )
            await self.db.flush()
        else:
            await self._delete(key, gate)
            await self.db.flush()

        return True

    # ============================================================
    # HELPERS
    # ============================================================

    async def _set(self, key: str, gate: Gate, value: str, clear: bool = False) -> None:
        """
        Replace a single-value gate (optionally clearing the whole feature).

        The feature row is locked first, so concurrent writers to one
        feature run one after the other and the last commit wins.
        """
        await self._lock_feature(key)

        if clear:
            await self.db.execute(delete(GateModel).where(GateModel.feature_key == key))
        else:
            await self._delete(key, gate)

        await self._insert_ignore(
            GateModel,
            feature_key=key,
            key=gate.key.value,
            value=value,
        )
        await self.db.flush()

    async def _lock_feature(self, key: str) -> None:
        await self._insert_ignore(FeatureModel, key=key)
        await self.db.execute(
            select(FeatureModel.id).where(FeatureModel.key == key).with_for_update()
        )

    async def _delete(self, key: str, gate: Gate) -> None:
        await self.db.execute(
            delete(GateModel).where(
                GateModel.feature_key == key,
                GateModel.key == gate.key.value,
            )
        )

    async def _insert_ignore(self, model: type, **values: Any) -> None:
        """
        Insert a row unless an identical one already exists.

        PostgreSQL and SQLite get ON CONFLICT DO NOTHING. Other dialects
        insert inside a savepoint and drop the unique violation.
        """
        dialect = self.db.get_bind().dialect.name

        if dialect == "postgresql":
            await self.db.execute(pg_insert(model).values(**values).on_conflict_do_nothing())
            return
        if dialect == "sqlite":
            await self.db.execute(sqlite_insert(model).values(**values).on_conflict_do_nothing())
            return

        try:
            async with self.db.begin_nested():
                await self.db.execute(insert(model).values(**values))
        except IntegrityError:
            logger.debug(
                "Duplicate insert ignored",
                table=model.__tablename__,
                values=values,
            )

    def _result_for_feature(self, rows: Iterable[tuple[str, str | None]]) -> dict[str, Any]:
        """Convert gate rows to the raw per-feature shape."""
        result = default_gate_values()

        for gate_key, value in rows:
            if gate_key in (GateKey.ACTORS.value, GateKey.GROUPS.value):
                result[gate_key].add(value)
            elif gate_key == GateKey.JSON.value:
                result[gate_key] = json.loads(value) if value is not None else None
            elif gate_key in result:
                result[gate_key] = value

        return result
