"""
FastAPI dependencies for feature gates.

Usage:
    from flipgate.dependencies import ActorFeatures

    @router.get("/search")
    async def search(features: ActorFeatures):
        if await features.is_enabled("new_search"):
            return new_search()
        return old_search()

Authentication stays with the application: set ``request.state.actor``
in middleware, or override ``get_current_actor``.
"""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .actor import Actor
from .backends.database import DatabaseAdapter
from .backends.memory import MemoryAdapter
from .config import get_settings
from .groups import GroupRegistry
from .interfaces import Adapter, EvaluationResult
from .models.database import get_db
from .service import FeatureService


# ============================================================
# ADAPTER FACTORY
# ============================================================

# In-memory adapter singleton (for development)
_memory_adapter: MemoryAdapter | None = None

# Groups registered by the application at startup
groups = GroupRegistry()


def get_memory_adapter() -> MemoryAdapter:
    """Get or create memory adapter singleton."""
    global _memory_adapter
    if _memory_adapter is None:
        _memory_adapter = MemoryAdapter()
    return _memory_adapter


async def get_adapter(
    db: AsyncSession = Depends(get_db),
) -> Adapter:
    """
    Get feature adapter based on configuration.

    Uses FEATURE_BACKEND setting:
    - "database": SQLAlchemy (default, production)
    - "memory": In-memory (development/testing)
    """
    if get_settings().features.backend == "memory":
        return get_memory_adapter()
    return DatabaseAdapter(db)


def get_group_registry() -> GroupRegistry:
    return groups


# ============================================================
# FEATURE SERVICE DEPENDENCY
# ============================================================

async def get_feature_service(
    adapter: Adapter = Depends(get_adapter),
    registry: GroupRegistry = Depends(get_group_registry),
) -> FeatureService:
    """Get feature service instance."""
    return FeatureService(adapter, groups=registry)


# Type alias for cleaner injection
Features = Annotated[FeatureService, Depends(get_feature_service)]


# ============================================================
# ACTOR-AWARE FEATURE SERVICE
# ============================================================

async def get_current_actor(request: Request) -> Actor | None:
    """Actor for the current request (anonymous when none is set)."""
    return Actor.wrap(getattr(request.state, "actor", None))


class ActorFeatureService:
    """
    Feature service bound to current actor.

    Provides convenient methods that automatically use the current actor.
    """

    def __init__(self, service: FeatureService, actor: Actor | None):
        self._service = service
        self._actor = actor

    async def is_enabled(self, key: str) -> bool:
        """Check if feature is enabled for current actor."""
        return await self._service.is_enabled(key, self._actor)

    async def evaluate(self, key: str) -> EvaluationResult:
        """Evaluate feature with detailed result."""
        return await self._service.evaluate(key, self._actor)

    async def get_all(self) -> dict[str, bool]:
        """Get every known feature's status for current actor."""
        snapshot = await self._service.preload_all()
        return {key: snapshot.is_enabled(key, self._actor) for key in snapshot.keys()}

    async def require(self, key: str) -> None:
        """
        Require feature to be enabled.

        Raises 404 if feature is disabled (feature doesn't exist for actor).
        """
        if not await self.is_enabled(key):
            raise HTTPException(status_code=404, detail="Not found")

    async def require_or_403(self, key: str) -> None:
        """
        Require feature to be enabled.

        Raises 403 if feature is disabled.
        """
        if not await self.is_enabled(key):
            raise HTTPException(
                status_code=403,
                detail=f"Feature '{key}' is not available"
            )

    @property
    def actor(self) -> Actor | None:
        return self._actor

    # Passthrough to underlying service
    @property
    def service(self) -> FeatureService:
        return self._service


async def get_actor_feature_service(
    service: FeatureService = Depends(get_feature_service),
    actor: Any = Depends(get_current_actor),
) -> ActorFeatureService:
    """Get feature service bound to current actor."""
    return ActorFeatureService(service, Actor.wrap(actor))


# Type alias
ActorFeatures = Annotated[ActorFeatureService, Depends(get_actor_feature_service)]
