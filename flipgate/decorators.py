"""
Feature gate decorators.

Usage:
    from flipgate.decorators import require_feature
    from flipgate.dependencies import ActorFeatures

    @router.get("/new-search")
    @require_feature("new_search")
    async def new_search(features: ActorFeatures):
        return {"search": "new"}

    @router.get("/beta")
    @require_feature("beta", status_code=403)
    async def beta(features: ActorFeatures):
        return {"feature": "beta"}
"""

from functools import wraps
from typing import Any, Callable

from fastapi import HTTPException

from .dependencies import ActorFeatureService


def require_feature(
    feature_key: str,
    *,
    status_code: int = 404,
    detail: str | None = None,
):
    """
    Decorator to require a feature to be enabled.

    The endpoint must take an ActorFeatures dependency; the decorator finds
    it among the keyword arguments FastAPI passes in.

    Args:
        feature_key: The feature key to check
        status_code: HTTP status code if disabled (default: 404)
        detail: Custom error message
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            features = next(
                (value for value in kwargs.values() if isinstance(value, ActorFeatureService)),
                None,
            )
            if features is None:
                raise RuntimeError(
                    f"require_feature('{feature_key}') needs an ActorFeatures dependency "
                    f"on {func.__name__}"
                )

            if not await features.is_enabled(feature_key):
                error_detail = detail or f"Feature '{feature_key}' is not available"
                raise HTTPException(status_code=status_code, detail=error_detail)

            return await func(*args, **kwargs)

        return wrapper
    return decorator
