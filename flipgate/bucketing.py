"""
Deterministic percentage bucketing.

The hash (CRC-32 as computed by zlib) and the bucket space are fixed so an
actor lands in the same bucket in every process and every implementation
that follows the same scheme. Changing either reshuffles every rollout.
"""

import time
import zlib

from .exceptions import InvalidPercentageError

# 100 percent * 100 buckets per percent
BUCKET_SPACE = 10_000
BUCKETS_PER_PERCENT = BUCKET_SPACE // 100


def validate_percentage(percentage: int) -> int:
    """Return the percentage unchanged if it is an integer in 0..100."""
    if isinstance(percentage, bool) or not isinstance(percentage, int):
        raise InvalidPercentageError(
            f"Percentage must be an integer, got {percentage!r}"
        )
    if percentage < 0 or percentage > 100:
        raise InvalidPercentageError(
            f"Percentage must be between 0 and 100, got {percentage}"
        )
    return percentage


def _hash(value: str) -> int:
    return zlib.crc32(value.encode("utf-8")) % BUCKET_SPACE


def bucket(feature_key: str, actor_id: str) -> int:
    """Bucket in [0, 9999] for an actor within one feature."""
    return _hash(f"{feature_key}{actor_id}")


def percentage_match(feature_key: str, actor_id: str, percentage: int) -> bool:
    """
    Check whether an actor falls inside a percentage rollout.

    Raising the percentage only ever adds actors; nobody already in the
    rollout drops out.
    """
    validate_percentage(percentage)
    if percentage == 0:
        return False
    if percentage == 100:
        return True
    return bucket(feature_key, actor_id) < percentage * BUCKETS_PER_PERCENT


def time_bucket(feature_key: str, now: float | None = None) -> int:
    """Bucket for the current one-second slice of a feature."""
    if now is None:
        now = time.time()
    return _hash(f"{feature_key}{int(now)}")


def percentage_of_time_match(
    feature_key: str,
    percentage: int,
    now: float | None = None,
) -> bool:
    """Time based rollout. Same answer for every actor within one second."""
    validate_percentage(percentage)
    if percentage == 0:
        return False
    if percentage == 100:
        return True
    return time_bucket(feature_key, now) < percentage * BUCKETS_PER_PERCENT
