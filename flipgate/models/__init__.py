"""
SQLAlchemy models for the database adapter.
"""

from .base import Base, TimestampMixin
from .feature import FeatureModel, GateModel

__all__ = [
    "Base",
    "TimestampMixin",
    "FeatureModel",
    "GateModel",
]
