"""
Feature gate adapter implementations.
"""

from .database import DatabaseAdapter
from .memory import MemoryAdapter

__all__ = [
    "DatabaseAdapter",
    "MemoryAdapter",
]
