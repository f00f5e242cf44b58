"""
Progress stores
"""

from .base import ProgressStore
from .files import FileProgressStore
from .memory import MemoryProgressStore

__all__ = [
    "ProgressStore",
    "FileProgressStore",
    "MemoryProgressStore",
]
