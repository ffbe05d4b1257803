"""Common Storage模块 - 存储层"""

from .pattern_store import (
    MemoryPatternStore,
    PatternStore,
    SQLitePatternStore,
    StoredPattern,
    create_pattern_store,
)

__all__ = [
    "PatternStore",
    "StoredPattern",
    "SQLitePatternStore",
    "MemoryPatternStore",
    "create_pattern_store",
]
