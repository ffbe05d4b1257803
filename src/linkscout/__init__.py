"""LinkScout - 浏览器模式学习与提取"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .learning.runtime import create_learning_runtime as create_learning_runtime
    from .learning.service import LearningModeService as LearningModeService

__all__ = [
    "__version__",
    "LearningModeService",
    "create_learning_runtime",
]


def __getattr__(name: str) -> Any:
    """Lazy exports to avoid importing heavy runtime dependencies at package import time."""
    if name == "LearningModeService":
        from .learning.service import LearningModeService

        return LearningModeService
    if name == "create_learning_runtime":
        from .learning.runtime import create_learning_runtime

        return create_learning_runtime
    raise AttributeError(f"module 'linkscout' has no attribute '{name}'")
