"""Common模块 - 公共工具和基础设施

该模块提供：
- 全局配置管理
- 浏览器驱动抽象
- 模式存储
- 类型定义
- 日志系统
- 异常类
- 输入验证
"""

from .config import config, Config
from .logger import get_logger, console
from .exceptions import (
    LinkScoutError,
    BrowserError,
    DriverNotReadyError,
    DriverActionError,
    NavigationError,
    LearningError,
    ValidationError,
    StorageError,
    ConfigError,
)
from .constants import (
    DEFAULT_PAGE_TIMEOUT_MS,
    MIN_EXAMPLES_PER_FIELD,
)

__all__ = [
    # 配置
    "config",
    "Config",
    # 日志
    "get_logger",
    "console",
    # 异常
    "LinkScoutError",
    "BrowserError",
    "DriverNotReadyError",
    "DriverActionError",
    "NavigationError",
    "LearningError",
    "ValidationError",
    "StorageError",
    "ConfigError",
    # 常量
    "DEFAULT_PAGE_TIMEOUT_MS",
    "MIN_EXAMPLES_PER_FIELD",
]
