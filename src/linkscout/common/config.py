"""配置管理"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_PAGE_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)

# 加载 .env 文件
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class BrowserConfig(BaseModel):
    """浏览器配置"""

    headless: bool = Field(default_factory=lambda: _env_flag("HEADLESS", "true"))
    viewport_width: int = Field(
        default_factory=lambda: int(os.getenv("VIEWPORT_WIDTH", str(DEFAULT_VIEWPORT_WIDTH)))
    )
    viewport_height: int = Field(
        default_factory=lambda: int(os.getenv("VIEWPORT_HEIGHT", str(DEFAULT_VIEWPORT_HEIGHT)))
    )
    slow_mo: int = Field(default_factory=lambda: int(os.getenv("SLOW_MO", "0")))
    timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("STEP_TIMEOUT_MS", str(DEFAULT_PAGE_TIMEOUT_MS)))
    )
    # 会话元数据中回显的 User-Agent
    user_agent: str = Field(default_factory=lambda: os.getenv("USER_AGENT", DEFAULT_USER_AGENT))

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


class LearningConfig(BaseModel):
    """学习模式配置"""

    # 是否把一次会话学到的所有字段合并为一个多规则模式
    bundle_fields: bool = Field(
        default_factory=lambda: _env_flag("LEARNING_BUNDLE_FIELDS", "false")
    )
    # 分析完成后是否立即在目标页面上验证模式
    validate_on_analyze: bool = Field(
        default_factory=lambda: _env_flag("LEARNING_VALIDATE_ON_ANALYZE", "true")
    )


class StorageConfig(BaseModel):
    """模式存储配置"""

    # 存储后端: sqlite (本地数据库), memory (进程内)
    backend: str = Field(default_factory=lambda: os.getenv("PATTERN_STORE", "sqlite"))
    db_path: str = Field(
        default_factory=lambda: os.getenv("PATTERN_DB_PATH", "browser_patterns.db")
    )


class Config(BaseModel):
    """全局配置"""

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    learning: LearningConfig = Field(default_factory=LearningConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def load(cls) -> "Config":
        """加载配置"""
        return cls()


# 全局配置实例
config = Config.load()
