"""核心数据类型定义"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_WAIT_TIMEOUT_MS


# ============================================================================
# 元素快照
# ============================================================================


class BoundingBox(BaseModel):
    """元素边界框（视口坐标）"""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


class ElementSnapshot(BaseModel):
    """可访问性快照中的一个元素

    每次请求快照时重新构造，构造后不再修改。
    """

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="元素角色：link/button/text/heading 等")
    name: str = Field(default="", description="可访问名称")
    selector: str = Field(..., description="可在页面上解析回该元素的选择器（可能较脆弱）")
    bounds: BoundingBox = Field(default_factory=BoundingBox, description="边界框")
    text: str | None = Field(default=None, description="可见文本")
    value: str | None = Field(default=None, description="表单值")


# ============================================================================
# 动作定义
# ============================================================================


class ActionType(str, Enum):
    """浏览器动作类型枚举"""

    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"
    SCREENSHOT = "screenshot"
    CLOSE = "close"
    EXTRACT = "extract"
    WAIT = "wait"
    EVALUATE = "evaluate"


class BrowserAction(BaseModel):
    """一次可执行的浏览器动作

    不同类型只使用各自需要的参数：
    navigate 用 url，click/wait 用 selector，type 用 selector + text，
    extract 用 selector + field，evaluate 用 script，screenshot 用 full_page。
    """

    model_config = ConfigDict(frozen=True)

    type: ActionType = Field(..., description="动作类型")
    selector: str | None = Field(default=None, description="目标元素选择器")
    text: str | None = Field(default=None, description="输入文本（type 动作）")
    url: str | None = Field(default=None, description="导航 URL")
    field: str | None = Field(default=None, description="提取字段名（extract 动作）")
    script: str | None = Field(default=None, description="脚本（evaluate 动作）")
    full_page: bool = Field(default=False, description="是否整页截图")
    timeout_ms: int = Field(default=DEFAULT_WAIT_TIMEOUT_MS, description="等待超时")

    @classmethod
    def click(cls, selector: str) -> "BrowserAction":
        return cls(type=ActionType.CLICK, selector=selector)

    @classmethod
    def extract(cls, field: str, selector: str) -> "BrowserAction":
        return cls(type=ActionType.EXTRACT, field=field, selector=selector)


class ActionResult(BaseModel):
    """驱动调用的统一结果"""

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)
