"""自动化驱动抽象

学习模式只通过该接口访问浏览器。除快照外，每个调用都返回统一的
ActionResult，调用方需要容忍 success=False。
"""

from __future__ import annotations

import abc
from typing import Any

from ..constants import DEFAULT_WAIT_TIMEOUT_MS
from ..types import ActionResult, ElementSnapshot


class AutomationDriver(abc.ABC):
    """浏览器自动化驱动"""

    @abc.abstractmethod
    def is_ready(self) -> bool:
        """驱动是否已启动且可用"""

    @property
    @abc.abstractmethod
    def viewport(self) -> dict[str, int]:
        """当前视口大小 {"width": .., "height": ..}"""

    @abc.abstractmethod
    async def navigate(self, url: str) -> ActionResult:
        """导航到 URL"""

    @abc.abstractmethod
    async def click(self, selector: str) -> ActionResult:
        """点击选择器对应的元素"""

    @abc.abstractmethod
    async def type(self, selector: str, text: str) -> ActionResult:
        """向选择器对应的元素输入文本"""

    @abc.abstractmethod
    async def take_screenshot(self, full_page: bool = False) -> ActionResult:
        """截图，data 为 PNG 字节"""

    @abc.abstractmethod
    async def get_accessibility_snapshot(self) -> list[ElementSnapshot]:
        """返回当前页面可见元素列表

        Raises:
            DriverActionError: 快照获取失败时
        """

    @abc.abstractmethod
    async def evaluate_script(self, script: str, arg: Any = None) -> ActionResult:
        """在页面中执行脚本，data 为脚本返回值"""

    async def wait_for_selector(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS
    ) -> ActionResult:
        """等待元素出现（默认：不支持）"""
        return ActionResult.fail("wait_for_selector 未实现")

    async def close(self) -> ActionResult:
        """关闭驱动（默认：no-op）"""
        return ActionResult.ok()
