"""交互录制器

把描述解析为元素、通过驱动执行动作，再重新抓取页面上下文，
生成不可变的 LearningInteraction。录制器不修改会话。
"""

from __future__ import annotations

from ..common.browser.actions import execute_action
from ..common.browser.driver import AutomationDriver
from ..common.browser.scripts import PAGE_INFO_JS
from ..common.exceptions import ElementNotFoundError, NoElementsFoundError
from ..common.logger import get_logger
from ..common.types import BrowserAction, ElementSnapshot
from .matcher import ElementMatcher, KeywordElementMatcher
from .models import InteractionContext, LearningInteraction

logger = get_logger(__name__)


class InteractionRecorder:
    """交互录制器"""

    def __init__(self, driver: AutomationDriver, matcher: ElementMatcher | None = None):
        self.driver = driver
        self.matcher = matcher or KeywordElementMatcher()

    async def record_click(self, description: str) -> LearningInteraction:
        """点击第一个匹配描述的元素

        Raises:
            ElementNotFoundError: 当前快照中没有匹配的元素
            DriverActionError: 快照获取失败
        """
        snapshot = await self.driver.get_accessibility_snapshot()
        element = self.matcher.find_first(description, snapshot)
        if element is None:
            raise ElementNotFoundError(description)

        logger.info(f"[InteractionRecorder] 点击: {description} -> {element.selector}")
        return await self._perform(BrowserAction.click(element.selector), element)

    async def record_extraction(self, field: str, description: str) -> list[LearningInteraction]:
        """对每个匹配描述的元素录制一次提取

        返回的交互列表由调用方一次性追加，任一步失败时会话不受影响。

        Raises:
            NoElementsFoundError: 没有任何元素匹配
            DriverActionError: 快照获取失败
        """
        snapshot = await self.driver.get_accessibility_snapshot()
        elements = self.matcher.find_all(description, snapshot)
        if not elements:
            raise NoElementsFoundError(description)

        logger.info(f"[InteractionRecorder] 字段 {field}: {len(elements)} 个元素匹配 '{description}'")
        interactions = []
        for element in elements:
            action = BrowserAction.extract(field, element.selector)
            interactions.append(await self._perform(action, element))
        return interactions

    async def _perform(self, action: BrowserAction, element: ElementSnapshot) -> LearningInteraction:
        result = await execute_action(self.driver, action)
        if not result.success:
            logger.warning(f"[InteractionRecorder] 动作失败 ({action.type.value}): {result.error}")

        # 无论动作成败都重新抓取上下文
        context = await self.capture_context()
        return LearningInteraction(action=action, element=element, result=result, context=context)

    async def capture_context(self) -> InteractionContext:
        """重新抓取快照，并通过脚本读取 URL 与标题"""
        snapshot = await self.driver.get_accessibility_snapshot()
        info = await self.driver.evaluate_script(PAGE_INFO_JS)
        data = info.data if info.success and isinstance(info.data, dict) else {}
        return InteractionContext(
            url=data.get("url") or "",
            title=data.get("title") or "",
            snapshot=snapshot,
        )
