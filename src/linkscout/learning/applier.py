"""模式应用

在页面上执行模式的每条规则，按规则顺序、DOM 顺序返回提取值。
"""

from __future__ import annotations

import re

from ..common.browser.driver import AutomationDriver
from ..common.browser.scripts import ELEMENTS_DATA_JS
from ..common.exceptions import NavigationError
from ..common.logger import get_logger
from ..common.transforms import transform_value
from .models import ExtractedValue, ExtractionRule, LearnedPattern

logger = get_logger(__name__)


class PatternApplier:
    """模式应用器"""

    def __init__(self, driver: AutomationDriver):
        self.driver = driver

    async def apply(self, pattern: LearnedPattern, url: str) -> list[ExtractedValue]:
        """导航到 url 并提取

        Raises:
            NavigationError: 导航失败
        """
        nav = await self.driver.navigate(url)
        if not nav.success:
            raise NavigationError(url, nav.error)

        values: list[ExtractedValue] = []
        for rule in pattern.extraction_rules:
            values.extend(await self.apply_rule(rule))

        logger.info(f"[PatternApplier] 模式 '{pattern.name}' 在 {url} 提取 {len(values)} 条")
        return values

    async def apply_rule(self, rule: ExtractionRule) -> list[ExtractedValue]:
        """执行单条规则；脚本失败或校验正则无效时跳过该规则"""
        result = await self.driver.evaluate_script(ELEMENTS_DATA_JS, rule.selector.value)
        if not result.success:
            logger.warning(f"[PatternApplier] 规则 '{rule.field}' 执行失败: {result.error}")
            return []

        try:
            pattern = re.compile(rule.validation) if rule.validation else None
        except re.error as e:
            logger.warning(f"[PatternApplier] 规则 '{rule.field}' 校验正则无效: {e}")
            return []

        values = []
        for item in result.data or []:
            value = transform_value(rule.transform, item)
            if pattern is not None and not pattern.search(str(value)):
                continue
            values.append(ExtractedValue(field=rule.field, value=value, element=item.get("element")))
        return values
