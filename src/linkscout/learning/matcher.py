"""元素匹配策略

把自然语言描述映射到快照中的元素。匹配是分级的首个命中，
不做打分排序：前一级有命中就不再看后一级。
"""

from __future__ import annotations

import abc
import re

from ..common.types import ElementSnapshot

_DIGITS_RE = re.compile(r"\d+")


class ElementMatcher(abc.ABC):
    """描述 → 元素 的匹配策略"""

    def find_first(self, description: str, snapshot: list[ElementSnapshot]) -> ElementSnapshot | None:
        """返回第一个匹配的元素，没有匹配时返回 None"""
        matches = self.find_all(description, snapshot)
        return matches[0] if matches else None

    @abc.abstractmethod
    def find_all(self, description: str, snapshot: list[ElementSnapshot]) -> list[ElementSnapshot]:
        """返回首个非空匹配层级中的全部元素（保持快照顺序）"""


class KeywordElementMatcher(ElementMatcher):
    """文本包含 + 关键词角色回退

    1. 描述（不区分大小写）是元素文本或名称的子串；
    2. 描述含 link/title → role=link；含 button → role=button；
       含 score/point → 文本中有数字的元素；
    3. 否则无匹配。
    """

    def find_all(self, description: str, snapshot: list[ElementSnapshot]) -> list[ElementSnapshot]:
        needle = description.lower()

        matches = [el for el in snapshot if self._contains(el, needle)]
        if matches:
            return matches

        predicate = self._keyword_predicate(needle)
        if predicate is None:
            return []
        return [el for el in snapshot if predicate(el)]

    @staticmethod
    def _contains(element: ElementSnapshot, needle: str) -> bool:
        if element.text and needle in element.text.lower():
            return True
        return bool(element.name) and needle in element.name.lower()

    @staticmethod
    def _keyword_predicate(needle: str):
        if "link" in needle or "title" in needle:
            return lambda el: el.role == "link"
        elif "button" in needle:
            return lambda el: el.role == "button"
        elif "score" in needle or "point" in needle:
            return lambda el: bool(el.text) and _DIGITS_RE.search(el.text) is not None
        return None
