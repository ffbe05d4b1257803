"""选择器模式合成

从会话中同一字段的多个提取示例归纳出一个通用选择器，
并组装为提取规则与 LearnedPattern。
"""

from __future__ import annotations

import re
import time
import uuid
from collections import Counter

from ..common.constants import (
    INITIAL_PATTERN_CONFIDENCE,
    MAX_SELECTOR_FALLBACKS,
    MIN_EXAMPLES_PER_FIELD,
)
from ..common.logger import get_logger
from ..common.transforms import infer_transform
from ..common.types import ActionType
from .models import (
    ExtractionRule,
    LearnedPattern,
    LearningInteraction,
    LearningSession,
    PatternMetadata,
    PatternSelector,
    SelectorType,
)

logger = get_logger(__name__)

# 位置索引：[3] 与 :nth-child(3) / :nth-of-type(3)
_INDEX_RE = re.compile(r"\[\d+\]|:nth-(?:child|of-type)\(\d+\)")
_SPACES_RE = re.compile(r"\s+")


def generalize_selector(selector: str) -> str:
    """去掉选择器中的数字位置索引（"div.post[1] h3" → "div.post h3"）"""
    stripped = _INDEX_RE.sub("", selector)
    return _SPACES_RE.sub(" ", stripped).strip()


def find_common_selector(selectors: list[str]) -> str:
    """从同一字段的多个具体选择器中选出通用选择器

    只有一种选择器时原样使用；否则泛化后取出现最多的一个，
    次数相同时取最先出现的。
    """
    if not selectors:
        raise ValueError("selectors 不能为空")

    distinct = list(dict.fromkeys(selectors))
    if len(distinct) == 1:
        return distinct[0]

    generalized = [generalize_selector(s) for s in selectors]
    counts = Counter(g for g in generalized if g)
    if not counts:
        return selectors[0]

    best, best_count = "", 0
    for candidate in generalized:
        if candidate and counts[candidate] > best_count:
            best, best_count = candidate, counts[candidate]
    return best


def _new_pattern_id(label: str) -> str:
    return f"pattern_{label}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class PatternSynthesizer:
    """模式合成器

    默认每个字段一个模式；bundle=True 时一个会话合成一个多规则模式。
    """

    def __init__(self, min_examples: int = MIN_EXAMPLES_PER_FIELD):
        self.min_examples = min_examples

    def group_by_field(self, interactions: list[LearningInteraction]) -> dict[str, list[LearningInteraction]]:
        """按字段分组提取交互（保持首次出现顺序）"""
        groups: dict[str, list[LearningInteraction]] = {}
        for interaction in interactions:
            action = interaction.action
            if action.type != ActionType.EXTRACT or not action.field:
                continue
            groups.setdefault(action.field, []).append(interaction)
        return groups

    def build_rule(self, field: str, group: list[LearningInteraction]) -> ExtractionRule | None:
        """从一个字段组构建提取规则，示例不足时返回 None"""
        if len(group) < self.min_examples:
            logger.info(
                f"[PatternSynthesizer] 字段 '{field}' 示例不足 ({len(group)} < {self.min_examples})，跳过"
            )
            return None

        selectors = [self._selector_of(i) for i in group]
        selectors = [s for s in selectors if s]
        if not selectors:
            return None

        common = find_common_selector(selectors)
        fallbacks = selectors[:MAX_SELECTOR_FALLBACKS]
        transform = infer_transform(field)
        logger.info(
            f"[PatternSynthesizer] 字段 '{field}': {len(selectors)} 个示例 -> {common} ({transform.value})"
        )
        return ExtractionRule(
            field=field,
            selector=PatternSelector(
                type=SelectorType.CSS,
                value=common,
                role=field,
                confidence=INITIAL_PATTERN_CONFIDENCE,
                fallbacks=fallbacks,
            ),
            transform=transform,
            required=True,
        )

    def synthesize(self, session: LearningSession, bundle: bool = False) -> list[LearnedPattern]:
        """从会话交互合成候选模式"""
        groups = self.group_by_field(session.interactions)
        rules: list[tuple[ExtractionRule, int]] = []
        for field, group in groups.items():
            rule = self.build_rule(field, group)
            if rule is not None:
                rules.append((rule, len(group)))

        if not rules:
            logger.info(f"[PatternSynthesizer] 会话 {session.id} 没有可合成的字段")
            return []

        description = session.options.description
        if bundle:
            return [
                LearnedPattern(
                    id=_new_pattern_id("bundle"),
                    name=f"{session.name}_extraction",
                    description=description
                    or f"从 {session.target_site} 学习的多字段提取模式: {', '.join(r.field for r, _ in rules)}",
                    confidence=INITIAL_PATTERN_CONFIDENCE,
                    selectors=[r.selector for r, _ in rules],
                    extraction_rules=[r for r, _ in rules],
                    metadata=PatternMetadata(
                        learned_from=sum(n for _, n in rules),
                        site=session.target_site,
                    ),
                )
            ]

        return [
            LearnedPattern(
                id=_new_pattern_id(rule.field),
                name=f"{rule.field}_extraction",
                description=description or f"从 {count} 个示例学习的 {rule.field} 提取模式",
                confidence=INITIAL_PATTERN_CONFIDENCE,
                selectors=[rule.selector],
                extraction_rules=[rule],
                metadata=PatternMetadata(learned_from=count, site=session.target_site),
            )
            for rule, count in rules
        ]

    @staticmethod
    def _selector_of(interaction: LearningInteraction) -> str | None:
        if interaction.element is not None:
            return interaction.element.selector
        return interaction.action.selector
