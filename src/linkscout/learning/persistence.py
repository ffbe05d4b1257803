"""模式持久化适配

LearnedPattern 与存储记录之间的转换：选择器以字符串列表保存，
置信度、规则与元数据打包进 sample_data。
"""

from __future__ import annotations

from ..common.constants import UNVALIDATED_PATTERN_CONFIDENCE
from ..common.exceptions import LinkScoutError
from ..common.logger import get_logger
from ..common.storage import PatternStore, StoredPattern
from .models import ExtractionRule, LearnedPattern, PatternMetadata, ValidationResult

logger = get_logger(__name__)


def pattern_to_stored(pattern: LearnedPattern) -> StoredPattern:
    """LearnedPattern → 存储记录"""
    return StoredPattern(
        name=pattern.name,
        description=pattern.description,
        selectors=[s.value for s in pattern.selectors],
        sample_data={
            "pattern_id": pattern.id,
            "confidence": pattern.confidence,
            "extraction_rules": [r.model_dump(mode="json") for r in pattern.extraction_rules],
            "validation_results": [r.model_dump(mode="json") for r in pattern.validation_results],
            "metadata": pattern.metadata.model_dump(mode="json", exclude={"store_id"}),
        },
    )


def pattern_from_stored(stored: StoredPattern, domain: str) -> LearnedPattern:
    """存储记录 → LearnedPattern

    规则中的选择器即为 selectors；旧记录缺少 pattern_id 时按存储 ID 生成。
    """
    data = stored.sample_data
    rules = [ExtractionRule.model_validate(r) for r in data.get("extraction_rules", [])]
    metadata = PatternMetadata.model_validate(data.get("metadata", {}))
    metadata.store_id = stored.id
    if not metadata.site:
        metadata.site = domain

    return LearnedPattern(
        id=data.get("pattern_id") or f"stored_{domain}_{stored.id}",
        name=stored.name,
        description=stored.description,
        confidence=data.get("confidence", UNVALIDATED_PATTERN_CONFIDENCE),
        selectors=[r.selector for r in rules],
        extraction_rules=rules,
        validation_results=[
            ValidationResult.model_validate(r) for r in data.get("validation_results", [])
        ],
        metadata=metadata,
    )


async def save_patterns(store: PatternStore, domain: str, patterns: list[LearnedPattern]) -> int:
    """逐个保存模式，返回成功条数

    单个模式保存失败只记录日志，不影响其他模式。
    """
    saved = 0
    for pattern in patterns:
        try:
            pattern.metadata.store_id = await store.save_pattern(domain, pattern_to_stored(pattern))
        except LinkScoutError as e:
            logger.error(f"[persistence] 保存模式 {pattern.name} 失败: {e}")
            continue
        saved += 1
        logger.info(f"[persistence] 已保存模式: {pattern.name} ({domain})")
    return saved


async def load_patterns(store: PatternStore, domain: str) -> list[LearnedPattern]:
    """读取站点的全部模式，无法解析的记录跳过"""
    patterns = []
    for stored in await store.get_patterns(domain):
        try:
            patterns.append(pattern_from_stored(stored, domain))
        except ValueError as e:
            logger.warning(f"[persistence] 模式记录 {stored.id} 无法解析: {e}")
    return patterns
