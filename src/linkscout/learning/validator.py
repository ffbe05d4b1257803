"""模式验证与置信度

在页面上重放模式的计数查询，得到 ValidationResult，
并据此重新计算模式置信度。
"""

from __future__ import annotations

from ..common.browser.driver import AutomationDriver
from ..common.browser.scripts import COUNT_ELEMENTS_JS
from ..common.constants import (
    CONFIDENCE_WEIGHT,
    FULL_CONFIDENCE_MATCH_COUNT,
    SUCCESS_RATE_WEIGHT,
    UNVALIDATED_PATTERN_CONFIDENCE,
)
from ..common.exceptions import LinkScoutError
from ..common.logger import get_logger
from ..common.types import ActionResult
from .models import LearnedPattern, ValidationResult

logger = get_logger(__name__)


def count_confidence(extracted_count: int) -> float:
    """匹配数映射为 [0, 1] 的置信度，达到 10 即饱和"""
    return min(extracted_count / FULL_CONFIDENCE_MATCH_COUNT, 1.0)


def calculate_pattern_confidence(results: list[ValidationResult]) -> float:
    """模式置信度 = 0.7 × 平均置信度 + 0.3 × 成功比例；无验证结果时为 0.5"""
    if not results:
        return UNVALIDATED_PATTERN_CONFIDENCE

    avg_confidence = sum(r.confidence for r in results) / len(results)
    success_rate = sum(1 for r in results if r.success) / len(results)
    return min(CONFIDENCE_WEIGHT * avg_confidence + SUCCESS_RATE_WEIGHT * success_rate, 1.0)


def record_validation(pattern: LearnedPattern, result: ValidationResult) -> None:
    """追加验证结果并重新计算置信度与成功率"""
    pattern.validation_results.append(result)
    results = pattern.validation_results
    pattern.confidence = calculate_pattern_confidence(results)
    pattern.metadata.success_rate = sum(1 for r in results if r.success) / len(results)
    pattern.metadata.last_validated = result.timestamp


class PatternValidator:
    """模式验证器

    只统计匹配数量，不提取值。规则失败记录到 errors 后继续下一条规则。
    """

    def __init__(self, driver: AutomationDriver):
        self.driver = driver

    async def validate(
        self,
        pattern: LearnedPattern,
        url: str,
        expected_count: int | None = None,
    ) -> ValidationResult:
        logger.info(f"[PatternValidator] 验证模式 '{pattern.name}': {url}")

        try:
            nav = await self.driver.navigate(url)
        except LinkScoutError as e:
            nav = ActionResult.fail(str(e))
        if not nav.success:
            message = f"导航失败: {nav.error}"
            logger.warning(f"[PatternValidator] {message}")
            return ValidationResult(
                url=url,
                success=False,
                extracted_count=0,
                expected_count=expected_count,
                errors=[message],
                confidence=0.0,
            )

        extracted_count = 0
        errors: list[str] = []
        for rule in pattern.extraction_rules:
            try:
                result = await self.driver.evaluate_script(COUNT_ELEMENTS_JS, rule.selector.value)
            except Exception as e:
                errors.append(f"规则 '{rule.field}' 执行失败: {e}")
                continue
            if not result.success:
                errors.append(f"规则 '{rule.field}' 执行失败: {result.error}")
                continue
            try:
                count = int(result.data or 0)
            except (TypeError, ValueError):
                errors.append(f"规则 '{rule.field}' 返回了无效计数: {result.data!r}")
                continue
            logger.debug(f"[PatternValidator] {rule.field}: {rule.selector.value} 匹配 {count} 个")
            extracted_count += count

        success = extracted_count > 0 and not errors
        confidence = count_confidence(extracted_count) if success else 0.0
        logger.info(
            f"[PatternValidator] 结果: success={success}, count={extracted_count}, "
            f"confidence={confidence:.2f}, errors={len(errors)}"
        )
        return ValidationResult(
            url=url,
            success=success,
            extracted_count=extracted_count,
            expected_count=expected_count,
            errors=errors,
            confidence=confidence,
        )
