"""模式验证与置信度单元测试"""

import pytest

from linkscout.common.exceptions import DriverNotReadyError
from linkscout.learning.models import (
    ExtractionRule,
    LearnedPattern,
    PatternSelector,
    ValidationResult,
)
from linkscout.learning.validator import (
    PatternValidator,
    calculate_pattern_confidence,
    count_confidence,
    record_validation,
)


def _pattern(*selectors):
    rules = [
        ExtractionRule(field=f"f{i}", selector=PatternSelector(value=s, role=f"f{i}"))
        for i, s in enumerate(selectors)
    ]
    return LearnedPattern(
        id="pattern_test",
        name="test_extraction",
        selectors=[r.selector for r in rules],
        extraction_rules=rules,
    )


class TestPatternValidator:
    """验证器测试"""

    @pytest.mark.asyncio
    async def test_navigation_failure(self, fake_driver):
        """测试导航失败：success=False、计数 0、置信度 0、记录错误"""
        fake_driver.failing_urls.add("https://down.example.com/")
        result = await PatternValidator(fake_driver).validate(
            _pattern("tr.athing > td.title > a"), "https://down.example.com/"
        )

        assert result.success is False
        assert result.extracted_count == 0
        assert result.confidence == 0
        assert len(result.errors) == 1
        assert "导航失败" in result.errors[0]

    @pytest.mark.asyncio
    async def test_driver_error_during_navigation(self, fake_driver, monkeypatch):
        """测试导航时驱动抛出异常被记录为失败结果，不向上抛出"""
        async def _closed(url):
            raise DriverNotReadyError()

        monkeypatch.setattr(fake_driver, "navigate", _closed)
        result = await PatternValidator(fake_driver).validate(
            _pattern("tr.athing > td.title > a"), "https://news.ycombinator.com/"
        )

        assert result.success is False
        assert result.extracted_count == 0
        assert result.confidence == 0
        assert len(result.errors) == 1
        assert "未就绪" in result.errors[0]

    @pytest.mark.asyncio
    async def test_counts_matches(self, fake_driver, hn_url):
        """测试按规则计数，置信度 = count / 10"""
        result = await PatternValidator(fake_driver).validate(
            _pattern("tr.athing > td.title > a"), hn_url, expected_count=30
        )

        assert result.success is True
        assert result.extracted_count == 3
        assert result.expected_count == 30
        assert result.confidence == pytest.approx(0.3)
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_counts_summed_across_rules(self, fake_driver, hn_url):
        """测试多条规则的计数相加"""
        result = await PatternValidator(fake_driver).validate(
            _pattern("tr.athing > td.title > a", "tr.subtext > span.score"), hn_url
        )
        assert result.extracted_count == 6

    @pytest.mark.asyncio
    async def test_confidence_saturates(self, fake_driver, hn_url):
        """测试匹配数超过 10 时置信度为 1"""
        fake_driver.pages[hn_url].counts["li.item"] = 25
        result = await PatternValidator(fake_driver).validate(_pattern("li.item"), hn_url)
        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_rule_error_fails_whole_validation(self, fake_driver, hn_url):
        """测试任一规则出错则整体失败，但仍继续执行其他规则"""
        fake_driver.failing_selectors.add("td[[bad")
        result = await PatternValidator(fake_driver).validate(
            _pattern("td[[bad", "tr.athing > td.title > a"), hn_url
        )

        assert result.success is False
        assert result.extracted_count == 3
        assert result.confidence == 0
        assert len(result.errors) == 1
        assert "f0" in result.errors[0]

    @pytest.mark.asyncio
    async def test_zero_matches_is_failure(self, fake_driver, hn_url):
        """测试零匹配视为失败"""
        result = await PatternValidator(fake_driver).validate(_pattern("div.missing"), hn_url)
        assert result.success is False
        assert result.errors == []
        assert result.confidence == 0


class TestConfidenceModel:
    """置信度模型测试"""

    def test_unvalidated_is_half(self):
        """测试无验证结果时为 0.5"""
        assert calculate_pattern_confidence([]) == 0.5

    def test_weighted_combination(self):
        """测试 0.7 × 平均置信度 + 0.3 × 成功比例"""
        results = [
            ValidationResult(url="u", success=True, extracted_count=5, confidence=0.5),
            ValidationResult(url="u", success=False, extracted_count=0, confidence=0.0),
        ]
        assert calculate_pattern_confidence(results) == pytest.approx(0.7 * 0.25 + 0.3 * 0.5)

    def test_bounded_by_one(self):
        """测试全部满分时不超过 1"""
        results = [ValidationResult(url="u", success=True, extracted_count=50, confidence=1.0)] * 5
        assert calculate_pattern_confidence(results) <= 1.0

    def test_count_confidence(self):
        """测试计数映射"""
        assert count_confidence(0) == 0.0
        assert count_confidence(4) == pytest.approx(0.4)
        assert count_confidence(10) == 1.0
        assert count_confidence(100) == 1.0

    def test_record_validation_updates_pattern(self):
        """测试追加结果后更新置信度、成功率与最后验证时间"""
        pattern = _pattern("a")
        result = ValidationResult(url="u", success=True, extracted_count=10, confidence=1.0)

        record_validation(pattern, result)

        assert pattern.validation_results == [result]
        assert pattern.confidence == pytest.approx(1.0)
        assert pattern.metadata.success_rate == 1.0
        assert pattern.metadata.last_validated == result.timestamp
