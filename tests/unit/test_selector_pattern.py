"""选择器泛化与模式合成单元测试"""

import pytest

from linkscout.common.transforms import TransformType, infer_transform, transform_value
from linkscout.common.types import ActionResult, BrowserAction
from linkscout.learning.models import (
    LearningInteraction,
    LearningSession,
    SessionMetadata,
)
from linkscout.learning.selector_pattern import (
    PatternSynthesizer,
    find_common_selector,
    generalize_selector,
)


def _extract(field, selector, element):
    return LearningInteraction(
        action=BrowserAction.extract(field, selector),
        element=element("text", "x", selector),
        result=ActionResult.ok({"field": field, "value": "x"}),
    )


def _click(selector, element):
    return LearningInteraction(
        action=BrowserAction.click(selector),
        element=element("button", "Go", selector),
        result=ActionResult.ok(),
    )


def _session(interactions, **kwargs):
    return LearningSession(
        id="learning_1_test",
        name="test",
        target_site="example.com",
        target_url="https://example.com/",
        interactions=interactions,
        metadata=SessionMetadata(user_agent="LearningMode/1.0"),
        **kwargs,
    )


class TestGeneralizeSelector:
    """选择器泛化测试"""

    def test_strip_bracket_index(self):
        """测试去掉 [n] 索引"""
        assert generalize_selector("div.post[0] h3") == "div.post h3"

    def test_strip_nth_of_type_and_nth_child(self):
        """测试去掉 :nth-of-type(n) 与 :nth-child(n)"""
        assert (
            generalize_selector("tr.athing:nth-of-type(3) > td:nth-child(2) > a")
            == "tr.athing > td > a"
        )

    def test_non_numeric_brackets_kept(self):
        """测试属性选择器不受影响"""
        assert generalize_selector('a[href="x"]') == 'a[href="x"]'


class TestFindCommonSelector:
    """通用选择器选择测试"""

    def test_scenario_two_indexed_posts(self):
        """测试两个带索引的示例泛化为同一选择器"""
        assert find_common_selector(["div.post[0] h3", "div.post[1] h3"]) == "div.post h3"

    def test_single_distinct_selector_used_verbatim(self):
        """测试只有一种选择器时原样使用（不泛化）"""
        assert find_common_selector(["li[2] > a", "li[2] > a"]) == "li[2] > a"

    def test_most_frequent_wins(self):
        """测试取泛化后出现最多的选择器"""
        selectors = ["aside[1] a", "div.row[1] a", "div.row[2] a", "div.row[3] a"]
        assert find_common_selector(selectors) == "div.row a"

    def test_tie_broken_by_first_occurrence(self):
        """测试次数相同时取最先出现的"""
        selectors = ["ul[1] > li", "ol[1] > li", "ol[2] > li", "ul[2] > li"]
        assert find_common_selector(selectors) == "ul > li"

    def test_deterministic(self):
        """测试相同输入总得到相同输出"""
        selectors = ["a[1]", "b[1]", "a[2]", "b[2]"]
        results = {find_common_selector(list(selectors)) for _ in range(20)}
        assert results == {"a"}

    def test_empty_list_raises(self):
        """测试空列表抛出异常"""
        with pytest.raises(ValueError):
            find_common_selector([])


class TestTransforms:
    """转换类型推断与转换测试"""

    @pytest.mark.parametrize(
        "field,expected",
        [
            ("post_url", TransformType.HREF),
            ("vote_score", TransformType.NUMBER),
            ("published_date", TransformType.DATE),
            ("headline", TransformType.TEXT),
            ("comment_count", TransformType.NUMBER),
            ("Permalink", TransformType.HREF),
            ("posted_time", TransformType.DATE),
        ],
    )
    def test_infer_transform(self, field, expected):
        """测试转换类型只由字段名决定"""
        assert infer_transform(field) == expected

    def test_number_takes_leading_integer(self):
        """测试 number 取开头整数，无数字时为 0"""
        assert transform_value(TransformType.NUMBER, {"text": "120 points"}) == 120
        assert transform_value(TransformType.NUMBER, {"text": "discuss"}) == 0

    def test_text_is_unmodified(self):
        """测试 text 原样返回"""
        assert transform_value(TransformType.TEXT, {"text": "  Hello  "}) == "  Hello  "

    def test_href(self):
        """测试 href 取链接"""
        data = {"text": "x", "href": "https://example.com/a"}
        assert transform_value(TransformType.HREF, data) == "https://example.com/a"

    def test_date(self):
        """测试 date 解析 ISO 日期，失败时返回去空白文本"""
        assert transform_value("date", {"text": " 2024-05-01 "}) == "2024-05-01T00:00:00"
        assert transform_value("date", {"text": " 3 hours ago "}) == "3 hours ago"


class TestPatternSynthesizer:
    """模式合成测试"""

    def test_scenario_title_field(self, element):
        """测试两个 title 示例合成一个 text 规则"""
        session = _session(
            [_extract("title", "div.post[0] h3", element), _extract("title", "div.post[1] h3", element)]
        )
        patterns = PatternSynthesizer().synthesize(session)

        assert len(patterns) == 1
        rule = patterns[0].extraction_rules[0]
        assert rule.field == "title"
        assert rule.selector.value == "div.post h3"
        assert rule.transform == TransformType.TEXT
        assert rule.required is True
        assert patterns[0].confidence == 0.8
        assert patterns[0].metadata.learned_from == 2

    def test_group_below_minimum_discarded(self, element):
        """测试少于两个示例的字段被丢弃"""
        session = _session(
            [
                _extract("title", "h3[1]", element),
                _extract("title", "h3[2]", element),
                _extract("author", "span.user", element),
            ]
        )
        patterns = PatternSynthesizer().synthesize(session)
        assert [p.extraction_rules[0].field for p in patterns] == ["title"]

    def test_click_interactions_ignored(self, element):
        """测试点击交互不参与合成"""
        session = _session([_click("button[1]", element), _click("button[2]", element)])
        assert PatternSynthesizer().synthesize(session) == []

    def test_one_pattern_per_field(self, element):
        """测试默认每个字段一个模式"""
        session = _session(
            [
                _extract("title", "h3[1]", element),
                _extract("vote_score", "span.score[1]", element),
                _extract("title", "h3[2]", element),
                _extract("vote_score", "span.score[2]", element),
            ]
        )
        patterns = PatternSynthesizer().synthesize(session)
        assert [p.name for p in patterns] == ["title_extraction", "vote_score_extraction"]
        assert patterns[1].extraction_rules[0].transform == TransformType.NUMBER

    def test_bundle_produces_single_pattern(self, element):
        """测试 bundle 模式合成一个多规则模式"""
        session = _session(
            [
                _extract("title", "h3[1]", element),
                _extract("title", "h3[2]", element),
                _extract("post_url", "a[1]", element),
                _extract("post_url", "a[2]", element),
            ]
        )
        patterns = PatternSynthesizer().synthesize(session, bundle=True)

        assert len(patterns) == 1
        assert patterns[0].name == "test_extraction"
        assert patterns[0].field_names == ["title", "post_url"]
        assert patterns[0].metadata.learned_from == 4

    def test_fallbacks_keep_first_three_examples(self, element):
        """测试备选选择器按示例顺序保留前三个具体选择器"""
        session = _session([_extract("title", f"h3[{i % 4}]", element) for i in range(8)])
        rule = PatternSynthesizer().synthesize(session)[0].extraction_rules[0]
        assert rule.selector.fallbacks == ["h3[0]", "h3[1]", "h3[2]"]

    def test_fallbacks_keep_repeated_selectors(self, element):
        """测试重复的具体选择器原样保留在备选列表中"""
        selectors = ["li[2] > a", "li[2] > a", "li[5] > a", "li[7] > a"]
        session = _session([_extract("title", s, element) for s in selectors])
        rule = PatternSynthesizer().synthesize(session)[0].extraction_rules[0]
        assert rule.selector.value == "li > a"
        assert rule.selector.fallbacks == ["li[2] > a", "li[2] > a", "li[5] > a"]

    def test_pattern_ids_are_unique(self, element):
        """测试模式 ID 唯一"""
        session = _session([_extract("title", "h3[1]", element), _extract("title", "h3[2]", element)])
        synthesizer = PatternSynthesizer()
        first = synthesizer.synthesize(session)[0]
        second = synthesizer.synthesize(session)[0]
        assert first.id != second.id
        assert first.id.startswith("pattern_title_")
