"""动作执行与值转换单元测试"""

import pytest

from linkscout.common.browser.actions import execute_action
from linkscout.common.transforms import (
    TransformType,
    infer_transform,
    parse_leading_int,
    transform_value,
)
from linkscout.common.types import ActionType, BrowserAction


class TestExecuteAction:
    """execute_action 分派测试"""

    @pytest.mark.asyncio
    async def test_click_dispatched(self, fake_driver):
        """测试 click 转发给驱动"""
        result = await execute_action(fake_driver, BrowserAction.click("button.morelink"))
        assert result.success is True
        assert fake_driver.clicks == ["button.morelink"]

    @pytest.mark.asyncio
    async def test_missing_parameter_fails(self, fake_driver):
        """测试缺少参数时返回失败而不是抛异常"""
        result = await execute_action(fake_driver, BrowserAction(type=ActionType.NAVIGATE))
        assert result.success is False
        assert "url" in result.error
        assert fake_driver.navigations == []

    @pytest.mark.asyncio
    async def test_wait_unsupported_by_default(self, fake_driver):
        """测试驱动未实现等待时返回失败"""
        result = await execute_action(
            fake_driver, BrowserAction(type=ActionType.WAIT, selector="div")
        )
        assert result.success is False

    @pytest.mark.asyncio
    async def test_extract_number(self, fake_driver, hn_url):
        """测试分数字段按 number 转换"""
        await fake_driver.navigate(hn_url)
        result = await execute_action(
            fake_driver,
            BrowserAction.extract("vote_score", "tr.subtext:nth-of-type(2) > span.score"),
        )

        assert result.success is True
        assert result.data["value"] == 87
        assert result.data["transform"] == "number"
        assert result.data["element"] == "SPAN"

    @pytest.mark.asyncio
    async def test_extract_href(self, fake_driver, hn_url):
        """测试链接字段取 href"""
        await fake_driver.navigate(hn_url)
        result = await execute_action(
            fake_driver,
            BrowserAction.extract("post_url", "tr.athing:nth-of-type(3) > td.title > a"),
        )
        assert result.data["value"] == "https://example.com/sqlite"

    @pytest.mark.asyncio
    async def test_extract_missing_element(self, fake_driver, hn_url):
        """测试元素不存在时返回失败"""
        await fake_driver.navigate(hn_url)
        result = await execute_action(fake_driver, BrowserAction.extract("title", "div.gone"))
        assert result.success is False
        assert "div.gone" in result.error


class TestTransforms:
    """字段转换测试"""

    @pytest.mark.parametrize(
        "field,expected",
        [
            ("post_url", TransformType.HREF),
            ("LinkTarget", TransformType.HREF),
            ("vote_score", TransformType.NUMBER),
            ("comment_count", TransformType.NUMBER),
            ("published_date", TransformType.DATE),
            ("timestamp", TransformType.DATE),
            ("title", TransformType.TEXT),
        ],
    )
    def test_infer_transform(self, field, expected):
        """测试按字段名推断转换类型"""
        assert infer_transform(field) == expected

    def test_url_wins_over_count(self):
        """测试按顺序匹配：url 先于 count"""
        assert infer_transform("url_count") == TransformType.HREF

    def test_parse_leading_int(self):
        """测试开头整数解析"""
        assert parse_leading_int("42 points") == 42
        assert parse_leading_int("  7") == 7
        assert parse_leading_int("points: 42") == 0
        assert parse_leading_int(None) == 0

    def test_date_falls_back_to_text(self):
        """测试无法解析的日期保留去空白后的文本"""
        assert transform_value("date", {"text": " 2024-03-01 "}) == "2024-03-01T00:00:00"
        assert transform_value("date", {"text": " 3 hours ago "}) == "3 hours ago"

    def test_text_is_raw(self):
        """测试 text 原样返回"""
        assert transform_value(TransformType.TEXT, {"text": "  Hi \n"}) == "  Hi \n"
