"""pytest 全局配置和 fixtures

提供测试所需的基础设施：脚本化的假驱动与示例页面。
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from linkscout.common.browser.driver import AutomationDriver  # noqa: E402
from linkscout.common.browser.scripts import (  # noqa: E402
    COUNT_ELEMENTS_JS,
    ELEMENT_DATA_JS,
    ELEMENTS_DATA_JS,
    PAGE_INFO_JS,
)
from linkscout.common.config import Config, LearningConfig, StorageConfig  # noqa: E402
from linkscout.common.exceptions import DriverActionError  # noqa: E402
from linkscout.common.storage import MemoryPatternStore  # noqa: E402
from linkscout.common.types import ActionResult, BoundingBox, ElementSnapshot  # noqa: E402
from linkscout.learning.registry import LearningContext  # noqa: E402
from linkscout.learning.service import LearningModeService  # noqa: E402


HN_URL = "https://news.ycombinator.com/"
HN_PAGE_2 = "https://news.ycombinator.com/news?p=2"

TITLE_SELECTOR = "tr.athing > td.title > a"
SCORE_SELECTOR = "tr.subtext > span.score"


# ============================================================================
# 假驱动
# ============================================================================


@dataclass
class FakePage:
    """一个脚本化页面"""

    title: str = ""
    snapshot: list[ElementSnapshot] = field(default_factory=list)
    # 选择器 → ELEMENTS_DATA_JS 返回的原始数据
    data: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    # 选择器 → 计数（未设置时取 data 的长度）
    counts: dict[str, int] = field(default_factory=dict)
    hrefs: dict[str, str] = field(default_factory=dict)


class FakeDriver(AutomationDriver):
    """按 URL 提供快照与查询结果的驱动"""

    def __init__(self):
        self.pages: dict[str, FakePage] = {}
        self.ready = True
        self.current_url = ""
        self.failing_urls: set[str] = set()
        self.failing_selectors: set[str] = set()
        self.screenshot_fails = False
        self.snapshot_fails = False
        self.navigations: list[str] = []
        self.clicks: list[str] = []
        self.scripts: list[tuple[str, Any]] = []

    def add_page(self, url: str, **kwargs) -> FakePage:
        page = FakePage(**kwargs)
        self.pages[url] = page
        return page

    @property
    def page(self) -> FakePage:
        return self.pages.get(self.current_url) or FakePage()

    def is_ready(self) -> bool:
        return self.ready

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": 1280, "height": 720}

    async def navigate(self, url: str) -> ActionResult:
        self.navigations.append(url)
        if url in self.failing_urls:
            return ActionResult.fail("net::ERR_NAME_NOT_RESOLVED")
        self.current_url = url
        return ActionResult.ok({"url": url, "status": 200})

    async def click(self, selector: str) -> ActionResult:
        self.clicks.append(selector)
        if selector in self.failing_selectors:
            return ActionResult.fail(f"元素不可点击: {selector}")
        return ActionResult.ok({"url": self.current_url})

    async def type(self, selector: str, text: str) -> ActionResult:
        return ActionResult.ok()

    async def take_screenshot(self, full_page: bool = False) -> ActionResult:
        if self.screenshot_fails:
            return ActionResult.fail("截图失败")
        return ActionResult.ok(b"\x89PNG")

    async def get_accessibility_snapshot(self) -> list[ElementSnapshot]:
        if self.snapshot_fails:
            raise DriverActionError("snapshot", "页面已崩溃")
        return list(self.page.snapshot)

    async def evaluate_script(self, script: str, arg: Any = None) -> ActionResult:
        self.scripts.append((script, arg))
        page = self.page

        if script == PAGE_INFO_JS:
            return ActionResult.ok({"url": self.current_url, "title": page.title})

        if arg in self.failing_selectors:
            return ActionResult.fail(f"SyntaxError: '{arg}' is not a valid selector")

        if script == COUNT_ELEMENTS_JS:
            if arg in page.counts:
                return ActionResult.ok(page.counts[arg])
            return ActionResult.ok(len(page.data.get(arg, [])))

        if script == ELEMENTS_DATA_JS:
            return ActionResult.ok(page.data.get(arg, []))

        if script == ELEMENT_DATA_JS:
            for element in page.snapshot:
                if element.selector == arg:
                    return ActionResult.ok(
                        {
                            "text": element.text or element.name,
                            "href": page.hrefs.get(arg, ""),
                            "element": "A" if element.role == "link" else "SPAN",
                        }
                    )
            return ActionResult.ok(None)

        return ActionResult.ok(None)


def make_element(role: str, text: str, selector: str, name: str | None = None) -> ElementSnapshot:
    return ElementSnapshot(
        role=role,
        name=text if name is None else name,
        selector=selector,
        bounds=BoundingBox(x=0, y=0, width=100, height=20),
        text=text,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def element():
    """元素快照工厂"""
    return make_element


@pytest.fixture
def hn_stories():
    """首页三条帖子 (标题, 链接, 分数)"""
    return [
        ("Show HN: A tiny parser", "https://example.com/parser", "120 points"),
        ("Rust 2.0 released", "https://example.com/rust", "87 points"),
        ("Why SQLite works", "https://example.com/sqlite", "45 points"),
    ]


@pytest.fixture
def fake_driver(hn_stories):
    """带有类 Hacker News 列表页的假驱动"""
    driver = FakeDriver()

    snapshot = []
    hrefs = {}
    for i, (title, href, _) in enumerate(hn_stories, 1):
        selector = f"tr.athing:nth-of-type({i}) > td.title > a"
        snapshot.append(make_element("link", title, selector))
        hrefs[selector] = href
    for i, (_, _, score) in enumerate(hn_stories, 1):
        snapshot.append(make_element("text", score, f"tr.subtext:nth-of-type({i}) > span.score"))
    snapshot.append(make_element("button", "More", "button.morelink"))

    data = {
        TITLE_SELECTOR: [
            {"text": title, "href": href, "element": "A"} for title, href, _ in hn_stories
        ],
        SCORE_SELECTOR: [
            {"text": score, "href": "", "element": "SPAN"} for _, _, score in hn_stories
        ],
    }
    driver.add_page(HN_URL, title="Hacker News", snapshot=snapshot, data=data, hrefs=hrefs)
    driver.add_page(HN_PAGE_2, title="Hacker News | page 2", data=data)
    return driver


@pytest.fixture
def pattern_store():
    return MemoryPatternStore()


@pytest.fixture
def app_config():
    """不依赖环境变量的配置"""
    return Config(
        learning=LearningConfig(bundle_fields=False, validate_on_analyze=True),
        storage=StorageConfig(backend="memory", db_path=":memory:"),
    )


@pytest.fixture
def service(fake_driver, pattern_store, app_config):
    return LearningModeService(
        fake_driver, pattern_store, context=LearningContext(), app_config=app_config
    )


@pytest.fixture
def hn_url():
    return HN_URL


@pytest.fixture
def hn_page_2():
    return HN_PAGE_2
