"""基于 Playwright 的自动化驱动"""

from __future__ import annotations

from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from ..config import BrowserConfig, config
from ..constants import DEFAULT_WAIT_TIMEOUT_MS
from ..exceptions import DriverActionError, DriverNotReadyError
from ..logger import get_logger
from ..types import ActionResult, BoundingBox, ElementSnapshot
from .driver import AutomationDriver
from .scripts import SNAPSHOT_JS

logger = get_logger(__name__)


class PlaywrightDriver(AutomationDriver):
    """Playwright 驱动

    整个进程只持有一个页面上下文，所有会话共享它。
    每个动作把 Playwright 异常转换为 success=False 的 ActionResult。
    """

    def __init__(self, browser_config: BrowserConfig | None = None):
        self.config = browser_config or config.browser
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def start(self) -> Page:
        """启动浏览器并返回 Page"""
        if self._page is not None:
            return self._page

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                slow_mo=self.config.slow_mo,
            )
            self._context = await self._browser.new_context(viewport=self.config.viewport)
            self._context.set_default_timeout(self.config.timeout_ms)
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            await self.close()
            raise DriverActionError("start", str(e)) from e
        logger.info(
            f"[PlaywrightDriver] 浏览器已启动 (headless={self.config.headless}, "
            f"viewport={self.config.viewport_width}x{self.config.viewport_height})"
        )
        return self._page

    @property
    def page(self) -> Page | None:
        return self._page

    @property
    def viewport(self) -> dict[str, int]:
        return self.config.viewport

    def is_ready(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    def _require_page(self) -> Page:
        if not self.is_ready():
            raise DriverNotReadyError()
        return self._page  # type: ignore[return-value]

    async def navigate(self, url: str) -> ActionResult:
        page = self._require_page()
        try:
            response = await page.goto(url, wait_until="domcontentloaded")
        except PlaywrightTimeout as e:
            return ActionResult.fail(f"导航超时: {e}")
        except PlaywrightError as e:
            return ActionResult.fail(str(e))

        status = response.status if response else None
        if status is not None and status >= 400:
            return ActionResult.fail(f"HTTP {status}")
        await self._wait_for_stable()
        return ActionResult.ok({"url": page.url, "status": status})

    async def click(self, selector: str) -> ActionResult:
        page = self._require_page()
        try:
            await page.locator(selector).first.click()
        except PlaywrightTimeout as e:
            return ActionResult.fail(f"点击超时: {e}")
        except PlaywrightError as e:
            return ActionResult.fail(str(e))
        await self._wait_for_stable()
        return ActionResult.ok({"url": page.url})

    async def type(self, selector: str, text: str) -> ActionResult:
        page = self._require_page()
        try:
            await page.locator(selector).first.fill(text)
        except PlaywrightError as e:
            return ActionResult.fail(str(e))
        return ActionResult.ok()

    async def take_screenshot(self, full_page: bool = False) -> ActionResult:
        page = self._require_page()
        try:
            image = await page.screenshot(full_page=full_page, type="png")
        except PlaywrightError as e:
            return ActionResult.fail(str(e))
        return ActionResult.ok(image)

    async def get_accessibility_snapshot(self) -> list[ElementSnapshot]:
        result = await self.evaluate_script(SNAPSHOT_JS)
        if not result.success:
            raise DriverActionError("snapshot", result.error)

        elements = []
        for item in result.data or []:
            bounds = item.get("bounds") or {}
            elements.append(
                ElementSnapshot(
                    role=item.get("role") or "text",
                    name=item.get("name") or "",
                    selector=item["selector"],
                    bounds=BoundingBox(
                        x=bounds.get("x", 0),
                        y=bounds.get("y", 0),
                        width=bounds.get("width", 0),
                        height=bounds.get("height", 0),
                    ),
                    text=item.get("text"),
                    value=item.get("value"),
                )
            )
        return elements

    async def evaluate_script(self, script: str, arg: Any = None) -> ActionResult:
        page = self._require_page()
        try:
            if arg is None:
                data = await page.evaluate(script)
            else:
                data = await page.evaluate(script, arg)
        except PlaywrightError as e:
            return ActionResult.fail(str(e))
        return ActionResult.ok(data)

    async def wait_for_selector(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS
    ) -> ActionResult:
        page = self._require_page()
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeout:
            return ActionResult.fail(f"等待元素超时: {selector}")
        except PlaywrightError as e:
            return ActionResult.fail(str(e))
        return ActionResult.ok()

    async def close(self) -> ActionResult:
        """关闭浏览器"""
        try:
            if self._page:
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"[PlaywrightDriver] 关闭浏览器出错: {e}")
            return ActionResult.fail(str(e))
        finally:
            if self._playwright:
                await self._playwright.stop()
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None
        logger.info("[PlaywrightDriver] 浏览器已关闭")
        return ActionResult.ok()

    async def _wait_for_stable(self, timeout_ms: int = 3000) -> None:
        """等待页面稳定(网络空闲)"""
        if not self._page:
            return
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeout:
            # 超时不算错误,继续执行
            pass
