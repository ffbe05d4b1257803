"""学习模式运行时装配"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from ..common.browser.playwright_driver import PlaywrightDriver
from ..common.config import Config, config
from ..common.logger import get_logger
from ..common.storage import create_pattern_store
from .service import LearningModeService

logger = get_logger(__name__)


@asynccontextmanager
async def create_learning_runtime(
    app_config: Config | None = None,
) -> AsyncGenerator[LearningModeService, None]:
    """启动浏览器与模式存储，返回学习服务；退出时按相反顺序释放

    用法:
        async with create_learning_runtime() as service:
            session = await service.start_learning_session("hn", "https://news.ycombinator.com")
    """
    app_config = app_config or config
    store = create_pattern_store(app_config.storage)
    driver = PlaywrightDriver(app_config.browser)
    service = LearningModeService(driver, store, app_config=app_config)

    try:
        await driver.start()
        yield service
    finally:
        service.context.shutdown()
        await driver.close()
        await store.close()
        logger.info("[create_learning_runtime] 运行时已关闭")
