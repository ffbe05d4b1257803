"""动作执行器"""

from __future__ import annotations

from ..logger import get_logger
from ..transforms import infer_transform, transform_value
from ..types import ActionResult, ActionType, BrowserAction
from .driver import AutomationDriver
from .scripts import ELEMENT_DATA_JS

logger = get_logger(__name__)


async def execute_action(driver: AutomationDriver, action: BrowserAction) -> ActionResult:
    """通过驱动执行一个 BrowserAction

    参数缺失时返回 success=False，不抛异常。
    """
    if action.type == ActionType.NAVIGATE:
        if not action.url:
            return ActionResult.fail("navigate 需要 url")
        return await driver.navigate(action.url)

    elif action.type == ActionType.CLICK:
        if not action.selector:
            return ActionResult.fail("click 需要 selector")
        return await driver.click(action.selector)

    elif action.type == ActionType.TYPE:
        if not action.selector or action.text is None:
            return ActionResult.fail("type 需要 selector 和 text")
        return await driver.type(action.selector, action.text)

    elif action.type == ActionType.SCREENSHOT:
        return await driver.take_screenshot(full_page=action.full_page)

    elif action.type == ActionType.WAIT:
        if not action.selector:
            return ActionResult.fail("wait 需要 selector")
        return await driver.wait_for_selector(action.selector, action.timeout_ms)

    elif action.type == ActionType.EVALUATE:
        if not action.script:
            return ActionResult.fail("evaluate 需要 script")
        return await driver.evaluate_script(action.script)

    elif action.type == ActionType.EXTRACT:
        return await _execute_extract(driver, action)

    elif action.type == ActionType.CLOSE:
        return await driver.close()

    return ActionResult.fail(f"未知动作: {action.type}")


async def _execute_extract(driver: AutomationDriver, action: BrowserAction) -> ActionResult:
    """读取元素内容并按字段推断的转换类型转换"""
    if not action.selector or not action.field:
        return ActionResult.fail("extract 需要 selector 和 field")

    result = await driver.evaluate_script(ELEMENT_DATA_JS, action.selector)
    if not result.success:
        return result
    if result.data is None:
        return ActionResult.fail(f"元素不存在: {action.selector}")

    transform = infer_transform(action.field)
    value = transform_value(transform, result.data)
    logger.debug(f"[execute_action] 提取 {action.field}={value!r} ({transform.value})")
    return ActionResult.ok(
        {
            "field": action.field,
            "value": value,
            "transform": transform.value,
            "element": result.data.get("element"),
        }
    )
