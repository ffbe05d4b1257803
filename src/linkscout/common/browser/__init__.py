"""浏览器模块"""

from .driver import AutomationDriver
from .playwright_driver import PlaywrightDriver
from .actions import execute_action

__all__ = [
    "AutomationDriver",
    "PlaywrightDriver",
    "execute_action",
]
