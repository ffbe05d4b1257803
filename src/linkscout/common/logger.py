"""统一日志系统

所有模块通过 get_logger(__name__) 取得日志器：控制台走 Rich，
设置 LOG_FILE 时另写一份纯文本日志。

环境变量:
    LOG_LEVEL: 控制台日志级别，默认 INFO
    LOG_FILE: 文件日志路径，未设置则不写文件
    LOG_SHOW_LOCALS: 异常堆栈是否显示局部变量
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


# 日志写到 stderr，stdout 留给 CLI 的表格与 JSON 输出
console = Console(stderr=True)

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
_FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """读取 LOG_LEVEL，无法识别时回退到 INFO"""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _build_console_handler(level: int) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=os.getenv("LOG_SHOW_LOCALS", "false").lower() == "true",
        # 选择器中包含 [..]，关闭 markup 以免被当成样式标签
        markup=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    return handler


def get_logger(name: str) -> logging.Logger:
    """获取统一配置的日志器

    Example:
        >>> from linkscout.common.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("[LearningModeService] 会话已创建")
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = get_log_level()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(_build_console_handler(level))

    log_file = os.getenv("LOG_FILE")
    if log_file:
        setup_file_logging(logger, log_file)

    logger.propagate = False
    return logger


def setup_file_logging(
    logger: logging.Logger,
    log_file: str,
    level: int = logging.DEBUG,
) -> None:
    """为日志器追加文件输出"""
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATE_FORMAT))
    logger.addHandler(file_handler)
