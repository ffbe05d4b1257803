"""自定义异常类

定义项目中使用的所有自定义异常，用于更精细的错误处理。
"""

from __future__ import annotations


class LinkScoutError(Exception):
    """LinkScout 基础异常类

    所有自定义异常的基类。
    """
    pass


class BrowserError(LinkScoutError):
    """浏览器相关错误的基类"""
    pass


class DriverNotReadyError(BrowserError):
    """浏览器驱动未就绪

    在驱动尚未启动（或已关闭）时调用学习操作抛出。
    """
    def __init__(self, message: str = "浏览器驱动未就绪，请先启动"):
        super().__init__(message)


class DriverActionError(BrowserError):
    """驱动动作执行失败

    当自动化驱动返回 success=False 且调用方无法恢复时抛出。
    """
    def __init__(self, action: str, reason: str | None = None, message: str | None = None):
        super().__init__(message or f"动作执行失败 [{action}]: {reason or '未知错误'}")
        self.action = action
        self.reason = reason


class NavigationError(DriverActionError):
    """页面导航失败"""
    def __init__(self, url: str, reason: str | None = None):
        super().__init__(
            "navigate",
            reason,
            message=f"导航失败: {url}, 原因: {reason or '未知错误'}",
        )
        self.url = url


class LearningError(LinkScoutError):
    """学习模式相关错误的基类"""
    pass


class SessionNotFoundError(LearningError):
    """学习会话不存在"""
    def __init__(self, session_id: str):
        super().__init__(f"学习会话不存在: {session_id}")
        self.session_id = session_id


class SessionStateError(LearningError):
    """学习会话状态不允许该操作

    例如对已完成的会话继续录制或重复分析。
    """
    def __init__(self, session_id: str, status: str, operation: str):
        super().__init__(f"会话 {session_id} 处于 {status} 状态，无法执行 {operation}")
        self.session_id = session_id
        self.status = status
        self.operation = operation


class ElementNotFoundError(LearningError):
    """元素未找到错误

    当描述无法匹配当前快照中的任何元素时抛出。
    """
    def __init__(self, description: str, message: str = "未找到匹配的元素"):
        super().__init__(f"{message}: {description}")
        self.description = description


class NoElementsFoundError(ElementNotFoundError):
    """提取录制时没有任何元素匹配描述"""
    def __init__(self, description: str):
        super().__init__(description, message="没有元素匹配描述")


class PatternNotFoundError(LearningError):
    """学习到的模式不存在"""
    def __init__(self, pattern_id: str):
        super().__init__(f"模式不存在: {pattern_id}")
        self.pattern_id = pattern_id


class AnalysisError(LearningError):
    """会话分析失败，会话被标记为 failed"""
    def __init__(self, session_id: str, reason: str):
        super().__init__(f"会话 {session_id} 分析失败: {reason}")
        self.session_id = session_id
        self.reason = reason


class ValidationError(LinkScoutError):
    """输入验证失败错误"""
    pass


class URLValidationError(ValidationError):
    """URL 验证失败"""
    def __init__(self, url: str, reason: str = "格式无效"):
        super().__init__(f"URL 验证失败: {url}, 原因: {reason}")
        self.url = url
        self.reason = reason


class StorageError(LinkScoutError):
    """存储相关错误的基类"""
    pass


class PatternStoreError(StorageError):
    """模式存储读写失败"""
    def __init__(self, operation: str, reason: str):
        super().__init__(f"模式存储 {operation} 失败: {reason}")
        self.operation = operation
        self.reason = reason


class ConfigError(LinkScoutError):
    """配置相关错误"""
    pass
