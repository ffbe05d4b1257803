"""学习模式的进程内注册表"""

from __future__ import annotations

from ..common.logger import get_logger
from .models import LearnedPattern, LearningSession, SessionStatus

logger = get_logger(__name__)


class LearningContext:
    """会话与模式注册表

    由应用根对象持有并传给服务；没有淘汰策略，模式一直保留到 shutdown()。
    """

    def __init__(self):
        self.sessions: dict[str, LearningSession] = {}
        self.patterns: dict[str, LearnedPattern] = {}

    def add_session(self, session: LearningSession) -> None:
        self.sessions[session.id] = session

    def get_session(self, session_id: str) -> LearningSession | None:
        return self.sessions.get(session_id)

    def remove_session(self, session_id: str) -> LearningSession | None:
        return self.sessions.pop(session_id, None)

    def add_patterns(self, patterns: list[LearnedPattern]) -> None:
        for pattern in patterns:
            self.patterns[pattern.id] = pattern

    def get_pattern(self, pattern_id: str) -> LearnedPattern | None:
        return self.patterns.get(pattern_id)

    def shutdown(self) -> None:
        """清空注册表；仍在录制的会话会被丢弃"""
        in_flight = [s for s in self.sessions.values() if s.status == SessionStatus.RECORDING]
        for session in in_flight:
            logger.warning(
                f"[LearningContext] 丢弃未分析的会话: {session.id} "
                f"({len(session.interactions)} 条交互)"
            )
        self.sessions.clear()
        self.patterns.clear()
