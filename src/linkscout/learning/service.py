"""学习模式服务

管理学习会话的生命周期：开始会话、录制点击与提取、分析合成模式、
验证并保存模式，以及把已学到的模式应用到新页面。

同一会话上的调用由单一调用方顺序发起，服务内部不加锁。
"""

from __future__ import annotations

import re
import time
import uuid

from ..common.browser.driver import AutomationDriver
from ..common.config import Config, config
from ..common.exceptions import (
    AnalysisError,
    DriverNotReadyError,
    LinkScoutError,
    NavigationError,
    PatternNotFoundError,
    PatternStoreError,
    SessionNotFoundError,
)
from ..common.logger import get_logger
from ..common.storage import PatternStore
from ..common.validators import (
    extract_domain,
    validate_description,
    validate_field_name,
    validate_url,
)
from .applier import PatternApplier
from .matcher import ElementMatcher
from .models import (
    ExtractedValue,
    LearnedPattern,
    LearningInteraction,
    LearningOptions,
    LearningSession,
    SessionMetadata,
    SessionStatus,
    ValidationResult,
)
from .persistence import load_patterns, save_patterns
from .recorder import InteractionRecorder
from .registry import LearningContext
from .selector_pattern import PatternSynthesizer
from .validator import PatternValidator, calculate_pattern_confidence, record_validation

logger = get_logger(__name__)

_NAME_SLUG_RE = re.compile(r"[^\w-]+")


def _new_session_id(name: str) -> str:
    slug = _NAME_SLUG_RE.sub("_", name.strip()).strip("_") or "session"
    return f"learning_{int(time.time() * 1000)}_{slug}_{uuid.uuid4().hex[:6]}"


class LearningModeService:
    """学习模式服务"""

    def __init__(
        self,
        driver: AutomationDriver,
        store: PatternStore,
        context: LearningContext | None = None,
        matcher: ElementMatcher | None = None,
        app_config: Config | None = None,
    ):
        self.driver = driver
        self.store = store
        self.context = context or LearningContext()
        self.config = app_config or config
        self.recorder = InteractionRecorder(driver, matcher)
        self.synthesizer = PatternSynthesizer()
        self.validator = PatternValidator(driver)
        self.applier = PatternApplier(driver)

    # ------------------------------------------------------------------
    # 会话
    # ------------------------------------------------------------------

    async def start_learning_session(
        self,
        name: str,
        target_url: str,
        options: LearningOptions | None = None,
    ) -> LearningSession:
        """开始学习会话

        导航失败时不会注册会话。

        Raises:
            DriverNotReadyError: 驱动未启动
            URLValidationError: URL 格式无效
            NavigationError: 导航失败
            DriverActionError: 基线快照失败
        """
        if not self.driver.is_ready():
            raise DriverNotReadyError()

        target_url = validate_url(target_url)
        options = options or LearningOptions()
        for url in options.validation_urls:
            validate_url(url)

        nav = await self.driver.navigate(target_url)
        if not nav.success:
            raise NavigationError(target_url, nav.error)

        screenshot = await self.driver.take_screenshot(full_page=True)
        if not screenshot.success:
            logger.warning(f"[LearningModeService] 基线截图失败: {screenshot.error}")
        baseline = await self.driver.get_accessibility_snapshot()

        session = LearningSession(
            id=_new_session_id(name),
            name=name,
            target_site=extract_domain(target_url),
            target_url=target_url,
            options=options,
            metadata=SessionMetadata(
                user_agent=self.config.browser.user_agent,
                viewport=dict(self.driver.viewport),
            ),
        )
        self.context.add_session(session)

        logger.info(f"[LearningModeService] 学习会话已开始: {name} ({session.id})")
        logger.info(f"[LearningModeService] 目标: {target_url}, 基线快照 {len(baseline)} 个元素")
        return session

    def _require_session(self, session_id: str) -> LearningSession:
        session = self.context.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def record_click(self, session_id: str, description: str) -> LearningInteraction:
        """录制一次点击

        Raises:
            SessionNotFoundError: 会话不存在
            SessionStateError: 会话不在 recording 状态
            ElementNotFoundError: 没有元素匹配描述
        """
        session = self._require_session(session_id)
        session.require_recording("record_click")
        description = validate_description(description)

        interaction = await self.recorder.record_click(description)
        session.append_interactions([interaction])
        logger.info(
            f"[LearningModeService] 已录制点击: {description} (success={interaction.result.success})"
        )
        return interaction

    async def record_extraction(
        self, session_id: str, field: str, description: str
    ) -> list[LearningInteraction]:
        """对所有匹配描述的元素录制提取

        零匹配时抛出异常，会话的交互数不变。

        Raises:
            SessionNotFoundError: 会话不存在
            SessionStateError: 会话不在 recording 状态
            NoElementsFoundError: 没有元素匹配描述
        """
        session = self._require_session(session_id)
        session.require_recording("record_extraction")
        field = validate_field_name(field)
        description = validate_description(description)

        interactions = await self.recorder.record_extraction(field, description)
        session.append_interactions(interactions)
        logger.info(f"[LearningModeService] 字段 '{field}' 已录制 {len(interactions)} 个示例")
        return interactions

    async def analyze_session(self, session_id: str) -> list[LearnedPattern]:
        """合成、验证并保存会话中的模式

        每个会话只分析一次，completed/failed 会话再次分析会抛出 SessionStateError。

        Raises:
            SessionNotFoundError: 会话不存在
            SessionStateError: 会话不在 recording 状态
            AnalysisError: 分析过程中出现意外错误，会话被标记为 failed
        """
        session = self._require_session(session_id)
        session.transition(SessionStatus.ANALYZING, "analyze_session")
        logger.info(
            f"[LearningModeService] 分析会话 {session.id}: {len(session.interactions)} 条交互"
        )

        try:
            patterns = await self._analyze(session)
        except LinkScoutError:
            session.transition(SessionStatus.FAILED, "analyze_session")
            raise
        except Exception as e:
            session.transition(SessionStatus.FAILED, "analyze_session")
            logger.error(f"[LearningModeService] 会话 {session.id} 分析失败: {e}")
            raise AnalysisError(session.id, str(e)) from e

        session.patterns = patterns
        session.transition(SessionStatus.COMPLETED, "analyze_session")
        self.context.add_patterns(patterns)
        logger.info(f"[LearningModeService] 分析完成，生成 {len(patterns)} 个模式")
        return patterns

    async def _analyze(self, session: LearningSession) -> list[LearnedPattern]:
        bundle = session.options.bundle_fields
        if bundle is None:
            bundle = self.config.learning.bundle_fields
        patterns = self.synthesizer.synthesize(session, bundle=bundle)

        if self.config.learning.validate_on_analyze:
            urls = [session.target_url, *session.options.validation_urls]
            for pattern in patterns:
                for url in urls:
                    result = await self.validator.validate(
                        pattern, url, expected_count=session.options.expected_count
                    )
                    record_validation(pattern, result)
        else:
            # 无验证结果时置信度取先验值，占位值 0.8 不落库
            for pattern in patterns:
                pattern.confidence = calculate_pattern_confidence(pattern.validation_results)

        if patterns:
            await save_patterns(self.store, session.target_site, patterns)
        return patterns

    def get_active_sessions(self) -> list[LearningSession]:
        return list(self.context.sessions.values())

    def get_session(self, session_id: str) -> LearningSession | None:
        return self.context.get_session(session_id)

    async def end_session(self, session_id: str) -> list[LearnedPattern]:
        """结束会话；仍在录制时先分析，然后从注册表移除

        Raises:
            SessionNotFoundError: 会话不存在
        """
        session = self._require_session(session_id)
        try:
            if session.status == SessionStatus.RECORDING:
                await self.analyze_session(session_id)
        finally:
            self.context.remove_session(session_id)
        logger.info(f"[LearningModeService] 会话已结束: {session_id} ({session.status.value})")
        return session.patterns

    # ------------------------------------------------------------------
    # 模式
    # ------------------------------------------------------------------

    def _require_pattern(self, pattern_id: str) -> LearnedPattern:
        pattern = self.context.get_pattern(pattern_id)
        if pattern is None:
            raise PatternNotFoundError(pattern_id)
        return pattern

    def get_pattern(self, pattern_id: str) -> LearnedPattern | None:
        return self.context.get_pattern(pattern_id)

    def list_patterns(self, site: str | None = None) -> list[LearnedPattern]:
        patterns = list(self.context.patterns.values())
        if site:
            patterns = [p for p in patterns if p.metadata.site == site]
        return patterns

    async def validate_pattern(
        self, pattern: LearnedPattern, url: str, expected_count: int | None = None
    ) -> ValidationResult:
        """在 url 上验证模式（不追加结果）"""
        return await self.validator.validate(pattern, url, expected_count=expected_count)

    async def test_pattern(
        self, pattern_id: str, url: str, expected_count: int | None = None
    ) -> ValidationResult:
        """验证已注册的模式并追加结果

        Raises:
            PatternNotFoundError: 模式不存在
        """
        pattern = self._require_pattern(pattern_id)
        url = validate_url(url)
        result = await self.validator.validate(pattern, url, expected_count=expected_count)
        record_validation(pattern, result)
        logger.info(
            f"[LearningModeService] 模式 '{pattern.name}' 置信度更新为 {pattern.confidence:.2f}"
        )
        return result

    async def apply_pattern(self, pattern_id: str, url: str) -> list[ExtractedValue]:
        """把模式应用到 url

        Raises:
            PatternNotFoundError: 模式不存在
            NavigationError: 导航失败
        """
        pattern = self._require_pattern(pattern_id)
        url = validate_url(url)
        values = await self.applier.apply(pattern, url)

        store_id = pattern.metadata.store_id
        if values and store_id is not None:
            try:
                await self.store.increment_pattern_success(store_id)
            except PatternStoreError as e:
                logger.warning(f"[LearningModeService] 更新模式成功次数失败: {e}")
        return values

    async def load_site_patterns(self, domain: str) -> list[LearnedPattern]:
        """从存储加载站点的模式并注册"""
        patterns = await load_patterns(self.store, domain.lower())
        self.context.add_patterns(patterns)
        logger.info(f"[LearningModeService] 从存储加载 {domain} 的 {len(patterns)} 个模式")
        return patterns

    async def delete_site_pattern(self, domain: str, name: str) -> int:
        """删除存储中的模式，同时移出注册表"""
        deleted = await self.store.delete_pattern(domain.lower(), name)
        for pattern_id, pattern in list(self.context.patterns.items()):
            if pattern.name == name and pattern.metadata.site == domain.lower():
                del self.context.patterns[pattern_id]
        return deleted
