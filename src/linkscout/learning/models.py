"""学习模式数据模型定义"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.constants import INITIAL_PATTERN_CONFIDENCE
from ..common.exceptions import SessionStateError
from ..common.transforms import TransformType
from ..common.types import ActionResult, ActionType, BrowserAction, ElementSnapshot


def _now() -> datetime:
    return datetime.now()


# ============================================================================
# 学习会话
# ============================================================================


class SessionStatus(str, Enum):
    """学习会话状态

    recording → analyzing → completed，出错时 recording|analyzing → failed。
    completed 与 failed 为终态。
    """

    RECORDING = "recording"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.RECORDING: frozenset({SessionStatus.ANALYZING, SessionStatus.FAILED}),
    SessionStatus.ANALYZING: frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED}),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.FAILED: frozenset(),
}


class LearningOptions(BaseModel):
    """开始学习会话时的可选参数"""

    description: str = Field(default="", description="会话说明，写入模式描述")
    expected_count: int | None = Field(default=None, description="期望匹配数，回显到验证结果")
    target_elements: list[str] = Field(default_factory=list, description="计划教学的字段名")
    validation_urls: list[str] = Field(default_factory=list, description="额外的验证页面")
    bundle_fields: bool | None = Field(
        default=None, description="是否合并为一个多规则模式，None 时取配置"
    )


class SessionMetadata(BaseModel):
    """会话元数据"""

    user_agent: str
    viewport: dict[str, int] = Field(default_factory=dict)
    total_interactions: int = 0
    successful_extractions: int = 0


class InteractionContext(BaseModel):
    """交互发生后的页面上下文"""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    title: str = ""
    snapshot: list[ElementSnapshot] = Field(default_factory=list)


class LearningInteraction(BaseModel):
    """一次录制的交互，录制后不可修改"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_now)
    action: BrowserAction
    element: ElementSnapshot | None = None
    result: ActionResult
    context: InteractionContext = Field(default_factory=InteractionContext)

    @property
    def is_successful_extraction(self) -> bool:
        return self.action.type == ActionType.EXTRACT and self.result.success


class LearningSession(BaseModel):
    """一个站点的学习会话"""

    id: str
    name: str
    target_site: str
    target_url: str
    status: SessionStatus = SessionStatus.RECORDING
    started_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None
    interactions: list[LearningInteraction] = Field(default_factory=list)
    patterns: list["LearnedPattern"] = Field(default_factory=list)
    options: LearningOptions = Field(default_factory=LearningOptions)
    metadata: SessionMetadata

    def transition(self, target: SessionStatus, operation: str) -> None:
        """推进状态机；非法转移抛出 SessionStateError"""
        if target not in _TRANSITIONS[self.status]:
            raise SessionStateError(self.id, self.status.value, operation)
        self.status = target
        if target.is_terminal:
            self.completed_at = _now()

    def require_recording(self, operation: str) -> None:
        if self.status != SessionStatus.RECORDING:
            raise SessionStateError(self.id, self.status.value, operation)

    def append_interactions(self, interactions: list[LearningInteraction]) -> None:
        """追加交互并更新计数"""
        self.interactions.extend(interactions)
        self.metadata.total_interactions += len(interactions)
        self.metadata.successful_extractions += sum(
            1 for interaction in interactions if interaction.is_successful_extraction
        )


# ============================================================================
# 模式
# ============================================================================


class SelectorType(str, Enum):
    """选择器类型"""

    CSS = "css"
    XPATH = "xpath"
    ACCESSIBILITY = "accessibility"
    TEXT = "text"


class PatternSelector(BaseModel):
    """字段选择器及其备选"""

    type: SelectorType = SelectorType.CSS
    value: str
    role: str = Field(..., description="目标字段名")
    confidence: float = Field(default=INITIAL_PATTERN_CONFIDENCE, ge=0.0, le=1.0)
    fallbacks: list[str] = Field(default_factory=list)


class ExtractionRule(BaseModel):
    """一个字段的提取规则"""

    field: str
    selector: PatternSelector
    transform: TransformType = TransformType.TEXT
    required: bool = True
    validation: str | None = Field(default=None, description="值必须匹配的正则")

    @field_validator("validation")
    @classmethod
    def _check_validation(cls, value: str | None) -> str | None:
        if value:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"无效的校验正则 {value!r}: {e}") from e
        return value


class ValidationResult(BaseModel):
    """一次验证结果，追加后不可修改"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_now)
    url: str
    success: bool
    extracted_count: int = 0
    expected_count: int | None = None
    errors: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class PatternMetadata(BaseModel):
    """模式元数据"""

    learned_from: int = Field(default=0, description="来源交互数")
    success_rate: float = 0.0
    last_validated: datetime | None = None
    site: str = Field(default="", description="站点域名")
    store_id: int | None = Field(default=None, description="模式存储中的 ID")


class LearnedPattern(BaseModel):
    """学习得到的可复用模式"""

    id: str
    name: str
    description: str = ""
    confidence: float = Field(default=INITIAL_PATTERN_CONFIDENCE, ge=0.0, le=1.0)
    selectors: list[PatternSelector] = Field(default_factory=list)
    extraction_rules: list[ExtractionRule] = Field(default_factory=list)
    validation_results: list[ValidationResult] = Field(default_factory=list)
    metadata: PatternMetadata = Field(default_factory=PatternMetadata)

    @property
    def field_names(self) -> list[str]:
        return [rule.field for rule in self.extraction_rules]


class ExtractedValue(BaseModel):
    """apply_pattern 返回的一条记录"""

    field: str
    value: Any = None
    element: str | None = Field(default=None, description="元素标签名")


LearningSession.model_rebuild()
