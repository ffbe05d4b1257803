"""学习模式

通过录制用户在页面上的点击与提取示例，归纳出可复用的提取模式。
"""

from .matcher import ElementMatcher, KeywordElementMatcher
from .models import (
    ExtractedValue,
    ExtractionRule,
    LearnedPattern,
    LearningInteraction,
    LearningOptions,
    LearningSession,
    PatternSelector,
    SessionStatus,
    ValidationResult,
)
from .registry import LearningContext
from .selector_pattern import PatternSynthesizer, find_common_selector, generalize_selector
from .service import LearningModeService
from .validator import PatternValidator, calculate_pattern_confidence

__all__ = [
    "ElementMatcher",
    "KeywordElementMatcher",
    "ExtractedValue",
    "ExtractionRule",
    "LearnedPattern",
    "LearningInteraction",
    "LearningOptions",
    "LearningSession",
    "PatternSelector",
    "SessionStatus",
    "ValidationResult",
    "LearningContext",
    "PatternSynthesizer",
    "find_common_selector",
    "generalize_selector",
    "LearningModeService",
    "PatternValidator",
    "calculate_pattern_confidence",
]
