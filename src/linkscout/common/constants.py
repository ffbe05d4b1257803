"""常量定义

模式学习算法中的固定参数，不通过环境变量配置。
"""

from __future__ import annotations

# ===== 输入验证 =====
MAX_URL_LENGTH = 2048
VALID_URL_SCHEMES = ("http", "https")
MAX_DESCRIPTION_LENGTH = 500
MAX_FIELD_NAME_LENGTH = 64

# ===== 浏览器 =====
DEFAULT_PAGE_TIMEOUT_MS = 30000
DEFAULT_WAIT_TIMEOUT_MS = 5000
DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 720
DEFAULT_USER_AGENT = "LearningMode/1.0"

# ===== 模式合成 =====
# 至少两个示例才能区分选择器中的结构部分与偶然部分
MIN_EXAMPLES_PER_FIELD = 2
MAX_SELECTOR_FALLBACKS = 3
# 合成阶段的占位置信度，验证后被覆盖
INITIAL_PATTERN_CONFIDENCE = 0.8

# ===== 模式验证 =====
# 匹配数达到该值即视为满置信度
FULL_CONFIDENCE_MATCH_COUNT = 10
# 无验证结果时的先验置信度
UNVALIDATED_PATTERN_CONFIDENCE = 0.5
CONFIDENCE_WEIGHT = 0.7
SUCCESS_RATE_WEIGHT = 0.3
