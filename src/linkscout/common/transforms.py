"""字段值转换

字段名决定提取时对元素原始内容采用的转换方式。
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class TransformType(str, Enum):
    """提取值转换类型"""

    TEXT = "text"
    HREF = "href"
    NUMBER = "number"
    DATE = "date"


def infer_transform(field: str) -> TransformType:
    """根据字段名推断转换类型

    按顺序检查子串（不区分大小写）：
    url/link/href → href，score/point/count → number，date/time → date，其余为 text。
    """
    lowered = field.lower()
    if any(key in lowered for key in ("url", "link", "href")):
        return TransformType.HREF
    if any(key in lowered for key in ("score", "point", "count")):
        return TransformType.NUMBER
    if any(key in lowered for key in ("date", "time")):
        return TransformType.DATE
    return TransformType.TEXT


def parse_leading_int(text: str | None) -> int:
    """取文本开头的整数，没有数字时为 0（"42 points" → 42）"""
    match = _LEADING_INT_RE.match(text or "")
    return int(match.group(1)) if match else 0


def transform_value(transform: TransformType | str, data: dict[str, Any]) -> Any:
    """把元素原始内容 {text, href} 按转换类型转换为提取值"""
    transform = TransformType(transform)
    text = data.get("text") or ""

    if transform == TransformType.HREF:
        return data.get("href") or ""
    if transform == TransformType.NUMBER:
        return parse_leading_int(text)
    if transform == TransformType.DATE:
        stripped = text.strip()
        try:
            return datetime.fromisoformat(stripped).isoformat()
        except ValueError:
            return stripped
    return text
