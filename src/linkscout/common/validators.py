"""输入验证工具

提供 URL、字段名、元素描述等用户输入的验证功能。
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from .constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_FIELD_NAME_LENGTH,
    MAX_URL_LENGTH,
    VALID_URL_SCHEMES,
)
from .exceptions import URLValidationError, ValidationError

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][\w-]*$")


def validate_url(url: str, allow_empty: bool = False) -> str:
    """验证并清理 URL

    Args:
        url: 待验证的 URL 字符串
        allow_empty: 是否允许空 URL

    Returns:
        清理后的 URL

    Raises:
        URLValidationError: 当 URL 格式无效时
    """
    url = url.strip() if url else ""

    if not url:
        if allow_empty:
            return ""
        raise URLValidationError("", "URL 不能为空")

    if len(url) > MAX_URL_LENGTH:
        raise URLValidationError(url, f"URL 长度超过 {MAX_URL_LENGTH} 字符")

    try:
        result = urlparse(url)
    except ValueError as e:
        raise URLValidationError(url, f"URL 解析失败: {e}")

    if not result.scheme:
        raise URLValidationError(url, "缺少协议 (http/https)")

    if result.scheme.lower() not in VALID_URL_SCHEMES:
        raise URLValidationError(url, f"不支持的协议: {result.scheme}")

    if not result.netloc:
        raise URLValidationError(url, "缺少域名")

    return url


def extract_domain(url: str) -> str:
    """从 URL 中提取站点域名（不含端口）"""
    return (urlparse(url).hostname or "").lower()


def validate_field_name(name: str) -> str:
    """验证提取字段名

    字段名会参与转换类型推断，也会出现在模式名中，只允许标识符风格。

    Raises:
        ValidationError: 当字段名为空、过长或包含非法字符时
    """
    name = name.strip() if name else ""
    if not name:
        raise ValidationError("字段名不能为空")
    if len(name) > MAX_FIELD_NAME_LENGTH:
        raise ValidationError(f"字段名不能超过 {MAX_FIELD_NAME_LENGTH} 字符")
    if not _FIELD_NAME_RE.match(name):
        raise ValidationError(f"字段名只能包含字母、数字、下划线和连字符: {name}")
    return name


def validate_description(description: str) -> str:
    """验证元素描述文本"""
    if not description or not description.strip():
        raise ValidationError("元素描述不能为空")

    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"元素描述不能超过 {MAX_DESCRIPTION_LENGTH} 字符")
    return description
