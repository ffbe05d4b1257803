"""课程文件

把一次学习会话的步骤写进 YAML，便于重复教学:

    name: hn_front
    url: https://news.ycombinator.com
    expected_count: 30
    validation_urls:
      - https://news.ycombinator.com/news?p=2
    steps:
      - extract: {field: title, description: title}
      - extract: {field: vote_score, description: points}
      - click: More
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from .common.exceptions import ValidationError
from .learning.models import LearningOptions


class LessonStep(BaseModel):
    """一个教学步骤：点击或提取，二选一"""

    click: str | None = None
    field: str | None = None
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _unpack_extract(cls, data: Any) -> Any:
        if isinstance(data, dict) and "extract" in data:
            extract = data["extract"]
            if isinstance(extract, str):
                extract = parse_extract_option(extract)
            if not isinstance(extract, dict):
                raise ValueError("extract 步骤必须是 {field, description}")
            return {"field": extract.get("field"), "description": extract.get("description")}
        return data

    @model_validator(mode="after")
    def _check_kind(self) -> "LessonStep":
        is_click = self.click is not None
        is_extract = self.field is not None or self.description is not None
        if is_click == is_extract:
            raise ValueError("每个步骤只能是 click 或 extract 之一")
        if is_extract and not (self.field and self.description):
            raise ValueError("extract 步骤需要 field 与 description")
        return self

    @property
    def is_click(self) -> bool:
        return self.click is not None


class Lesson(BaseModel):
    """一次学习会话的完整脚本"""

    name: str
    url: str
    description: str = ""
    expected_count: int | None = None
    validation_urls: list[str] = Field(default_factory=list)
    bundle_fields: bool | None = None
    steps: list[LessonStep] = Field(default_factory=list)

    def to_options(self) -> LearningOptions:
        return LearningOptions(
            description=self.description,
            expected_count=self.expected_count,
            target_elements=list(dict.fromkeys(s.field for s in self.steps if s.field)),
            validation_urls=self.validation_urls,
            bundle_fields=self.bundle_fields,
        )


def parse_extract_option(value: str) -> dict[str, str]:
    """解析 "field=description" 形式的提取参数"""
    field, sep, description = value.partition("=")
    if not sep or not field.strip() or not description.strip():
        raise ValidationError(f"提取参数格式应为 field=description: {value}")
    return {"field": field.strip(), "description": description.strip()}


def load_lesson(path: str | Path) -> Lesson:
    """读取并校验课程文件

    Raises:
        ValidationError: 文件不存在、YAML 无效或内容不符合格式
    """
    path = Path(path)
    if not path.exists():
        raise ValidationError(f"课程文件不存在: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"课程文件 YAML 解析失败: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError("课程文件顶层必须是映射")

    try:
        return Lesson.model_validate(data)
    except ValueError as e:
        raise ValidationError(f"课程文件格式错误: {e}") from e
