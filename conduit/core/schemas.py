"""
@PURPOSE: 各模块共享的 Pydantic 基础模型与类型
@OUTLINE:
  - class CamelModel: 驼峰别名基类 (tagList / createdAt / favoritesCount ...)
  - Timestamp: 序列化为 ISO 8601 UTC (毫秒 + Z) 的时间类型
  - format_timestamp(): 时间格式化
  - USERNAME_PATTERN / TAG_PATTERN / SLUG_PATTERN: 通用正则
  - MAX_DB_INT: 整数主键与分页参数上限 (int4)
@DEPENDENCIES:
  - 外部: pydantic
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

USERNAME_PATTERN = r"^[\w-]+$"
TAG_PATTERN = r"^[\w-]+$"
SLUG_PATTERN = r"^[a-z0-9-]+$"

MAX_DB_INT = 2**31 - 1


def format_timestamp(value: datetime) -> str:
    """格式化为 2016-02-18T03:22:56.637Z 形式.

    SQLite 返回的无时区时间按 UTC 处理。
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


Timestamp = Annotated[datetime, PlainSerializer(format_timestamp, return_type=str)]


class CamelModel(BaseModel):
    """驼峰别名基类, 输入同时接受字段名与别名."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
