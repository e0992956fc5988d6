"""
@PURPOSE: 用户资料相关的 Pydantic 模型定义
@OUTLINE:
  - class Profile: 公开资料 (username, bio, image, following)
  - class ProfileResponse: {"profile": {...}} 响应
@DEPENDENCIES:
  - 外部: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """公开资料."""

    username: str = Field(..., description="用户名")
    bio: str = Field(default="", description="个人简介")
    image: str = Field(default="", description="头像 URL")
    following: bool = Field(default=False, description="当前用户是否已关注")


class ProfileResponse(BaseModel):
    """资料响应."""

    profile: Profile
