"""
@PURPOSE: 评论相关的 Pydantic 模型定义
@OUTLINE:
  - class CommentCreate / CommentCreateRequest: 发表评论请求
  - class CommentOut: 评论响应体
  - class CommentResponse: {"comment": {...}}
  - class CommentListResponse: {"comments": [...]}
@DEPENDENCIES:
  - 内部: conduit.core.schemas, conduit.profiles.schemas
  - 外部: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from conduit.core.schemas import CamelModel, Timestamp
from conduit.profiles.schemas import Profile


class CommentCreate(BaseModel):
    """发表评论请求."""

    body: str = Field(..., min_length=1, max_length=5000, description="评论内容")


class CommentCreateRequest(BaseModel):
    comment: CommentCreate


class CommentOut(CamelModel):
    id: int
    created_at: Timestamp
    updated_at: Timestamp
    body: str
    author: Profile


class CommentResponse(BaseModel):
    comment: CommentOut


class CommentListResponse(BaseModel):
    comments: list[CommentOut]
