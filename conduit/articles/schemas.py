"""
@PURPOSE: 文章相关的 Pydantic 模型定义 (RealWorld {"article": {...}} 信封, 驼峰字段)
@OUTLINE:
  - TagName: 标签名约束类型
  - class ArticleCreate / ArticleCreateRequest: 创建文章请求
  - class ArticleUpdate / ArticleUpdateRequest: 更新文章请求
  - class ArticleOut: 文章响应体
  - class ArticleResponse: 单篇文章响应
  - class ArticleListResponse: 文章列表响应 (articles + articlesCount)
@DEPENDENCIES:
  - 内部: conduit.core.schemas, conduit.profiles.schemas
  - 外部: pydantic
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from conduit.core.schemas import TAG_PATTERN, CamelModel, Timestamp
from conduit.profiles.schemas import Profile

TagName = Annotated[str, StringConstraints(min_length=1, max_length=100, pattern=TAG_PATTERN)]


class ArticleCreate(CamelModel):
    """创建文章请求."""

    title: str = Field(..., min_length=1, max_length=255, description="标题")
    description: str = Field(..., min_length=1, max_length=500, description="摘要")
    body: str = Field(..., min_length=1, description="正文")
    tag_list: list[TagName] = Field(default_factory=list, description="标签列表")


class ArticleCreateRequest(BaseModel):
    article: ArticleCreate


class ArticleUpdate(CamelModel):
    """更新文章请求, 所有字段可选; 提供 tagList 时整体替换标签."""

    title: str | None = Field(default=None, min_length=1, max_length=255, description="标题")
    description: str | None = Field(default=None, min_length=1, max_length=500, description="摘要")
    body: str | None = Field(default=None, min_length=1, description="正文")
    tag_list: list[TagName] | None = Field(default=None, description="标签列表")


class ArticleUpdateRequest(BaseModel):
    article: ArticleUpdate


class ArticleOut(CamelModel):
    """文章响应体."""

    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str]
    created_at: Timestamp
    updated_at: Timestamp
    favorited: bool = False
    favorites_count: int = 0
    author: Profile


class ArticleResponse(BaseModel):
    article: ArticleOut


class ArticleListResponse(CamelModel):
    """文章列表响应, articlesCount 为过滤后的总数 (非当前页数量)."""

    articles: list[ArticleOut]
    articles_count: int
