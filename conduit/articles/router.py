"""
@PURPOSE: 文章路由，提供文章列表、订阅流、CRUD 与收藏 API
@OUTLINE:
  - GET /articles: 文章列表 (可选认证, tag/author/favorited/limit/offset)
  - GET /articles/feed: 关注作者的文章流
  - GET /articles/{slug}: 获取文章 (可选认证)
  - POST /articles: 创建文章
  - PUT /articles/{slug}: 更新文章 (仅作者)
  - DELETE /articles/{slug}: 删除文章 (仅作者)
  - POST /articles/{slug}/favorite: 收藏文章
  - DELETE /articles/{slug}/favorite: 取消收藏
@GOTCHAS:
  - /articles/feed 必须在 /articles/{slug} 之前注册
  - slug 不符合 ^[a-z0-9-]+$ 时直接返回 404
@DEPENDENCIES:
  - 内部: conduit.articles.service, conduit.auth.deps
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.auth.deps import CurrentUser, OptionalUser
from conduit.core.database import get_db
from conduit.core.schemas import MAX_DB_INT, SLUG_PATTERN

from .schemas import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
)
from .service import get_article_service

router = APIRouter(prefix="/articles", tags=["文章"])

SlugPath = Annotated[str, Path(min_length=1, max_length=255, pattern=SLUG_PATTERN, description="文章 slug")]
Limit = Annotated[int, Query(ge=1, le=100, description="返回数量")]
Offset = Annotated[int, Query(ge=0, le=MAX_DB_INT, description="跳过数量")]


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    viewer: OptionalUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    tag: str | None = Query(default=None, description="按标签过滤"),
    author: str | None = Query(default=None, description="按作者过滤"),
    favorited: str | None = Query(default=None, description="按收藏者过滤"),
    limit: Limit = 20,
    offset: Offset = 0,
) -> ArticleListResponse:
    """获取文章列表 (按创建时间倒序).

    Args:
        viewer: 当前用户 (可选)
        db: 数据库会话
        tag: 标签名
        author: 作者用户名
        favorited: 收藏者用户名
        limit: 返回数量 (1-100)
        offset: 跳过数量

    Returns:
        ArticleListResponse: 文章列表与总数
    """
    article_service = await get_article_service(db)
    articles, total = await article_service.list_articles(
        viewer=viewer,
        tag=tag,
        author=author,
        favorited=favorited,
        limit=limit,
        offset=offset,
    )
    return ArticleListResponse(articles=articles, articles_count=total)


@router.get("/feed", response_model=ArticleListResponse)
async def feed_articles(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Limit = 20,
    offset: Offset = 0,
) -> ArticleListResponse:
    """获取关注作者的文章流."""
    article_service = await get_article_service(db)
    articles, total = await article_service.feed(current_user, limit=limit, offset=offset)
    return ArticleListResponse(articles=articles, articles_count=total)


@router.get("/{slug}", response_model=ArticleResponse)
async def get_article(
    slug: SlugPath,
    viewer: OptionalUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ArticleResponse:
    """获取文章."""
    article_service = await get_article_service(db)
    article = await article_service.get_article(slug, viewer)
    return ArticleResponse(article=article)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    payload: ArticleCreateRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ArticleResponse:
    """创建文章.

    Args:
        payload: {"article": {title, description, body, tagList?}}
        current_user: 当前登录用户 (作者)
        db: 数据库会话

    Returns:
        ArticleResponse: 创建的文章
    """
    article_service = await get_article_service(db)
    article = await article_service.create_article(current_user, payload.article)
    return ArticleResponse(article=article)


@router.put("/{slug}", response_model=ArticleResponse)
async def update_article(
    slug: SlugPath,
    payload: ArticleUpdateRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ArticleResponse:
    """更新文章 (仅作者), 修改标题会重新生成 slug."""
    article_service = await get_article_service(db)
    article = await article_service.update_article(current_user, slug, payload.article)
    return ArticleResponse(article=article)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    slug: SlugPath,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """删除文章 (仅作者)."""
    article_service = await get_article_service(db)
    await article_service.delete_article(current_user, slug)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{slug}/favorite", response_model=ArticleResponse)
async def favorite_article(
    slug: SlugPath,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ArticleResponse:
    """收藏文章."""
    article_service = await get_article_service(db)
    article = await article_service.favorite(current_user, slug)
    return ArticleResponse(article=article)


@router.delete("/{slug}/favorite", response_model=ArticleResponse)
async def unfavorite_article(
    slug: SlugPath,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ArticleResponse:
    """取消收藏."""
    article_service = await get_article_service(db)
    article = await article_service.unfavorite(current_user, slug)
    return ArticleResponse(article=article)
