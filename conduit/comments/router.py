"""
@PURPOSE: 评论路由
@OUTLINE:
  - GET /articles/{slug}/comments: 评论列表 (可选认证)
  - POST /articles/{slug}/comments: 发表评论
  - DELETE /articles/{slug}/comments/{comment_id}: 删除评论 (仅评论作者)
@DEPENDENCIES:
  - 内部: conduit.comments.service, conduit.auth.deps
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.auth.deps import CurrentUser, OptionalUser
from conduit.core.database import get_db
from conduit.core.schemas import MAX_DB_INT, SLUG_PATTERN

from .schemas import CommentCreateRequest, CommentListResponse, CommentResponse
from .service import get_comment_service

router = APIRouter(prefix="/articles/{slug}/comments", tags=["评论"])

SlugPath = Annotated[str, Path(min_length=1, max_length=255, pattern=SLUG_PATTERN)]


@router.get("", response_model=CommentListResponse)
async def list_comments(
    slug: SlugPath,
    viewer: OptionalUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CommentListResponse:
    """获取文章评论列表 (最早的在前)."""
    comment_service = await get_comment_service(db)
    comments = await comment_service.list_comments(slug, viewer)
    return CommentListResponse(comments=comments)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    slug: SlugPath,
    payload: CommentCreateRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CommentResponse:
    """发表评论.

    Args:
        slug: 文章 slug
        payload: {"comment": {body}}
        current_user: 当前登录用户
        db: 数据库会话

    Returns:
        CommentResponse: 新评论
    """
    comment_service = await get_comment_service(db)
    comment = await comment_service.add_comment(current_user, slug, payload.comment)
    return CommentResponse(comment=comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    slug: SlugPath,
    comment_id: Annotated[int, Path(gt=0, le=MAX_DB_INT, description="评论 ID")],
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """删除评论."""
    comment_service = await get_comment_service(db)
    await comment_service.delete_comment(current_user, slug, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
