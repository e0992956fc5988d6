"""
@PURPOSE: 评论业务逻辑服务
@OUTLINE:
  - class CommentService: 评论服务类
    - list_comments(): 文章评论列表 (按创建时间正序)
    - add_comment(): 发表评论
    - delete_comment(): 删除评论 (仅评论作者)
  - get_comment_service(): 获取服务实例
@GOTCHAS:
  - 评论必须属于路径中的文章, 否则视为不存在
@DEPENDENCIES:
  - 内部: conduit.articles.service, conduit.profiles.service, conduit.models
  - 外部: sqlalchemy, loguru
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.articles.service import ArticleService
from conduit.core.exceptions import NotFoundError, PermissionDeniedError
from conduit.models import Comment, User
from conduit.profiles.service import ProfileService

from .schemas import CommentCreate, CommentOut

COMMENT_NOT_FOUND = "comment not found"


class CommentService:
    """评论服务类."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.articles = ArticleService(db)
        self.profiles = ProfileService(db)

    async def list_comments(self, slug: str, viewer: User | None = None) -> list[CommentOut]:
        """获取文章的全部评论.

        Args:
            slug: 文章 slug
            viewer: 当前用户 (可选, 用于计算 following)

        Returns:
            list[CommentOut]: 评论列表, 最早的在前

        Raises:
            NotFoundError: 文章不存在
        """
        article = await self.articles.get_article_model(slug)
        stmt = (
            select(Comment)
            .where(Comment.article_id == article.id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        result = await self.db.execute(stmt)
        return await self.build_comments(result.scalars().all(), viewer)

    async def add_comment(self, author: User, slug: str, data: CommentCreate) -> CommentOut:
        """发表评论.

        Raises:
            NotFoundError: 文章不存在
        """
        article = await self.articles.get_article_model(slug)

        comment = Comment(body=data.body, article_id=article.id)
        comment.author = author
        self.db.add(comment)
        await self.db.commit()

        logger.info(f"评论已发表: id={comment.id}, slug={slug}, author={author.username}")
        comments = await self.build_comments([comment], author)
        return comments[0]

    async def delete_comment(self, user: User, slug: str, comment_id: int) -> None:
        """删除评论 (仅评论作者).

        Raises:
            NotFoundError: 文章或评论不存在
            PermissionDeniedError: 非评论作者
        """
        article = await self.articles.get_article_model(slug)

        comment = await self.db.get(Comment, comment_id)
        if comment is None or comment.article_id != article.id:
            raise NotFoundError(COMMENT_NOT_FOUND)
        if comment.author_id != user.id:
            logger.warning(f"无权删除评论: id={comment_id}, user={user.username}")
            raise PermissionDeniedError("you are not the author of this comment")

        await self.db.delete(comment)
        await self.db.commit()
        logger.info(f"评论已删除: id={comment_id}, slug={slug}, user={user.username}")

    async def build_comments(
        self,
        comments: Sequence[Comment],
        viewer: User | None = None,
    ) -> list[CommentOut]:
        """批量组装评论响应, 作者关注状态一次查询完成."""
        following = await self.profiles.following_ids(viewer, (c.author_id for c in comments))
        return [
            CommentOut(
                id=comment.id,
                created_at=comment.created_at,
                updated_at=comment.updated_at,
                body=comment.body,
                author=ProfileService.to_profile(comment.author, comment.author_id in following),
            )
            for comment in comments
        ]


async def get_comment_service(db: AsyncSession) -> CommentService:
    """获取评论服务实例.

    Args:
        db: 数据库会话

    Returns:
        CommentService: 评论服务实例
    """
    return CommentService(db)
