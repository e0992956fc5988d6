"""
@PURPOSE: 文章业务逻辑服务
@OUTLINE:
  - slugify(): 由标题生成 URL slug
  - class ArticleService: 文章服务类
    - list_articles(): 按 tag / author / favorited 过滤的分页列表
    - feed(): 关注作者的文章流
    - get_article() / get_article_model(): 按 slug 获取
    - create_article() / update_article() / delete_article(): 文章 CRUD
    - favorite() / unfavorite(): 收藏 / 取消收藏 (幂等)
    - is_favorited(): 是否已收藏
    - build_articles(): 批量组装响应 (收藏数、收藏状态、关注状态)
  - get_article_service(): 获取服务实例
@GOTCHAS:
  - slug 冲突时追加 -1, -2 ... 后缀; 修改标题会重新生成 slug
  - "feed" 与固定路由冲突, 视为已占用
  - 列表按创建时间倒序, articlesCount 为过滤后的总数
  - 删除文章时先删除评论与收藏, 标签关联由 ORM 关系删除
@DEPENDENCIES:
  - 内部: conduit.profiles.service, conduit.core.exceptions, conduit.models
  - 外部: sqlalchemy, loguru, unicodedata, re
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Sequence

from loguru import logger
from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from conduit.core.database import commit_ignoring_duplicate, utcnow
from conduit.core.exceptions import NotFoundError, PermissionDeniedError, UnprocessableError
from conduit.models import Article, ArticleTag, Comment, Favorite, Follow, Tag, User
from conduit.profiles.service import ProfileService

from .schemas import ArticleCreate, ArticleOut, ArticleUpdate

ARTICLE_NOT_FOUND = "article not found"
DEFAULT_SLUG = "article"
# 与 /articles 下的固定路由同名
RESERVED_SLUGS = frozenset({"feed"})

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """由标题生成 slug.

    转为小写 ASCII, 非 [a-z0-9] 的连续字符替换为单个 "-", 去掉首尾 "-"。

    Examples:
        >>> slugify("How to train your dragon")
        'how-to-train-your-dragon'
        >>> slugify("Crème brûlée!")
        'creme-brulee'
    """
    normalized = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_CHARS.sub("-", normalized.lower()).strip("-")
    return slug[:200] or DEFAULT_SLUG


def unique_tag_names(names: Iterable[str]) -> list[str]:
    """去重并保持原有顺序."""
    seen: dict[str, None] = {}
    for name in names:
        seen.setdefault(name, None)
    return list(seen)


class ArticleService:
    """文章服务类."""

    def __init__(self, db: AsyncSession) -> None:
        """初始化文章服务.

        Args:
            db: 数据库会话
        """
        self.db = db
        self.profiles = ProfileService(db)

    # ==================== 查询 ====================

    async def list_articles(
        self,
        viewer: User | None = None,
        tag: str | None = None,
        author: str | None = None,
        favorited: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ArticleOut], int]:
        """获取文章列表.

        Args:
            viewer: 当前用户 (可选)
            tag: 按标签过滤
            author: 按作者用户名过滤
            favorited: 按收藏者用户名过滤
            limit: 返回数量
            offset: 跳过数量

        Returns:
            tuple[list[ArticleOut], int]: (当前页文章, 总数)
        """
        stmt = select(Article)

        if tag:
            stmt = (
                stmt.join(ArticleTag, ArticleTag.article_id == Article.id)
                .join(Tag, Tag.id == ArticleTag.tag_id)
                .where(Tag.name == tag)
            )

        if author:
            author_user = aliased(User)
            stmt = stmt.join(author_user, author_user.id == Article.author_id).where(
                author_user.username == author
            )

        if favorited:
            favoriting_user = aliased(User)
            stmt = (
                stmt.join(Favorite, Favorite.article_id == Article.id)
                .join(favoriting_user, favoriting_user.id == Favorite.user_id)
                .where(favoriting_user.username == favorited)
            )

        return await self._paginate(stmt, viewer, limit, offset)

    async def feed(self, viewer: User, limit: int = 20, offset: int = 0) -> tuple[list[ArticleOut], int]:
        """获取关注作者的文章流.

        Args:
            viewer: 当前用户
            limit: 返回数量
            offset: 跳过数量

        Returns:
            tuple[list[ArticleOut], int]: (当前页文章, 总数)
        """
        stmt = select(Article).join(Follow, Follow.following_id == Article.author_id).where(
            Follow.follower_id == viewer.id
        )
        return await self._paginate(stmt, viewer, limit, offset)

    async def get_article_model(self, slug: str) -> Article:
        """按 slug 获取文章 ORM 对象.

        Raises:
            NotFoundError: 文章不存在
        """
        stmt = select(Article).where(Article.slug == slug)
        result = await self.db.execute(stmt)
        article = result.scalar_one_or_none()
        if not article:
            raise NotFoundError(ARTICLE_NOT_FOUND)
        return article

    async def get_article(self, slug: str, viewer: User | None = None) -> ArticleOut:
        """按 slug 获取文章."""
        article = await self.get_article_model(slug)
        return await self.build_article(article, viewer)

    # ==================== 命令 ====================

    async def create_article(self, author: User, data: ArticleCreate) -> ArticleOut:
        """创建文章.

        Args:
            author: 作者 (当前用户)
            data: 文章数据

        Returns:
            ArticleOut: 创建的文章
        """
        article = Article(
            slug=await self._unique_slug(data.title),
            title=data.title,
            description=data.description,
            body=data.body,
        )
        article.author = author
        article.tags = await self._resolve_tags(data.tag_list)

        self.db.add(article)
        await self._commit_article()

        logger.info(f"文章已创建: slug={article.slug}, author={author.username}")
        return await self.build_article(article, author)

    async def update_article(self, user: User, slug: str, data: ArticleUpdate) -> ArticleOut:
        """更新文章 (仅作者).

        Args:
            user: 当前用户
            slug: 文章 slug
            data: 更新数据

        Returns:
            ArticleOut: 更新后的文章

        Raises:
            NotFoundError: 文章不存在
            PermissionDeniedError: 非作者
        """
        article = await self.get_article_model(slug)
        self._ensure_author(article, user)

        if data.title is not None and data.title != article.title:
            article.title = data.title
            article.slug = await self._unique_slug(data.title, current=article)

        if data.description is not None:
            article.description = data.description

        if data.body is not None:
            article.body = data.body

        if data.tag_list is not None:
            article.tags = await self._resolve_tags(data.tag_list)

        article.updated_at = utcnow()
        await self._commit_article()

        logger.info(f"文章已更新: slug={article.slug}, author={user.username}")
        return await self.build_article(article, user)

    async def delete_article(self, user: User, slug: str) -> None:
        """删除文章 (仅作者), 同时删除评论、收藏与标签关联.

        Raises:
            NotFoundError: 文章不存在
            PermissionDeniedError: 非作者
        """
        article = await self.get_article_model(slug)
        self._ensure_author(article, user)

        await self.db.execute(delete(Comment).where(Comment.article_id == article.id))
        await self.db.execute(delete(Favorite).where(Favorite.article_id == article.id))
        await self.db.delete(article)
        await self.db.commit()

        logger.info(f"文章已删除: slug={slug}, author={user.username}")

    async def favorite(self, user: User, slug: str) -> ArticleOut:
        """收藏文章, 已收藏时不做修改."""
        article = await self.get_article_model(slug)

        if not await self.is_favorited(user, article):
            self.db.add(Favorite(user_id=user.id, article_id=article.id))
            if await commit_ignoring_duplicate(self.db, user, article):
                logger.info(f"收藏文章: slug={slug}, user={user.username}")

        return await self.build_article(article, user)

    async def is_favorited(self, user: User, article: Article) -> bool:
        """user 是否已收藏 article."""
        stmt = select(Favorite).where(Favorite.user_id == user.id, Favorite.article_id == article.id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def unfavorite(self, user: User, slug: str) -> ArticleOut:
        """取消收藏, 未收藏时不做修改."""
        article = await self.get_article_model(slug)

        await self.db.execute(
            delete(Favorite).where(Favorite.user_id == user.id, Favorite.article_id == article.id)
        )
        await self.db.commit()
        logger.info(f"取消收藏: slug={slug}, user={user.username}")

        return await self.build_article(article, user)

    # ==================== 响应组装 ====================

    async def build_article(self, article: Article, viewer: User | None = None) -> ArticleOut:
        """组装单篇文章响应."""
        articles = await self.build_articles([article], viewer)
        return articles[0]

    async def build_articles(
        self,
        articles: Sequence[Article],
        viewer: User | None = None,
    ) -> list[ArticleOut]:
        """批量组装文章响应.

        收藏数、当前用户收藏状态、作者关注状态各用一次查询完成。

        Args:
            articles: 文章 ORM 对象
            viewer: 当前用户 (可选)

        Returns:
            list[ArticleOut]: 文章响应列表 (顺序不变)
        """
        if not articles:
            return []

        article_ids = [article.id for article in articles]

        count_stmt = (
            select(Favorite.article_id, func.count())
            .where(Favorite.article_id.in_(article_ids))
            .group_by(Favorite.article_id)
        )
        counts = {article_id: count for article_id, count in (await self.db.execute(count_stmt)).all()}

        favorited_ids: set[int] = set()
        if viewer is not None:
            fav_stmt = select(Favorite.article_id).where(
                Favorite.user_id == viewer.id,
                Favorite.article_id.in_(article_ids),
            )
            favorited_ids = set((await self.db.execute(fav_stmt)).scalars().all())

        following = await self.profiles.following_ids(
            viewer, (article.author_id for article in articles)
        )

        return [
            ArticleOut(
                slug=article.slug,
                title=article.title,
                description=article.description,
                body=article.body,
                tag_list=article.tag_list,
                created_at=article.created_at,
                updated_at=article.updated_at,
                favorited=article.id in favorited_ids,
                favorites_count=counts.get(article.id, 0),
                author=self.profiles.to_profile(article.author, article.author_id in following),
            )
            for article in articles
        ]

    # ==================== 内部方法 ====================

    async def _paginate(
        self,
        stmt: Select[tuple[Article]],
        viewer: User | None,
        limit: int,
        offset: int,
    ) -> tuple[list[ArticleOut], int]:
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        page_stmt = (
            stmt.order_by(Article.created_at.desc(), Article.id.desc()).limit(limit).offset(offset)
        )
        result = await self.db.execute(page_stmt)
        articles = list(result.scalars().all())

        return await self.build_articles(articles, viewer), total

    async def _unique_slug(self, title: str, current: Article | None = None) -> str:
        """生成未被占用的 slug.

        Args:
            title: 标题
            current: 正在更新的文章 (自身的 slug 不视为冲突)
        """
        base = slugify(title)
        stmt = select(Article.slug).where(or_(Article.slug == base, Article.slug.like(f"{base}-%")))
        if current is not None:
            stmt = stmt.where(Article.id != current.id)
        taken = set((await self.db.execute(stmt)).scalars().all()) | RESERVED_SLUGS

        if base not in taken:
            return base

        counter = 1
        while f"{base}-{counter}" in taken:
            counter += 1
        return f"{base}-{counter}"

    async def _resolve_tags(self, names: Iterable[str]) -> list[Tag]:
        """按名称获取标签, 不存在的标签即时创建."""
        wanted = unique_tag_names(names)
        if not wanted:
            return []

        stmt = select(Tag).where(Tag.name.in_(wanted))
        existing = {tag.name: tag for tag in (await self.db.execute(stmt)).scalars().all()}

        tags = []
        for name in wanted:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                self.db.add(tag)
            tags.append(tag)
        return tags

    async def _commit_article(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"文章保存冲突, 事务已回滚: {e.orig}")
            raise UnprocessableError("article could not be saved, please retry") from e

    @staticmethod
    def _ensure_author(article: Article, user: User) -> None:
        if article.author_id != user.id:
            logger.warning(f"无权操作文章: slug={article.slug}, user={user.username}")
            raise PermissionDeniedError("you are not the author of this article")


async def get_article_service(db: AsyncSession) -> ArticleService:
    """获取文章服务实例.

    Args:
        db: 数据库会话

    Returns:
        ArticleService: 文章服务实例
    """
    return ArticleService(db)
