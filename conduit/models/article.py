"""
@PURPOSE: 文章、标签、收藏相关的数据库模型定义
@OUTLINE:
  - class Article: 文章表 (slug 唯一), 关联作者与标签
  - class Tag: 标签表 (name 唯一)
  - class ArticleTag: 文章-标签关联表, 复合主键
  - class Favorite: 收藏表 (user → article), 复合主键
@GOTCHAS:
  - author / tags 使用 selectin 预加载, 避免异步会话中的隐式懒加载
  - 删除文章前需先删除评论和收藏 (见 ArticleService.delete_article)
@DEPENDENCIES:
  - 内部: conduit.core.database, conduit.models.user
  - 外部: sqlalchemy, datetime
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conduit.core.database import Base, utcnow

from .user import User


class ArticleTag(Base):
    """文章-标签关联表."""

    __tablename__ = "article_tags"

    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


class Tag(Base):
    """标签表模型."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name})>"


class Article(Base):
    """文章表模型."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    author: Mapped[User] = relationship(lazy="selectin")
    tags: Mapped[list[Tag]] = relationship(
        secondary="article_tags",
        lazy="selectin",
        order_by="Tag.name",
    )

    @property
    def tag_list(self) -> list[str]:
        """按名称排序的标签列表."""
        return sorted(tag.name for tag in self.tags)

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, slug={self.slug})>"


class Favorite(Base):
    """收藏表模型."""

    __tablename__ = "favorites"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
