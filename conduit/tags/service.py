"""
@PURPOSE: 标签业务逻辑服务
@OUTLINE:
  - class TagService: 标签服务类
    - popular_tags(): 被文章使用的标签, 按使用次数降序, 同次数按名称
  - get_tag_service(): 获取服务实例
@DEPENDENCIES:
  - 内部: conduit.models
  - 外部: sqlalchemy
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import ArticleTag, Tag


class TagService:
    """标签服务类."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def popular_tags(self) -> list[str]:
        """获取标签名列表, 未关联任何文章的标签不返回."""
        usage = func.count(ArticleTag.article_id)
        stmt = (
            select(Tag.name)
            .join(ArticleTag, ArticleTag.tag_id == Tag.id)
            .group_by(Tag.id, Tag.name)
            .order_by(usage.desc(), Tag.name.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


async def get_tag_service(db: AsyncSession) -> TagService:
    return TagService(db)
