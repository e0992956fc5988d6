"""
@PURPOSE: 标签路由
@OUTLINE:
  - GET /tags: 热门标签列表
@DEPENDENCIES:
  - 内部: conduit.tags.service
  - 外部: fastapi, pydantic
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.core.database import get_db

from .service import get_tag_service

router = APIRouter(prefix="/tags", tags=["标签"])


class TagListResponse(BaseModel):
    tags: list[str]


@router.get("", response_model=TagListResponse)
async def list_tags(db: Annotated[AsyncSession, Depends(get_db)]) -> TagListResponse:
    """获取标签列表 (使用最多的在前)."""
    tag_service = await get_tag_service(db)
    return TagListResponse(tags=await tag_service.popular_tags())
