"""
@PURPOSE: 用户资料路由，提供资料查询与关注/取消关注 API
@OUTLINE:
  - GET /profiles/{username}: 获取资料 (可选认证)
  - POST /profiles/{username}/follow: 关注用户
  - DELETE /profiles/{username}/follow: 取消关注
@DEPENDENCIES:
  - 内部: conduit.profiles.service, conduit.auth.deps
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.auth.deps import CurrentUser, OptionalUser
from conduit.core.database import get_db

from .schemas import ProfileResponse
from .service import get_profile_service

router = APIRouter(prefix="/profiles", tags=["用户资料"])


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    viewer: OptionalUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """获取用户资料.

    Args:
        username: 用户名
        viewer: 当前用户 (可选)
        db: 数据库会话

    Returns:
        ProfileResponse: 资料
    """
    profile_service = await get_profile_service(db)
    profile = await profile_service.get_profile(username, viewer)
    return ProfileResponse(profile=profile)


@router.post("/{username}/follow", response_model=ProfileResponse)
async def follow_user(
    username: str,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """关注用户."""
    profile_service = await get_profile_service(db)
    profile = await profile_service.follow(current_user, username)
    return ProfileResponse(profile=profile)


@router.delete("/{username}/follow", response_model=ProfileResponse)
async def unfollow_user(
    username: str,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """取消关注."""
    profile_service = await get_profile_service(db)
    profile = await profile_service.unfollow(current_user, username)
    return ProfileResponse(profile=profile)
