"""
@PURPOSE: 认证路由，提供注册、登录、获取/更新当前用户 API
@OUTLINE:
  - POST /users: 用户注册
  - POST /users/login: 用户登录
  - GET /user: 获取当前用户 (重新签发令牌)
  - PUT /user: 更新当前用户
@DEPENDENCIES:
  - 内部: conduit.auth.service, conduit.auth.deps, conduit.auth.schemas
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.core.database import get_db

from .deps import CurrentUser
from .schemas import UserLoginRequest, UserRegisterRequest, UserResponse, UserUpdateRequest
from .service import get_auth_service

router = APIRouter(tags=["认证"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """用户注册.

    Args:
        payload: {"user": {username, email, password}}
        db: 数据库会话

    Returns:
        UserResponse: 创建的用户信息 (含令牌)
    """
    auth_service = await get_auth_service(db)
    user, token = await auth_service.register(payload.user)
    return auth_service.build_response(user, token)


@router.post("/users/login", response_model=UserResponse)
async def login(
    payload: UserLoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """用户登录.

    Args:
        payload: {"user": {email, password}}
        db: 数据库会话

    Returns:
        UserResponse: 用户信息 (含新令牌)
    """
    auth_service = await get_auth_service(db)
    user, token = await auth_service.login(payload.user.email, payload.user.password)
    return auth_service.build_response(user, token)


@router.get("/user", response_model=UserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """获取当前用户信息, 总是返回新签发的令牌."""
    auth_service = await get_auth_service(db)
    return auth_service.build_response(current_user, auth_service.issue_token(current_user))


@router.put("/user", response_model=UserResponse)
async def update_current_user(
    payload: UserUpdateRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """更新当前用户.

    Args:
        payload: {"user": {email?, username?, password?, bio?, image?}}
        current_user: 当前登录用户
        db: 数据库会话

    Returns:
        UserResponse: 更新后的用户信息 (令牌内嵌用户名/邮箱, 因此重新签发)
    """
    auth_service = await get_auth_service(db)
    user, token = await auth_service.update_user(current_user, payload.user)
    return auth_service.build_response(user, token)
