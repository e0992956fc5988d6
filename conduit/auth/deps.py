"""
@PURPOSE: 认证相关的 FastAPI 依赖注入
@OUTLINE:
  - authorization_header: Authorization 请求头 (仅 Token 方案)
  - extract_token(): 从请求头解析令牌
  - get_current_token(): 获取必需的令牌
  - get_current_user(): 获取当前登录用户 (必需认证)
  - get_optional_user(): 获取当前用户 (可选认证, 无效令牌视为匿名)
@DEPENDENCIES:
  - 内部: conduit.core.security, conduit.core.database, conduit.models
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.core.database import get_db
from conduit.core.security import decode_token, parse_user_id
from conduit.models import User

# RealWorld 规范使用 "Authorization: Token <jwt>"
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Token <jwt>",
)

TOKEN_SCHEME = "token"


def extract_token(authorization: str | None) -> str | None:
    """从 Authorization 请求头解析令牌.

    Args:
        authorization: 请求头原始值

    Returns:
        str | None: 令牌, 格式不正确时返回 None
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != TOKEN_SCHEME:
        return None
    token = token.strip()
    return token or None


def _credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Token"},
    )


async def get_current_token(
    authorization: Annotated[str | None, Depends(authorization_header)],
) -> str:
    """获取必需的令牌.

    Raises:
        HTTPException: 缺少令牌或格式错误
    """
    token = extract_token(authorization)
    if not token:
        raise _credentials_exception("Invalid token format")
    return token


async def _resolve_user(token: str, db: AsyncSession) -> User | None:
    payload = decode_token(token)
    if not payload:
        return None

    user_id = parse_user_id(payload.sub)
    if user_id is None:
        logger.warning(f"令牌 sub 非法: sub={payload.sub!r}")
        return None

    return await db.get(User, user_id)


async def get_current_user(
    token: Annotated[str, Depends(get_current_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """获取当前登录用户.

    Args:
        token: 请求令牌
        db: 数据库会话

    Returns:
        User: 当前用户对象

    Raises:
        HTTPException: 令牌无效、已过期或用户不存在
    """
    user = await _resolve_user(token, db)
    if not user:
        raise _credentials_exception("Invalid token")
    return user


async def get_optional_user(
    authorization: Annotated[str | None, Depends(authorization_header)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """获取当前用户 (可选认证).

    未携带令牌或令牌无效时返回 None, 请求按匿名处理。
    """
    token = extract_token(authorization)
    if not token:
        return None

    user = await _resolve_user(token, db)
    if not user:
        logger.debug("可选认证: 令牌无效, 按匿名请求处理")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
