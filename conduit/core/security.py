"""
@PURPOSE: 安全工具模块,提供密码哈希和 JWT 令牌生成/验证功能
@OUTLINE:
  - verify_password(): 验证密码
  - get_password_hash(): 生成密码哈希
  - create_access_token(): 创建访问令牌 (默认 7 天有效)
  - decode_token(): 解码并验证令牌
  - parse_user_id(): 将令牌 sub 转换为用户 ID
@DEPENDENCIES:
  - 内部: conduit.core.config
  - 外部: passlib, jose, datetime
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import get_settings

settings = get_settings()

# 密码哈希上下文
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenPayload(BaseModel):
    """JWT 令牌载荷."""

    sub: str  # 用户 ID
    username: str | None = None
    email: str | None = None
    exp: datetime  # 过期时间
    iat: datetime  # 签发时间


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码是否正确.

    Args:
        plain_password: 明文密码
        hashed_password: 哈希后的密码

    Returns:
        bool: 密码是否匹配
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """生成密码哈希.

    Args:
        password: 明文密码

    Returns:
        str: 哈希后的密码
    """
    return pwd_context.hash(password)


def create_access_token(
    user_id: int | str,
    username: str | None = None,
    email: str | None = None,
) -> tuple[str, datetime]:
    """创建访问令牌.

    令牌内嵌用户名和邮箱, 因此用户资料变更后需要重新签发。

    Args:
        user_id: 用户 ID
        username: 用户名
        email: 邮箱

    Returns:
        tuple[str, datetime]: (令牌, 过期时间)
    """
    now = datetime.now(UTC)
    expire = now + timedelta(days=settings.jwt_expire_days)

    payload: dict[str, object] = {
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
    }
    if username is not None:
        payload["username"] = username
    if email is not None:
        payload["email"] = email

    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_token(token: str) -> TokenPayload | None:
    """解码并验证令牌.

    Args:
        token: JWT 令牌字符串

    Returns:
        TokenPayload | None: 解码后的载荷,验证失败返回 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return TokenPayload(
            sub=str(payload["sub"]),
            username=payload.get("username"),
            email=payload.get("email"),
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(payload["iat"], tz=UTC),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        return None


def parse_user_id(sub: str | None) -> int | None:
    """将令牌中的 sub 安全地转换为用户 ID.

    Args:
        sub: 令牌 sub 字段

    Returns:
        int | None: 正整数用户 ID, 非法时返回 None
    """
    if sub is None:
        return None
    try:
        user_id = int(sub, 10)
    except (TypeError, ValueError):
        return None
    if user_id <= 0:
        return None
    return user_id
