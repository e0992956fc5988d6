"""
@PURPOSE: 认证业务逻辑服务 (注册、登录、获取/更新当前用户)
@OUTLINE:
  - class AuthService: 认证服务类
    - register(): 用户注册 (事务内唯一性检查)
    - login(): 邮箱 + 密码登录
    - get_user_by_id() / get_user_by_username() / get_user_by_email(): 查询
    - update_user(): 更新当前用户资料
    - issue_token(): 为用户签发令牌
    - build_response(): 构建 {"user": {...}} 响应
  - get_auth_service(): 获取服务实例
@GOTCHAS:
  - 注册时用户名优先于邮箱报告重复
  - 登录失败不区分 "用户不存在" 与 "密码错误", 统一返回同一条消息
  - 日志中只记录邮箱/用户名, 绝不记录密码
@DEPENDENCIES:
  - 内部: conduit.core.security, conduit.core.exceptions, conduit.models
  - 外部: sqlalchemy, loguru
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.core.exceptions import UnprocessableError
from conduit.core.security import create_access_token, get_password_hash, verify_password
from conduit.models import User

from .schemas import UserRegister, UserResponse, UserUpdate, UserWithToken

USERNAME_TAKEN = "username has already been taken"
EMAIL_TAKEN = "email has already been taken"
INVALID_CREDENTIALS = "email or password is invalid"


class AuthService:
    """认证服务类."""

    def __init__(self, db: AsyncSession) -> None:
        """初始化认证服务.

        Args:
            db: 数据库会话
        """
        self.db = db

    async def register(self, user_data: UserRegister) -> tuple[User, str]:
        """用户注册.

        重复检查与插入在同一事务中完成; 并发注册导致的唯一约束冲突
        会回滚并按重复处理。

        Args:
            user_data: 用户注册数据

        Returns:
            tuple[User, str]: (创建的用户, 令牌)

        Raises:
            UnprocessableError: 用户名或邮箱已存在
        """
        logger.info(f"用户注册尝试: username={user_data.username}, email={user_data.email}")

        stmt = (
            select(User)
            .where(or_(User.username == user_data.username, User.email == user_data.email))
            .order_by((User.username == user_data.username).desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        existing_user = result.scalar_one_or_none()
        if existing_user:
            message = USERNAME_TAKEN if existing_user.username == user_data.username else EMAIL_TAKEN
            logger.warning(f"用户注册失败(重复): {message} - username={user_data.username}")
            raise UnprocessableError(message)

        user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            bio="",
            image="",
        )
        self.db.add(user)
        await self._commit_unique()
        await self.db.refresh(user)

        token = self.issue_token(user)
        logger.info(f"用户注册成功: username={user.username}, id={user.id}")
        return user, token

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """邮箱 + 密码登录.

        Args:
            email: 邮箱
            password: 密码

        Returns:
            tuple[User, str]: (用户, 令牌)

        Raises:
            UnprocessableError: 邮箱或密码错误
        """
        logger.info(f"登录尝试: email={email}")

        user = await self.get_user_by_email(email)
        if not user:
            logger.warning(f"登录失败(用户不存在): email={email}")
            raise UnprocessableError(INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            logger.warning(f"登录失败(密码不匹配): user_id={user.id}, email={email}")
            raise UnprocessableError(INVALID_CREDENTIALS)

        logger.info(f"登录成功: user_id={user.id}, username={user.username}")
        return user, self.issue_token(user)

    async def update_user(self, user: User, user_data: UserUpdate) -> tuple[User, str]:
        """更新当前用户资料.

        Args:
            user: 当前用户
            user_data: 更新数据 (仅处理显式提供的字段)

        Returns:
            tuple[User, str]: (更新后的用户, 新令牌)

        Raises:
            UnprocessableError: 用户名或邮箱已被其他用户使用
        """
        if user_data.username is not None and user_data.username != user.username:
            existing = await self.get_user_by_username(user_data.username)
            if existing and existing.id != user.id:
                raise UnprocessableError(USERNAME_TAKEN)
            user.username = user_data.username

        if user_data.email is not None and user_data.email != user.email:
            existing = await self.get_user_by_email(user_data.email)
            if existing and existing.id != user.id:
                raise UnprocessableError(EMAIL_TAKEN)
            user.email = user_data.email

        if user_data.password is not None:
            user.password_hash = get_password_hash(user_data.password)

        if user_data.bio is not None:
            user.bio = user_data.bio

        if user_data.image is not None:
            user.image = user_data.image

        await self._commit_unique()
        await self.db.refresh(user)

        logger.info(f"用户资料已更新: user_id={user.id}, username={user.username}")
        return user, self.issue_token(user)

    async def get_user_by_id(self, user_id: int) -> User | None:
        """根据 ID 获取用户."""
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        """根据用户名获取用户."""
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        """根据邮箱获取用户."""
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def issue_token(self, user: User) -> str:
        """为用户签发令牌 (内嵌用户名与邮箱)."""
        token, _expires = create_access_token(user.id, user.username, user.email)
        return token

    @staticmethod
    def build_response(user: User, token: str) -> UserResponse:
        """构建用户响应, bio/image 为空时回退为空字符串."""
        return UserResponse(
            user=UserWithToken(
                username=user.username,
                email=user.email,
                bio=user.bio or "",
                image=user.image or "",
                token=token,
            )
        )

    async def _commit_unique(self) -> None:
        """提交事务, 唯一约束冲突转换为 422."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            message = EMAIL_TAKEN if "email" in str(e.orig).lower() else USERNAME_TAKEN
            logger.warning(f"唯一约束冲突, 事务已回滚: {message}")
            raise UnprocessableError(message) from e


async def get_auth_service(db: AsyncSession) -> AuthService:
    """获取认证服务实例.

    Args:
        db: 数据库会话

    Returns:
        AuthService: 认证服务实例
    """
    return AuthService(db)
