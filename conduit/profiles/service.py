"""
@PURPOSE: 用户资料与关注关系业务逻辑服务
@OUTLINE:
  - class ProfileService: 资料服务类
    - get_profile(): 按用户名获取资料
    - follow() / unfollow(): 关注 / 取消关注 (幂等)
    - is_following(): 是否已关注
    - following_ids(): 批量查询关注状态
    - to_profile(): 用户 → 资料模型
  - get_profile_service(): 获取服务实例
@DEPENDENCIES:
  - 内部: conduit.core.database, conduit.core.exceptions, conduit.models
  - 外部: sqlalchemy, loguru
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.core.database import commit_ignoring_duplicate
from conduit.core.exceptions import NotFoundError, UnprocessableError
from conduit.models import Follow, User

from .schemas import Profile

PROFILE_NOT_FOUND = "profile not found"


class ProfileService:
    """资料服务类."""

    def __init__(self, db: AsyncSession) -> None:
        """初始化资料服务.

        Args:
            db: 数据库会话
        """
        self.db = db

    async def get_user(self, username: str) -> User:
        """按用户名获取用户.

        Raises:
            NotFoundError: 用户不存在
        """
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError(PROFILE_NOT_FOUND)
        return user

    async def get_profile(self, username: str, viewer: User | None = None) -> Profile:
        """获取用户资料.

        Args:
            username: 用户名
            viewer: 当前用户 (可选)

        Returns:
            Profile: 资料
        """
        user = await self.get_user(username)
        following = await self.is_following(viewer, user)
        return self.to_profile(user, following)

    async def follow(self, follower: User, username: str) -> Profile:
        """关注用户, 已关注时不做修改.

        Args:
            follower: 当前用户
            username: 被关注者用户名

        Returns:
            Profile: 被关注者资料 (following=True)

        Raises:
            NotFoundError: 用户不存在
            UnprocessableError: 关注自己
        """
        target = await self.get_user(username)
        if target.id == follower.id:
            raise UnprocessableError("cannot follow yourself")

        if not await self.is_following(follower, target):
            self.db.add(Follow(follower_id=follower.id, following_id=target.id))
            if await commit_ignoring_duplicate(self.db, follower, target):
                logger.info(f"关注成功: follower={follower.username}, following={target.username}")

        return self.to_profile(target, True)

    async def unfollow(self, follower: User, username: str) -> Profile:
        """取消关注, 未关注时不做修改.

        Raises:
            NotFoundError: 用户不存在
        """
        target = await self.get_user(username)
        stmt = delete(Follow).where(
            Follow.follower_id == follower.id,
            Follow.following_id == target.id,
        )
        await self.db.execute(stmt)
        await self.db.commit()
        logger.info(f"取消关注: follower={follower.username}, following={target.username}")

        return self.to_profile(target, False)

    async def is_following(self, viewer: User | None, target: User) -> bool:
        """viewer 是否关注了 target."""
        if viewer is None:
            return False
        stmt = select(Follow).where(
            Follow.follower_id == viewer.id,
            Follow.following_id == target.id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def following_ids(self, viewer: User | None, user_ids: Iterable[int]) -> set[int]:
        """批量查询 viewer 关注了哪些用户.

        Args:
            viewer: 当前用户 (可选)
            user_ids: 候选用户 ID

        Returns:
            set[int]: 已关注的用户 ID
        """
        ids = set(user_ids)
        if viewer is None or not ids:
            return set()
        stmt = select(Follow.following_id).where(
            Follow.follower_id == viewer.id,
            Follow.following_id.in_(ids),
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    def to_profile(user: User, following: bool = False) -> Profile:
        """用户 → 资料模型, bio/image 为空时回退为空字符串."""
        return Profile(
            username=user.username,
            bio=user.bio or "",
            image=user.image or "",
            following=following,
        )


async def get_profile_service(db: AsyncSession) -> ProfileService:
    """获取资料服务实例.

    Args:
        db: 数据库会话

    Returns:
        ProfileService: 资料服务实例
    """
    return ProfileService(db)
