"""
@PURPOSE: 数据库连接管理，提供异步 SQLAlchemy 引擎和会话
@OUTLINE:
  - engine: 异步数据库引擎
  - async_session_maker: 异步会话工厂
  - class Base: 声明式基类
  - get_db(): FastAPI 依赖注入获取数据库会话
  - commit_ignoring_duplicate(): 提交关系行, 重复写入时回滚并刷新对象
  - init_db(): 初始化数据库表
  - close_db(): 释放连接池
@GOTCHAS:
  - 连接池参数只对 PostgreSQL 生效, SQLite (测试/本地) 使用默认池
@DEPENDENCIES:
  - 内部: conduit.core.config
  - 外部: sqlalchemy, sqlalchemy.ext.asyncio, loguru
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import get_settings

settings = get_settings()


def _engine_options() -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug}
    if settings.is_postgres:
        options.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return options


# 创建异步引擎
engine = create_async_engine(settings.database_url, **_engine_options())

# 创建异步会话工厂
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类."""

    pass


def utcnow() -> datetime:
    """当前 UTC 时间 (列默认值)."""
    return datetime.now(UTC)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI 依赖注入：获取数据库会话.

    Yields:
        AsyncSession: 数据库会话对象
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def commit_ignoring_duplicate(db: AsyncSession, *instances: object) -> bool:
    """提交关注/收藏这类复合主键的关系行.

    并发的相同请求都通过了存在性检查时, 后提交的一方会违反主键约束。
    此时回滚事务并刷新 instances, 调用方按已存在处理。

    Args:
        db: 数据库会话
        instances: 回滚后仍需读取的 ORM 对象

    Returns:
        bool: 本次是否写入了新行
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"关系行已存在, 忽略重复写入: {e.orig}")
        for instance in instances:
            await db.refresh(instance)
        return False
    return True


async def init_db() -> None:
    """初始化数据库表."""
    # 注册所有模型到 Base.metadata
    from conduit import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """关闭数据库连接."""
    await engine.dispose()
