"""
@PURPOSE: Pytest 配置和通用 fixtures
@OUTLINE:
  - 测试环境变量: 内存 SQLite + 固定 JWT 密钥 (须在导入 conduit 之前设置)
  - db_engine: 每个测试独立的内存数据库引擎 (StaticPool)
  - session_maker: 绑定测试引擎的会话工厂
  - app: 覆盖 get_db 依赖后的 FastAPI 应用
  - client: httpx AsyncClient (ASGITransport)
@DEPENDENCIES:
  - 外部: pytest, pytest_asyncio, httpx, sqlalchemy
"""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncGenerator
from pathlib import Path

os.environ["DATABASE_DSN"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "conduit-test-secret"
os.environ["CORS_ALLOWED_ORIGINS"] = "http://localhost:3000"

# 确保 tests 目录在 Python 路径中 (utils 辅助模块)
_tests_dir = Path(__file__).resolve().parent
if str(_tests_dir) not in sys.path:
    sys.path.insert(0, str(_tests_dir))

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from conduit import models  # noqa: F401
from conduit.core.database import Base, get_db
from conduit.main import create_app


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """每个测试一个全新的内存数据库."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    """覆盖 get_db 依赖, 请求使用测试数据库."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
