"""
@PURPOSE: FastAPI 应用入口, Conduit API 服务器主程序
@OUTLINE:
  - create_app(): FastAPI 应用工厂
  - lifespan(): 应用生命周期管理 (含优雅关闭)
  - log_requests: 中间件记录请求日志并注入 request_id
  - track_active_requests: 中间件追踪活跃请求数
@GOTCHAS:
  - 应用启动时会自动创建数据库表
  - 支持优雅关闭，等待活跃请求完成 (最多 SHUTDOWN_TIMEOUT 秒)
  - 业务路由统一挂载在 API_PREFIX (默认 /api) 下, 健康检查不带前缀
@DEPENDENCIES:
  - 内部: conduit.core.*, conduit.auth / profiles / articles / comments / tags
  - 外部: fastapi, uvicorn, loguru
"""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from conduit import __version__
from conduit.articles.router import router as articles_router
from conduit.auth.router import router as auth_router
from conduit.comments.router import router as comments_router
from conduit.core.config import get_settings
from conduit.core.database import close_db, init_db
from conduit.core.exceptions import register_exception_handlers
from conduit.core.health import HealthStatus, health_checker
from conduit.core.logging import setup_logger
from conduit.profiles.router import router as profiles_router
from conduit.tags.router import router as tags_router

settings = get_settings()

REQUEST_ID_HEADER = "X-Request-Id"

# 全局状态
active_requests = 0


async def wait_for_active_requests(timeout: int) -> bool:
    """等待活跃请求完成.

    Args:
        timeout: 最长等待秒数

    Returns:
        bool: 超时前全部完成返回 True
    """
    for i in range(timeout):
        if active_requests == 0:
            logger.info("所有活跃请求已完成")
            return True
        if i == 0:
            logger.info(f"等待 {active_requests} 个活跃请求完成...")
        elif i % 5 == 0:
            logger.info(f"仍有 {active_requests} 个活跃请求... ({i}/{timeout}s)")
        await asyncio.sleep(1)

    if active_requests == 0:
        return True
    logger.warning(f"优雅关闭超时: 仍有 {active_requests} 个请求未完成")
    return False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理.

    启动时:
      1. 配置日志
      2. 检查 JWT 密钥
      3. 初始化数据库表

    关闭时:
      1. 等待活跃请求完成
      2. 释放数据库连接池
    """
    setup_logger(settings)
    logger.info(f"正在启动 {settings.app_name} v{__version__}...")

    if settings.uses_default_secret:
        logger.warning("JWT_SECRET_KEY 仍为默认开发密钥, 生产环境必须修改")

    await init_db()
    logger.info("数据库初始化完成")
    logger.info(f"{settings.app_name} 启动成功")

    yield

    # ==================== 优雅关闭流程 ====================
    logger.info("开始优雅关闭流程...")
    await wait_for_active_requests(settings.shutdown_timeout)

    logger.info("清理数据库连接...")
    await close_db()

    logger.info(f"{settings.app_name} 已完全关闭")


def create_app() -> FastAPI:
    """创建 FastAPI 应用.

    Returns:
        FastAPI: 应用实例
    """
    app = FastAPI(
        title=settings.app_name,
        description="Conduit (RealWorld) 博客平台 API",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # 活跃请求追踪中间件
    @app.middleware("http")
    async def track_active_requests(request: Request, call_next):
        """追踪活跃请求数量，用于优雅关闭."""
        global active_requests

        active_requests += 1
        try:
            return await call_next(request)
        finally:
            active_requests -= 1

    # 请求日志中间件
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """记录请求方法、路径、状态码和耗时, 并回写 X-Request-Id."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start_time = time.perf_counter()

        with logger.contextualize(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{request.method} {request.url.path} -> 500 ({elapsed_ms:.1f}ms)"
                )
                raise

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f}ms)"
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=86400,
    )

    register_exception_handlers(app)

    # 注册路由
    for router in (auth_router, profiles_router, articles_router, comments_router, tags_router):
        app.include_router(router, prefix=settings.api_prefix)

    @app.get("/", tags=["系统"])
    async def root() -> dict[str, str]:
        """服务信息."""
        return {
            "message": f"{settings.app_name} is running",
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    # ==================== 健康检查端点 ====================

    @app.get("/health", tags=["系统"])
    async def health_check() -> dict[str, str]:
        """轻量级健康检查端点 (Liveness Probe).

        仅检查进程是否存活，不检查依赖服务。

        Returns:
            dict: 固定返回 {"status": "ok"}
        """
        return {"status": "ok"}

    @app.get("/health/readiness", tags=["系统"], response_model=HealthStatus)
    async def readiness_check():
        """深度健康检查端点 (Readiness Probe).

        HTTP Status Codes:
            200: 数据库正常 (healthy)
            503: 数据库异常 (unhealthy)
        """
        health_status = await health_checker.check_overall()

        if health_status.status == "healthy":
            return health_status
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status.model_dump(mode="json"),
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "conduit.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
