"""
@PURPOSE: 就绪检查, 检测数据库连接状态
@OUTLINE:
  - class CheckResult: 单项检查结果模型
  - class HealthStatus: 综合健康状态模型
  - class HealthChecker: 健康检查管理器
    - check_database(): 执行 SELECT 1 检测数据库
    - check_overall(): 综合健康检查
  - health_checker: 单例
@DEPENDENCIES:
  - 内部: conduit.core.database
  - 外部: sqlalchemy, pydantic, loguru
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from .database import engine as default_engine


class CheckResult(BaseModel):
    """单项检查结果."""

    status: bool
    latency_ms: float
    message: str | None = None


class HealthStatus(BaseModel):
    """综合健康状态."""

    status: Literal["healthy", "unhealthy"]
    checks: dict[str, CheckResult]
    timestamp: datetime


class HealthChecker:
    """健康检查管理器.

    Args:
        engine: 待检测的数据库引擎, 默认使用应用全局引擎
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        self.engine = engine or default_engine

    async def check_database(self) -> CheckResult:
        """检测数据库连接.

        Returns:
            CheckResult: 检查结果，包含状态、延迟和消息
        """
        start_time = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"数据库健康检查失败: error={e}, latency={latency_ms:.2f}ms")
            return CheckResult(
                status=False,
                latency_ms=round(latency_ms, 2),
                message=f"Database connection failed: {e}",
            )

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"数据库健康检查成功: latency={latency_ms:.2f}ms")
        return CheckResult(
            status=True,
            latency_ms=round(latency_ms, 2),
            message="Database connection is healthy",
        )

    async def check_overall(self) -> HealthStatus:
        """综合健康检查, 任一依赖异常即为 unhealthy."""
        checks = {"database": await self.check_database()}

        failed = [name for name, check in checks.items() if not check.status]
        overall_status = "unhealthy" if failed else "healthy"

        if failed:
            logger.warning(f"健康检查失败: status={overall_status}, failed={failed}")
        else:
            logger.debug(f"健康检查成功: status={overall_status}")

        return HealthStatus(
            status=overall_status,
            checks=checks,
            timestamp=datetime.now(UTC),
        )


health_checker = HealthChecker()
