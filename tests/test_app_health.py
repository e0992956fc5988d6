"""
@PURPOSE: 应用级行为测试 (健康检查、请求 ID、CORS、错误信封)
@OUTLINE:
  - 根路径与 liveness / readiness 探针
  - readiness 在数据库不可用时返回 503
  - X-Request-Id 透传与生成
  - CORS 预检
  - 未知路由与未处理异常的错误信封
  - 422 状态码不触发弃用警告
  - 优雅关闭等待活跃请求
@DEPENDENCIES:
  - 内部: conduit.main, conduit.core.health
  - 外部: pytest, httpx, sqlalchemy
"""

from __future__ import annotations

import warnings

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from conduit import __version__, main
from conduit.core.exceptions import (
    UnprocessableError,
    _validation_status,
    register_exception_handlers,
)
from conduit.core.health import HealthChecker


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    resp = await client.get("/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["version"] == __version__
    assert "message" in body
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_liveness(client: AsyncClient):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_healthy(client: AsyncClient):
    resp = await client.get("/health/readiness")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] is True


@pytest.mark.asyncio
async def test_readiness_unhealthy(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    broken_engine = create_async_engine("sqlite+aiosqlite:////nonexistent-dir/conduit.db")
    monkeypatch.setattr(main, "health_checker", HealthChecker(broken_engine))

    try:
        resp = await client.get("/health/readiness")
    finally:
        await broken_engine.dispose()

    assert resp.status_code == 503
    body = resp.json()
    assert body["status"] == "unhealthy"
    assert body["checks"]["database"]["status"] is False
    assert "Database connection failed" in body["checks"]["database"]["message"]


@pytest.mark.asyncio
async def test_health_checker_reports_latency(db_engine):
    result = await HealthChecker(db_engine).check_overall()

    assert result.status == "healthy"
    assert result.checks["database"].latency_ms >= 0


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_generated(client: AsyncClient):
    echoed = await client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert echoed.headers["x-request-id"] == "abc-123"

    generated = await client.get("/health")
    assert len(generated.headers["x-request-id"]) == 32


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient):
    resp = await client.options(
        "/api/articles",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert resp.headers["access-control-max-age"] == "86400"
    assert "POST" in resp.headers["access-control-allow-methods"]


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    resp = await client.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.json() == {"errors": {"body": ["Not Found"]}}


@pytest.mark.asyncio
async def test_method_not_allowed_uses_error_envelope(client: AsyncClient):
    resp = await client.patch("/api/tags")

    assert resp.status_code == 405
    assert "errors" in resp.json()


@pytest.mark.asyncio
async def test_unhandled_exception_returns_500():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaboom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {"errors": {"body": ["Internal server error"]}}


@pytest.mark.asyncio
async def test_wait_for_active_requests(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main, "active_requests", 0)
    assert await main.wait_for_active_requests(timeout=1) is True

    monkeypatch.setattr(main, "active_requests", 2)
    assert await main.wait_for_active_requests(timeout=1) is False


def test_unprocessable_status_without_deprecation_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        body_error = [{"type": "missing", "loc": ("body", "user"), "msg": "Field required"}]

        assert _validation_status(body_error) == 422
        assert UnprocessableError("taken").status_code == 422
