"""
@PURPOSE: 领域异常定义与全局异常处理器, 统一输出 RealWorld 错误信封
@OUTLINE:
  - class ConduitError: 领域异常基类 (携带 HTTP 状态码)
  - class BadRequestError / AuthenticationError / PermissionDeniedError
    / NotFoundError / UnprocessableError: 具体异常
  - error_body(): 构建 {"errors": {...}} 响应体
  - register_exception_handlers(): 注册到 FastAPI 应用
@GOTCHAS:
  - 请求体 JSON 解析失败 → 400, 查询参数错误 → 400, 路径参数错误 → 404,
    请求体字段校验失败 → 422
@DEPENDENCIES:
  - 外部: fastapi, starlette, loguru
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

# status.HTTP_422_UNPROCESSABLE_ENTITY 在新版 starlette 中已弃用
HTTP_422_UNPROCESSABLE = 422


class ConduitError(Exception):
    """领域异常基类.

    Attributes:
        status_code: 对应的 HTTP 状态码
        errors: 字段 → 错误消息列表
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, field: str = "body") -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    @property
    def errors(self) -> dict[str, list[str]]:
        return {self.field: [self.message]}


class BadRequestError(ConduitError):
    """请求格式错误."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ConduitError):
    """未认证或令牌无效."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ConduitError):
    """无权操作他人的资源."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ConduitError):
    """资源不存在."""

    status_code = status.HTTP_404_NOT_FOUND


class UnprocessableError(ConduitError):
    """语义校验失败 (重复用户名/邮箱、凭据错误等)."""

    status_code = HTTP_422_UNPROCESSABLE


def error_body(errors: dict[str, list[str]] | str) -> dict[str, Any]:
    """构建 RealWorld 错误信封.

    Args:
        errors: 字段错误字典, 或单条消息 (归入 body)

    Returns:
        dict: {"errors": {...}}
    """
    if isinstance(errors, str):
        errors = {"body": [errors]}
    return {"errors": errors}


def _location(loc: Sequence[Any]) -> tuple[str, str]:
    """拆分 pydantic 错误位置: (来源, 字段路径)."""
    if not loc:
        return "body", "body"
    source = str(loc[0])
    path = ".".join(str(part) for part in loc[1:])
    return source, path or source


def flatten_validation_errors(errors: Iterable[dict[str, Any]]) -> dict[str, list[str]]:
    """把 pydantic 校验错误展开为 字段路径 → 消息列表.

    Args:
        errors: RequestValidationError.errors()

    Returns:
        dict[str, list[str]]: 扁平化后的错误
    """
    result: dict[str, list[str]] = {}
    for error in errors:
        _, path = _location(error.get("loc", ()))
        message = str(error.get("msg", "is invalid"))
        result.setdefault(path, []).append(message)
    return result


def _validation_status(errors: Sequence[dict[str, Any]]) -> int:
    sources = set()
    for error in errors:
        if error.get("type") == "json_invalid":
            return status.HTTP_400_BAD_REQUEST
        source, _ = _location(error.get("loc", ()))
        sources.add(source)

    if "path" in sources:
        return status.HTTP_404_NOT_FOUND
    if "query" in sources or "header" in sources:
        return status.HTTP_400_BAD_REQUEST
    return HTTP_422_UNPROCESSABLE


async def conduit_error_handler(request: Request, exc: ConduitError) -> JSONResponse:
    """领域异常 → RealWorld 错误响应."""
    logger.info(
        f"请求被拒绝: {request.method} {request.url.path} "
        f"status={exc.status_code}, error={exc.message}"
    )
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Token"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.errors),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """框架 HTTPException 使用同样的错误信封."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求校验失败处理."""
    errors = exc.errors()
    status_code = _validation_status(errors)

    if status_code == status.HTTP_400_BAD_REQUEST and any(
        error.get("type") == "json_invalid" for error in errors
    ):
        content = error_body("Invalid JSON body")
    elif status_code == status.HTTP_404_NOT_FOUND:
        content = error_body("Resource not found")
    else:
        content = error_body(flatten_validation_errors(errors))

    logger.debug(f"请求校验失败: {request.method} {request.url.path} status={status_code}")
    return JSONResponse(status_code=status_code, content=content)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未处理异常 → 500, 记录完整堆栈."""
    logger.opt(exception=exc).error(f"未处理异常: {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """注册全部异常处理器.

    Args:
        app: FastAPI 应用实例
    """
    app.add_exception_handler(ConduitError, conduit_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
