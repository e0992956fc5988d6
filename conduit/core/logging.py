"""
@PURPOSE: 日志系统设置 - 基于 loguru 的控制台/文件输出与请求上下文
@OUTLINE:
  - def format_detailed(): 详细格式化器 (开发环境)
  - def format_simple(): 简单格式化器
  - def format_json(): JSON 格式化器 (生产环境)
  - def setup_logger(): 配置全局日志系统
@GOTCHAS:
  - 需要在应用启动时调用 setup_logger()
  - request_id 通过 logger.contextualize() 注入, 由请求日志中间件设置
@DEPENDENCIES:
  - 内部: conduit.core.config
  - 外部: loguru
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from .config import Settings, get_settings

_configured = False


def format_detailed(record: dict[str, Any]) -> str:
    """详细格式化器.

    Args:
        record: 日志记录

    Returns:
        格式化模板
    """
    request_id = str(record["extra"].get("request_id", ""))[:8]
    request_id = request_id.replace("{", "{{").replace("}", "}}").replace("<", r"\<")
    context_str = f" [req={request_id}]" if request_id else ""
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
        f"{context_str} - "
        "<level>{message}</level>\n"
        "{exception}"
    )


def format_simple(record: dict[str, Any]) -> str:
    """简单格式化器."""
    return "{time:HH:mm:ss} | {level: <8} | {message}\n{exception}"


def format_json(record: dict[str, Any]) -> str:
    """JSON 格式化器.

    Args:
        record: 日志记录

    Returns:
        单行 JSON (花括号已转义, 可直接作为 loguru 模板)
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    extra = record["extra"]
    if extra:
        log_entry["context"] = {key: str(value) for key, value in extra.items()}

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    # loguru 会把返回值当作模板再次格式化
    rendered = json.dumps(log_entry, ensure_ascii=False)
    return rendered.replace("{", "{{").replace("}", "}}") + "\n"


_FORMATTERS = {
    "detailed": format_detailed,
    "simple": format_simple,
    "json": format_json,
}


def setup_logger(settings: Settings | None = None, force: bool = False) -> None:
    """配置全局日志系统.

    Args:
        settings: 应用配置, 默认使用 get_settings()
        force: 是否强制重新配置

    Examples:
        >>> from conduit.core.logging import setup_logger
        >>> setup_logger()
    """
    global _configured
    if _configured and not force:
        return

    if settings is None:
        settings = get_settings()

    formatter = _FORMATTERS.get(settings.log_format, format_detailed)

    # 移除默认处理器
    logger.remove()

    logger.add(
        sys.stderr,
        format=formatter,
        level=settings.log_level.upper(),
        colorize=settings.log_format != "json",
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        log_file = Path(settings.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            format=formatter,
            level=settings.log_level.upper(),
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            encoding="utf-8",
        )

    _configured = True
    logger.info(
        f"日志系统已配置: level={settings.log_level}, format={settings.log_format}, "
        f"file={settings.log_file or '-'}"
    )
