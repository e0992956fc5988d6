"""
@PURPOSE: 配置加载测试
@OUTLINE:
  - test_database_url_*: DATABASE_DSN 与 POSTGRES_* 拼接
  - test_cors_origins_*: CORS 来源解析
  - test_default_secret_detection: 默认开发密钥检测
  - test_version_is_not_a_setting: 版本号只来自 conduit.__version__
  - test_logger_setup_writes_file: 文件日志输出
  - test_json_format_keeps_braces_and_context: JSON 格式化器
@DEPENDENCIES:
  - 内部: conduit.core.config, conduit.core.logging
  - 外部: pytest, loguru
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger

from conduit.core.config import DEFAULT_JWT_SECRET, Settings, get_settings
from conduit.core.logging import format_json, setup_logger


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """移除测试环境变量, 只保留显式设置的值."""
    for key in ("DATABASE_DSN", "JWT_SECRET_KEY", "CORS_ALLOWED_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_database_url_built_from_postgres_parts(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("POSTGRES_USER", "alice")
    clean_env.setenv("POSTGRES_PASSWORD", "secret")
    clean_env.setenv("POSTGRES_HOST", "db")
    clean_env.setenv("POSTGRES_PORT", "6543")
    clean_env.setenv("POSTGRES_DB", "blog")

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgresql+asyncpg://alice:secret@db:6543/blog"
    assert settings.is_postgres


def test_database_dsn_overrides_parts(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DATABASE_DSN", "sqlite+aiosqlite:///./conduit.db")

    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite+aiosqlite:///./conduit.db"
    assert not settings.is_postgres


def test_env_is_case_insensitive(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("api_prefix", "/v1")
    clean_env.setenv("JWT_EXPIRE_DAYS", "3")

    settings = Settings(_env_file=None)

    assert settings.api_prefix == "/v1"
    assert settings.jwt_expire_days == 3


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("*", ["*"]),
        ("", ["*"]),
        ("http://a.test", ["http://a.test"]),
        ("http://a.test, http://b.test ,", ["http://a.test", "http://b.test"]),
    ],
)
def test_cors_origins(clean_env: pytest.MonkeyPatch, raw: str, expected: list[str]) -> None:
    clean_env.setenv("CORS_ALLOWED_ORIGINS", raw)
    assert Settings(_env_file=None).cors_origins == expected


def test_default_secret_detection(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings(_env_file=None)
    assert settings.jwt_secret_key == DEFAULT_JWT_SECRET
    assert settings.uses_default_secret

    clean_env.setenv("JWT_SECRET_KEY", "something-else")
    assert not Settings(_env_file=None).uses_default_secret


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
    assert get_settings().jwt_secret_key == "conduit-test-secret"


def test_logger_setup_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "conduit.log"
    settings = Settings(_env_file=None, log_file=str(log_file), log_format="simple")

    setup_logger(settings, force=True)
    logger.info("日志写入测试")
    logger.complete()

    assert log_file.exists()
    assert "日志写入测试" in log_file.read_text(encoding="utf-8")

    setup_logger(Settings(_env_file=None), force=True)


def test_json_format_keeps_braces_and_context() -> None:
    lines: list[str] = []
    handler_id = logger.add(lines.append, format=format_json, level="INFO", colorize=False)
    try:
        with logger.contextualize(request_id="abc123"):
            logger.info("payload {x}")
    finally:
        logger.remove(handler_id)

    entry = json.loads(lines[0])
    assert entry["message"] == "payload {x}"
    assert entry["level"] == "INFO"
    assert entry["context"] == {"request_id": "abc123"}


def test_version_is_not_a_setting(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("APP_VERSION", "9.9.9")

    settings = Settings(_env_file=None)

    assert "app_version" not in Settings.model_fields
    assert not hasattr(settings, "app_version")
