"""
@PURPOSE: 应用配置管理,使用 Pydantic Settings 加载环境变量
@OUTLINE:
  - class Settings: 应用配置类,从环境变量或 .env 文件加载
  - get_settings(): 获取配置单例
@GOTCHAS:
  - DATABASE_DSN 优先于 POSTGRES_* 拼接出的连接串
  - CORS_ALLOWED_ORIGINS 为逗号分隔字符串, "*" 表示允许全部
@DEPENDENCIES:
  - 外部: pydantic_settings, functools
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "conduit-dev-secret-change-in-production"


class Settings(BaseSettings):
    """应用配置类."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 应用配置
    app_name: str = "Conduit RealWorld API"
    api_prefix: str = "/api"
    debug: bool = False

    # 日志配置
    log_level: str = "INFO"
    log_format: str = "detailed"  # detailed / simple / json
    log_file: str | None = None

    # 数据库配置
    postgres_user: str = "conduit"
    postgres_password: str = "conduit_password"
    postgres_db: str = "conduit"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_dsn: str | None = None
    db_pool_size: int = 20
    db_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        """数据库连接 URL, DATABASE_DSN 优先."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_postgres(self) -> bool:
        """当前连接是否为 PostgreSQL."""
        return self.database_url.startswith("postgresql")

    # JWT 配置
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    # CORS 配置
    cors_allowed_origins: str = "http://localhost:3000,http://localhost:4200"

    @property
    def cors_origins(self) -> list[str]:
        """解析逗号分隔的 CORS 来源列表."""
        raw = (self.cors_allowed_origins or "").strip()
        if not raw or raw == "*":
            return ["*"]
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    # 服务配置
    server_host: str = "127.0.0.1"  # nosec B104 - 默认只监听本地
    server_port: int = 8000
    shutdown_timeout: int = 30

    @property
    def uses_default_secret(self) -> bool:
        """是否仍在使用内置的开发密钥."""
        return self.jwt_secret_key == DEFAULT_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    """获取配置单例."""
    return Settings()
