"""
@PURPOSE: CLI 主入口 - Conduit 服务命令行工具
@OUTLINE:
  - app: Typer 主应用
  - serve(): 启动 API 服务器 (uvicorn)
  - init_db(): 创建全部数据表
  - health(): 执行就绪检查
  - version(): 显示版本信息
@GOTCHAS:
  - 数据库连接来自环境变量 / .env (DATABASE_DSN 或 POSTGRES_*)
@DEPENDENCIES:
  - 内部: conduit.core.*
  - 外部: typer, rich, uvicorn
"""

from __future__ import annotations

import asyncio
import json
import sys

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from conduit import __version__
from conduit.core import database
from conduit.core.config import get_settings
from conduit.core.health import HealthStatus, health_checker
from conduit.core.logging import setup_logger

app = typer.Typer(
    name="conduit",
    help="Conduit (RealWorld) 博客平台后端",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main() -> None:
    """配置日志."""
    setup_logger(get_settings())


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="监听地址 (默认 SERVER_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="监听端口 (默认 SERVER_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="代码变更时自动重载"),
):
    """启动 API 服务器.

    Examples:
        conduit serve --port 8080
    """
    settings = get_settings()
    uvicorn.run(
        "conduit.main:app",
        host=host or settings.server_host,
        port=port or settings.server_port,
        reload=reload,
    )


@app.command("init-db")
def init_db():
    """创建全部数据表 (已存在的表不受影响)."""

    async def _run() -> None:
        try:
            await database.init_db()
        finally:
            await database.close_db()

    asyncio.run(_run())
    console.print("[green]✓ 数据表已就绪[/green]")


@app.command()
def health(
    json_output: bool = typer.Option(False, "--json", help="以JSON格式输出"),
):
    """执行就绪检查, 数据库不可用时退出码为 1.

    Examples:
        conduit health
        conduit health --json
    """

    async def _run() -> HealthStatus:
        try:
            return await health_checker.check_overall()
        finally:
            await database.close_db()

    result = asyncio.run(_run())

    if json_output:
        console.print(
            json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    else:
        _display_health_result(result)

    if result.status != "healthy":
        raise typer.Exit(1)


def _display_health_result(result: HealthStatus) -> None:
    status_color = "green" if result.status == "healthy" else "red"
    console.print(
        f"\n[{status_color}]总体状态: {result.status.upper()}[/{status_color}]\n"
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("组件", style="cyan", width=20)
    table.add_column("状态", width=10)
    table.add_column("延迟 (ms)", justify="right")
    table.add_column("消息", no_wrap=False)

    for component, check in result.checks.items():
        status_icon = "[green]✓[/green]" if check.status else "[red]✗[/red]"
        table.add_row(component, status_icon, f"{check.latency_ms:.2f}", check.message or "")

    console.print(table)
    console.print(f"\n检查时间: {result.timestamp.isoformat()}\n")


@app.command()
def version():
    """显示版本信息."""
    settings = get_settings()
    console.print(f"\n[bold cyan]{settings.app_name}[/bold cyan]")
    console.print(f"版本: [bold]{__version__}[/bold]")
    console.print(f"Python: {sys.version.split()[0]}")


if __name__ == "__main__":
    app()
