"""Command-line interface for running and inspecting the message board."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Coroutine, Optional, TypeVar

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .app import build_mcp_server
from .config import get_settings
from .errors import MessageBoardError
from .gateway import build_gateway
from .http import build_http_app, configure_logging
from .service import MessageBoardService
from .utils import derive_title

T = TypeVar("T")

console = Console()
app = typer.Typer(help="Message board document server and MCP tools.")


def _service() -> MessageBoardService:
    settings = get_settings()
    configure_logging(settings)
    return MessageBoardService(build_gateway(settings), settings.board.tabs)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except MessageBoardError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc


@app.command("serve-http")
def serve_http(
    host: Optional[str] = typer.Option(None, help="Host interface for HTTP transport. Defaults to HTTP_HOST setting."),
    port: Optional[int] = typer.Option(None, help="Port for HTTP transport. Defaults to HTTP_PORT setting."),
) -> None:
    """Serve /data.json, /api/save-data and (when enabled) the MCP endpoint."""
    settings = get_settings()
    resolved_host = host or settings.http.host
    resolved_port = port or settings.http.port

    from . import rich_logger

    if settings.log_rich_enabled:
        rich_logger.display_startup_banner(settings, resolved_host, resolved_port)

    http_app = build_http_app(settings)
    uvicorn.run(http_app, host=resolved_host, port=resolved_port, log_level="info")


@app.command("serve-stdio")
def serve_stdio() -> None:
    """Run the MCP server over stdio for tool-calling clients."""
    settings = get_settings()
    configure_logging(settings)
    server = build_mcp_server(settings)
    server.run(transport="stdio", show_banner=False)


@app.command("list-messages")
def list_messages(
    category: Optional[str] = typer.Option(None, help="Only show this category."),
    limit: Optional[int] = typer.Option(None, help="Page size."),
    page: Optional[int] = typer.Option(None, help="1-based page number."),
) -> None:
    """Print messages as a table."""
    messages: list[dict[str, Any]] = _run(_service().list_messages(category=category, limit=limit, page=page))
    table = Table(title="Messages")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Title")
    for message in messages:
        table.add_row(message["id"], message["category"], derive_title(message["content"]))
    console.print(table)


@app.command("categories")
def categories() -> None:
    """Print the configured categories."""
    table = Table(title="Categories")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    for entry in _service().categories():
        table.add_row(entry["id"], entry["name"])
    console.print(table)


@app.command("show-document")
def show_document() -> None:
    """Print the raw board document as JSON."""
    document = _run(_service().gateway.load())
    console.print_json(json.dumps(document.to_json(), ensure_ascii=False))
