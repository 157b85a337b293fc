"""Rich console output for MCP tool calls and server startup.

Everything here writes to stderr: when the MCP server runs over stdio, stdout
carries the JSON-RPC stream.
"""

from __future__ import annotations

import json
import time
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional

from rich import box
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from .config import Settings

# Global console instance for logging
console = Console(stderr=True, width=120)


@dataclass
class ToolCallContext:
    """Context information for a tool call."""

    tool_name: str
    kwargs: dict[str, Any]
    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None
    result: Any = None
    error: Optional[Exception] = None
    success: bool = True
    _created_at: datetime = field(default_factory=datetime.now)

    @property
    def duration_ms(self) -> float:
        end = self.end_time if self.end_time else time.perf_counter()
        return (end - self.start_time) * 1000

    @property
    def timestamp(self) -> str:
        return self._created_at.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def _safe_json_format(data: Any, max_length: int = 2000) -> str:
    """Format data as JSON with truncation."""
    json_str = json.dumps(data, indent=2, default=str, ensure_ascii=False)
    if len(json_str) > max_length:
        json_str = json_str[:max_length] + "\n... (truncated)"
    return json_str


def _syntax_panel(title: str, content: str, border_style: str = "cyan") -> Panel:
    return Panel(
        Syntax(content, "json", theme="monokai", line_numbers=False, word_wrap=True),
        title=f"[bold {border_style}]{title}[/bold {border_style}]",
        border_style=border_style,
        box=box.ROUNDED,
        padding=(0, 1),
    )


def _summary_table(ctx: ToolCallContext) -> Table:
    table = Table(show_header=False, box=box.SIMPLE, padding=(0, 1), border_style="blue")
    table.add_column("Key", style="bold yellow", width=12)
    table.add_column("Value", style="white", overflow="fold")
    table.add_row("Tool", f"[bold green]{ctx.tool_name}[/bold green]")
    table.add_row("Started", ctx.timestamp)
    duration_color = "green" if ctx.duration_ms < 100 else "yellow" if ctx.duration_ms < 1000 else "red"
    table.add_row("Duration", f"[{duration_color}]{ctx.duration_ms:.2f}ms[/{duration_color}]")
    if ctx.success:
        table.add_row("Status", "[bold green]✓ SUCCESS[/bold green]")
    else:
        table.add_row("Status", "[bold red]✗ FAILED[/bold red]")
        table.add_row("Error", f"[red]{escape(str(ctx.error)[:100])}[/red]")
    return table


def build_tool_call_panel(ctx: ToolCallContext) -> Panel:
    """Construct the panel summarizing a completed tool call."""
    components: list[Any] = [_summary_table(ctx)]
    params = {k: v for k, v in ctx.kwargs.items() if v is not None}
    if params:
        components.append(_syntax_panel("Input Parameters", _safe_json_format(params)))
    if ctx.error is not None:
        error_info = {"error_type": type(ctx.error).__name__, "error_message": str(ctx.error)}
        components.append(_syntax_panel("Error Details", _safe_json_format(error_info), border_style="red"))
    else:
        components.append(_syntax_panel("Result", _safe_json_format(ctx.result)))

    if ctx.success:
        title = "[bold white on green]✓ MCP TOOL CALL COMPLETED [/bold white on green]"
        border_style = "bright_green"
    else:
        title = "[bold white on red]✗ MCP TOOL CALL FAILED [/bold white on red]"
        border_style = "bright_red"
    return Panel(Group(*components), title=title, border_style=border_style, box=box.DOUBLE, padding=(1, 2))


@contextmanager
def tool_call_logger(tool_name: str, kwargs: dict[str, Any] | None = None) -> Iterator[ToolCallContext]:
    """Time a tool call and print a completion panel, without ever masking the call's own errors.

    Usage:
        with tool_call_logger("create_message", {"title": "x"}) as call:
            call.result = await service.create_message(...)
    """
    ctx = ToolCallContext(tool_name=tool_name, kwargs=kwargs or {})
    try:
        yield ctx
        ctx.success = True
    except Exception as e:
        ctx.error = e
        ctx.success = False
        raise
    finally:
        with suppress(Exception):
            ctx.end_time = time.perf_counter()
            console.print(build_tool_call_panel(ctx))


def create_startup_panel(config: dict[str, Any]) -> Panel:
    """Create a startup panel showing configuration."""
    tree = Tree("🚀 [bold bright_white]Message Board Server[/bold bright_white]")
    for section, values in config.items():
        section_branch = tree.add(f"[bold cyan]{section}[/bold cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                section_branch.add(f"[yellow]{key}[/yellow]: [white]{escape(str(value))}[/white]")
        else:
            section_branch.add(f"[white]{escape(str(values))}[/white]")
    return Panel(
        tree,
        title="[bold white on blue]Server Configuration[/bold white on blue]",
        border_style="bright_blue",
        box=box.DOUBLE,
        padding=(1, 2),
    )


def display_startup_banner(settings: Settings, host: str, port: int) -> None:
    config: dict[str, Any] = {
        "environment": settings.environment,
        "http": {
            "host": host,
            "port": port,
            "mcp_path": settings.http.path if settings.http.mcp_enabled else "disabled",
            "static_root": settings.http.static_root or "disabled",
        },
        "storage": {
            "data_file": settings.board.data_file,
            "database": settings.database.url if settings.database.enabled else "disabled",
        },
        "endpoints": {
            "data": "GET /data.json",
            "save": "POST /api/save-data",
            "health": "GET /health",
        },
    }
    console.print(create_startup_panel(config))
