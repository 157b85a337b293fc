"""HTTP document server built on FastAPI, optionally hosting the MCP endpoint."""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from fastmcp import FastMCP
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from .app import build_mcp_server
from .config import Settings, get_settings
from .gateway import LocalDocumentGateway
from .storage import DocumentStore, build_document_store

__all__ = ["build_http_app", "configure_logging", "main"]

_LOGGING_CONFIGURED = False


def configure_logging(settings: Settings) -> None:
    """Initialize structlog and stdlib logging formatting."""
    # Idempotent setup
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.log_json_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event", "path", "status"]))
    # stdout is reserved for the stdio MCP transport
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=level, stream=sys.stderr)
    _LOGGING_CONFIGURED = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, rich_panels: bool = True) -> None:
        super().__init__(app)
        self.rich_panels = rich_panels

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        response = await call_next(request)
        dur_ms = int((time.time() - start) * 1000)
        method = request.method
        path = request.url.path
        status_code = getattr(response, "status_code", 0)
        client = request.client.host if request.client else "-"
        structlog.get_logger("http").info(
            "request",
            method=method,
            path=path,
            status=status_code,
            duration_ms=dur_ms,
            client_ip=client,
        )
        if not self.rich_panels:
            return response
        title = Text.assemble(
            (method, "bold blue"),
            ("  "),
            (path, "bold white"),
            ("  "),
            (f"{status_code}", "bold green" if 200 <= status_code < 400 else "bold red"),
            ("  "),
            (f"{dur_ms}ms", "bold yellow"),
        )
        body = Text.assemble(("client: ", "cyan"), (client, "white"))
        with contextlib.suppress(Exception):
            Console(stderr=True, width=100).print(Panel(body, title=title, border_style="dim"))
        return response


def _health_payload() -> dict[str, Any]:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


def build_http_app(
    settings: Settings,
    store: Optional[DocumentStore] = None,
    server: Optional[FastMCP] = None,
) -> FastAPI:
    """Build the document server; the MCP endpoint shares ``store`` through a local gateway."""
    configure_logging(settings)
    log = structlog.get_logger("http")
    store = store or build_document_store(settings)

    mcp_http_app = None
    if settings.http.mcp_enabled:
        if server is None:
            server = build_mcp_server(settings, gateway=LocalDocumentGateway(store))
        mcp_http_app = server.http_app(path="/")

    @asynccontextmanager
    async def lifespan_context(app: FastAPI):
        if mcp_http_app is None:
            yield
            return
        async with mcp_http_app.lifespan(app):
            yield

    fastapi_app = FastAPI(title="Message Board", lifespan=lifespan_context)
    fastapi_app.state.document_store = store

    if settings.http.request_log_enabled:
        fastapi_app.add_middleware(RequestLoggingMiddleware, rich_panels=settings.log_rich_enabled)

    # Add CORS last so it can handle preflight and attach headers to errors
    if settings.cors.enabled:
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins or ["*"],
            allow_methods=settings.cors.allow_methods or ["*"],
            allow_headers=settings.cors.allow_headers or ["*"],
        )

    @fastapi_app.api_route("/health", methods=["GET", "HEAD"])
    async def health(request: Request) -> Response:
        if request.method == "HEAD":
            return Response(status_code=200, media_type="application/json")
        return JSONResponse(_health_payload())

    @fastapi_app.get("/health/liveness")
    async def liveness() -> JSONResponse:
        return JSONResponse({"status": "alive"})

    @fastapi_app.get("/health/readiness")
    async def readiness() -> Response:
        try:
            await store.load()
        except Exception as exc:
            log.error("readiness_error", error=str(exc))
            return PlainTextResponse(str(exc), status_code=503)
        return JSONResponse({"status": "ready"})

    @fastapi_app.get("/data.json")
    async def get_data() -> Response:
        try:
            data = await store.load()
        except Exception as exc:
            log.error("data_load_failed", error=str(exc))
            return PlainTextResponse("Error loading data", status_code=500)
        return JSONResponse(data)

    @fastapi_app.post("/api/save-data")
    async def save_data(request: Request) -> Response:
        body = await request.body()
        if not body:
            return PlainTextResponse("No data provided", status_code=400)
        try:
            data = json.loads(body)
        except ValueError as exc:
            return PlainTextResponse(f"Invalid JSON: {exc}", status_code=400)
        if not isinstance(data, dict):
            return PlainTextResponse("Data must be a JSON object", status_code=400)
        try:
            await store.save(data)
        except Exception as exc:
            log.error("data_save_failed", error=str(exc))
            return PlainTextResponse(f"Internal server error: {exc}", status_code=500)
        return JSONResponse({"success": True, "message": "Data saved successfully"})

    if mcp_http_app is not None:
        fastapi_app.mount(settings.http.path.rstrip("/") or "/mcp", mcp_http_app)

    # Root static mount must stay last
    static_root = settings.http.static_root
    if static_root:
        static_path = Path(static_root).expanduser().resolve()
        if static_path.is_dir():
            fastapi_app.mount("/", StaticFiles(directory=str(static_path), html=True), name="static")
        else:
            log.warning("static_root_missing", path=str(static_path))

    return fastapi_app


def main() -> None:
    """Run the HTTP transport using settings-specified host/port."""

    parser = argparse.ArgumentParser(description="Run the Message Board HTTP server")
    parser.add_argument("--host", help="Override HTTP host", default=None)
    parser.add_argument("--port", help="Override HTTP port", type=int, default=None)
    parser.add_argument("--log-level", help="Uvicorn log level", default="info")
    args = parser.parse_args()

    settings = get_settings()
    host = args.host or settings.http.host
    port = args.port or settings.http.port

    app = build_http_app(settings)
    uvicorn.run(app, host=host, port=port, log_level=args.log_level)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
