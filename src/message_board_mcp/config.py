"""Application configuration loaded via python-decouple with typed helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Final

from decouple import AutoConfig, Config as DecoupleConfig, RepositoryEnv

from .categories import CategoryTable

_DOTENV_PATH: Final[Path] = Path(".env")


def _build_decouple_config() -> DecoupleConfig:
    if _DOTENV_PATH.exists():
        return DecoupleConfig(RepositoryEnv(str(_DOTENV_PATH)))
    return AutoConfig(search_path=str(Path.cwd()))


_decouple_config: Final[DecoupleConfig] = _build_decouple_config()


@dataclass(slots=True, frozen=True)
class HttpSettings:
    """HTTP transport related settings."""

    host: str
    port: int
    path: str
    mcp_enabled: bool
    request_log_enabled: bool
    static_root: str | None


@dataclass(slots=True, frozen=True)
class CorsSettings:
    """CORS configuration for the HTTP app."""

    enabled: bool
    origins: list[str]
    allow_methods: list[str]
    allow_headers: list[str]


@dataclass(slots=True, frozen=True)
class DatabaseSettings:
    """Database connectivity settings."""

    enabled: bool
    url: str
    echo: bool


@dataclass(slots=True, frozen=True)
class BoardSettings:
    """Where the board document lives and how the MCP tools reach it."""

    backend: str  # "remote" | "local"
    url: str
    timeout_seconds: float
    user_agent: str
    data_file: str
    tabs: CategoryTable


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level application settings."""

    environment: str
    http: HttpSettings
    cors: CorsSettings
    database: DatabaseSettings
    board: BoardSettings
    # Logging
    log_level: str
    log_json_enabled: bool
    log_rich_enabled: bool
    # Tools logging
    tools_log_enabled: bool


def _bool(value: str, *, default: bool) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y"}:
        return True
    if normalized in {"0", "false", "f", "no", "n"}:
        return False
    return default


def _int(value: str, *, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value: str, *, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _csv(name: str, default: str) -> list[str]:
    raw = _decouple_config(name, default=default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    environment = _decouple_config("APP_ENVIRONMENT", default="development")

    http_settings = HttpSettings(
        host=_decouple_config("HTTP_HOST", default="127.0.0.1"),
        port=_int(_decouple_config("HTTP_PORT", default="5000"), default=5000),
        path=_decouple_config("HTTP_PATH", default="/mcp/"),
        mcp_enabled=_bool(_decouple_config("HTTP_MCP_ENABLED", default="true"), default=True),
        request_log_enabled=_bool(_decouple_config("HTTP_REQUEST_LOG_ENABLED", default="false"), default=False),
        static_root=_decouple_config("STATIC_ROOT", default="") or None,
    )

    cors_settings = CorsSettings(
        enabled=_bool(_decouple_config("HTTP_CORS_ENABLED", default="true"), default=True),
        origins=_csv("HTTP_CORS_ORIGINS", default="*"),
        allow_methods=_csv("HTTP_CORS_ALLOW_METHODS", default="GET,POST,PUT,OPTIONS"),
        allow_headers=_csv("HTTP_CORS_ALLOW_HEADERS", default="Content-Type"),
    )

    database_settings = DatabaseSettings(
        enabled=_bool(_decouple_config("DATABASE_ENABLED", default="false"), default=False),
        url=_decouple_config("DATABASE_URL", default="sqlite+aiosqlite:///./message_board.sqlite3"),
        echo=_bool(_decouple_config("DATABASE_ECHO", default="false"), default=False),
    )

    board_settings = BoardSettings(
        backend=_decouple_config("DOCUMENT_BACKEND", default="remote").strip().lower(),
        url=_decouple_config("MESSAGE_BOARD_URL", default="https://modern-message-board-lg.replit.app").rstrip("/"),
        timeout_seconds=_float(_decouple_config("MESSAGE_BOARD_TIMEOUT_SECONDS", default="30"), default=30.0),
        user_agent=_decouple_config("MESSAGE_BOARD_USER_AGENT", default="Modern-Message-Board-MCP/1.0.0"),
        data_file=_decouple_config("DATA_FILE", default="./data.json"),
        tabs=CategoryTable.from_setting(_decouple_config("MESSAGE_BOARD_TABS", default="")),
    )

    return Settings(
        environment=environment,
        http=http_settings,
        cors=cors_settings,
        database=database_settings,
        board=board_settings,
        log_level=_decouple_config("LOG_LEVEL", default="INFO"),
        log_json_enabled=_bool(_decouple_config("LOG_JSON_ENABLED", default="false"), default=False),
        log_rich_enabled=_bool(_decouple_config("LOG_RICH_ENABLED", default="true"), default=True),
        tools_log_enabled=_bool(_decouple_config("TOOLS_LOG_ENABLED", default="false"), default=False),
    )


def clear_settings_cache() -> None:
    get_settings.cache_clear()
