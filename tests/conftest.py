import json
from pathlib import Path
from typing import Any, Callable

import pytest

from message_board_mcp.config import get_settings
from message_board_mcp.db import reset_database_state
from message_board_mcp.http import configure_logging


@pytest.fixture(scope="session", autouse=True)
def _session_logging():
    """Configure logging once against the session-wide stderr.

    configure_logging is idempotent and binds the current sys.stderr; without
    this, the first caller may be a CliRunner/capsys test whose temporary
    stream is closed afterwards, breaking logging in every later test.
    """
    configure_logging(get_settings())
    get_settings.cache_clear()
    yield


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point the board at a throwaway data file and database, and reset caches."""
    db_path: Path = tmp_path / "test.sqlite3"
    monkeypatch.setenv("APP_ENVIRONMENT", "test")
    monkeypatch.setenv("DOCUMENT_BACKEND", "local")
    monkeypatch.setenv("DATA_FILE", str(tmp_path / "data.json"))
    monkeypatch.setenv("DATABASE_ENABLED", "false")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("HTTP_HOST", "127.0.0.1")
    monkeypatch.setenv("HTTP_PORT", "5000")
    monkeypatch.setenv("HTTP_PATH", "/mcp/")
    monkeypatch.setenv("LOG_RICH_ENABLED", "false")
    monkeypatch.delenv("MESSAGE_BOARD_TABS", raising=False)
    monkeypatch.delenv("STATIC_ROOT", raising=False)
    get_settings.cache_clear()
    reset_database_state()
    try:
        yield tmp_path
    finally:
        get_settings.cache_clear()
        reset_database_state()


@pytest.fixture
def data_file(isolated_env) -> Path:
    return isolated_env / "data.json"


@pytest.fixture
def write_board(data_file) -> Callable[[dict[str, Any]], Path]:
    def _write(data: dict[str, Any]) -> Path:
        data_file.write_text(json.dumps(data), encoding="utf-8")
        return data_file

    return _write


@pytest.fixture
def read_board(data_file) -> Callable[[], dict[str, Any]]:
    def _read() -> dict[str, Any]:
        return json.loads(data_file.read_text(encoding="utf-8"))

    return _read
