"""Server-side persistence for the board document: JSON file, database, or both."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Protocol

import structlog
from filelock import SoftFileLock, Timeout
from sqlalchemy.exc import SQLAlchemyError

from .categories import CategoryTable
from .config import Settings
from .db import ensure_schema, get_session
from .document import default_document
from .errors import PersistenceFailure
from .models import BOARD_DOCUMENT_ID, BoardDocument

_logger = structlog.get_logger(__name__)


class DocumentStore(Protocol):
    """Whole-document load and save of the raw JSON object."""

    async def load(self) -> dict[str, Any]: ...

    async def save(self, data: Mapping[str, Any]) -> None: ...


class AsyncFileLock:
    def __init__(self, path: Path, *, timeout_seconds: float = 60.0) -> None:
        self._lock = SoftFileLock(str(path))
        self._timeout = float(timeout_seconds)

    async def __aenter__(self) -> None:
        await _to_thread(self._lock.acquire, timeout=self._timeout)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Only release if held
        with contextlib.suppress(Exception):
            await _to_thread(self._lock.release)


async def _to_thread(func, /, *args, **kwargs):
    return await asyncio.to_thread(func, *args, **kwargs)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class FileDocumentStore:
    """JSON file store. Writes go to a temp file renamed over the target under a file lock.

    Writers in this process queue on an ``asyncio.Lock`` before taking the file lock.
    """

    def __init__(self, path: str | Path, tabs: CategoryTable, *, lock_timeout_seconds: float = 10.0) -> None:
        self.path = Path(path).expanduser().resolve()
        self.tabs = tabs
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._lock_timeout = lock_timeout_seconds
        self._write_lock = asyncio.Lock()

    async def load(self) -> dict[str, Any]:
        if not await _to_thread(self.path.exists):
            _logger.info("data_file_missing", path=str(self.path))
            return default_document(self.tabs).to_json()
        try:
            raw = await _to_thread(self.path.read_text, encoding="utf-8")
            data = json.loads(raw)
        except (OSError, ValueError) as exc:
            _logger.error("data_file_unreadable", path=str(self.path), error=str(exc))
            return default_document(self.tabs).to_json()
        if not isinstance(data, dict):
            _logger.error("data_file_not_object", path=str(self.path))
            return default_document(self.tabs).to_json()
        return data

    async def save(self, data: Mapping[str, Any]) -> None:
        text = json.dumps(data, indent=4, ensure_ascii=False)
        try:
            async with self._write_lock:
                await _to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
                async with AsyncFileLock(self.lock_path, timeout_seconds=self._lock_timeout):
                    await _to_thread(_write_atomic, self.path, text)
        except (OSError, Timeout) as exc:
            raise PersistenceFailure(f"Failed to write {self.path}: {exc}") from exc
        _logger.info("data_saved", backend="file", path=str(self.path))


class DatabaseDocumentStore:
    """Single-row document table accessed through the async SQLAlchemy engine."""

    def __init__(self, settings: Settings, tabs: CategoryTable) -> None:
        self.settings = settings
        self.tabs = tabs

    async def load(self) -> dict[str, Any]:
        try:
            await ensure_schema(self.settings)
            async with get_session() as session:
                row = await session.get(BoardDocument, BOARD_DOCUMENT_ID)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Database load failed: {exc}") from exc
        if row is None:
            return default_document(self.tabs).to_json()
        try:
            data = json.loads(row.body_json)
        except ValueError as exc:
            raise PersistenceFailure(f"Stored document is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceFailure("Stored document is not a JSON object")
        return data

    async def save(self, data: Mapping[str, Any]) -> None:
        body = json.dumps(data, ensure_ascii=False)
        try:
            await ensure_schema(self.settings)
            async with get_session() as session:
                row = await session.get(BoardDocument, BOARD_DOCUMENT_ID)
                if row is None:
                    row = BoardDocument(id=BOARD_DOCUMENT_ID)
                row.body_json = body
                row.updated_ts = datetime.now(timezone.utc)
                session.add(row)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Database save failed: {exc}") from exc
        _logger.info("data_saved", backend="database")


class FallbackDocumentStore:
    """Use ``primary`` and fall back to ``fallback`` whenever the primary fails."""

    def __init__(self, primary: DocumentStore, fallback: DocumentStore) -> None:
        self.primary = primary
        self.fallback = fallback

    async def load(self) -> dict[str, Any]:
        try:
            return await self.primary.load()
        except Exception as exc:
            _logger.warning("primary_load_failed", error=str(exc), fallback=type(self.fallback).__name__)
            return await self.fallback.load()

    async def save(self, data: Mapping[str, Any]) -> None:
        try:
            await self.primary.save(data)
        except Exception as exc:
            _logger.warning("primary_save_failed", error=str(exc), fallback=type(self.fallback).__name__)
            await self.fallback.save(data)


def build_document_store(settings: Settings) -> DocumentStore:
    tabs = settings.board.tabs
    file_store = FileDocumentStore(settings.board.data_file, tabs)
    if settings.database.enabled:
        return FallbackDocumentStore(DatabaseDocumentStore(settings, tabs), file_store)
    return file_store
