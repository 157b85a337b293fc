"""Document gateways: how the message tools load and save the whole board document."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx
import structlog

from .config import Settings
from .document import Document
from .errors import PersistenceFailure
from .storage import DocumentStore, build_document_store

_logger = structlog.get_logger(__name__)

DATA_PATH = "/data.json"
SAVE_PATH = "/api/save-data"


class DocumentGateway(Protocol):
    async def load(self) -> Document: ...

    async def save(self, document: Document) -> None: ...


def _parse_document(data: Any) -> Document:
    try:
        return Document.from_json(data)
    except TypeError as exc:
        raise PersistenceFailure(f"API request failed: {exc}") from exc


class RemoteDocumentGateway:
    """Talks to a board HTTP server: ``GET /data.json`` and ``POST /api/save-data``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        user_agent: str = "Modern-Message-Board-MCP/1.0.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json", "User-Agent": user_agent}
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def load(self) -> Document:
        try:
            async with self._client() as client:
                response = await client.get(DATA_PATH)
                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                if "application/json" not in content_type:
                    raise PersistenceFailure(f"API request failed: expected JSON, got '{content_type or 'unknown'}'")
                data = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise PersistenceFailure(f"API request failed: HTTP {status}: {exc.response.reason_phrase}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise PersistenceFailure(f"API request failed: {exc}") from exc
        return _parse_document(data)

    async def save(self, document: Document) -> None:
        try:
            async with self._client() as client:
                response = await client.post(SAVE_PATH, json=document.to_json())
        except httpx.HTTPError as exc:
            raise PersistenceFailure(f"Failed to save: {exc}") from exc
        if response.is_error:
            raise PersistenceFailure(f"Failed to save: HTTP {response.status_code}")
        _logger.debug("document_saved", backend="remote", url=self.base_url)


class LocalDocumentGateway:
    """Reads and writes the board through an in-process ``DocumentStore``."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def load(self) -> Document:
        return _parse_document(await self.store.load())

    async def save(self, document: Document) -> None:
        await self.store.save(document.to_json())


def build_gateway(settings: Settings, store: Optional[DocumentStore] = None) -> DocumentGateway:
    board = settings.board
    if store is not None or board.backend == "local":
        return LocalDocumentGateway(store or build_document_store(settings))
    if board.backend != "remote":
        raise ValueError(f"Unknown DOCUMENT_BACKEND '{board.backend}'; expected 'remote' or 'local'.")
    return RemoteDocumentGateway(board.url, timeout=board.timeout_seconds, user_agent=board.user_agent)
