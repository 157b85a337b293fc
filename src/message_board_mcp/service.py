"""Load, transform, save: one whole-document round trip per message operation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

import structlog

from . import repository
from .categories import CategoryTable
from .gateway import DocumentGateway
from .utils import utcnow

_logger = structlog.get_logger(__name__)


class MessageBoardService:
    """Message operations over a document gateway.

    There is no locking between operations: two concurrent writers each load,
    transform and save the whole document, and the last save wins.
    """

    def __init__(
        self,
        gateway: DocumentGateway,
        tabs: CategoryTable,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.gateway = gateway
        self.tabs = tabs
        self._clock = clock

    async def list_messages(
        self,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        document = await self.gateway.load()
        views = repository.list_messages(document, self.tabs, category=category, limit=limit, page=page)
        return [view.to_dict() for view in views]

    async def get_message(self, message_id: Optional[str]) -> dict[str, Any]:
        repository.require_message_id(message_id)
        document = await self.gateway.load()
        return repository.get_message(document, self.tabs, message_id).to_dict()

    async def create_message(
        self,
        title: Optional[str],
        content: Optional[str],
        category: Optional[str] = None,
    ) -> dict[str, Any]:
        repository.require_title_and_content(title, content)
        document = await self.gateway.load()
        next_document, created = repository.create_message(
            document, self.tabs, title, content, category=category, now=self._clock()
        )
        await self.gateway.save(next_document)
        _logger.info("message_created", message_id=created.id, tab=created.view.tab_id)
        return created.to_dict()

    async def update_message(
        self,
        message_id: Optional[str],
        content: Optional[str] = None,
        title: Optional[str] = None,
        category: Optional[str] = None,
    ) -> dict[str, Any]:
        repository.require_message_id(message_id)
        document = await self.gateway.load()
        next_document, update = repository.update_message(
            document, self.tabs, message_id, content=content, title=title, category=category, now=self._clock()
        )
        await self.gateway.save(next_document)
        _logger.info(
            "message_updated",
            message_id=update.requested_id,
            current_id=update.current_id,
            moved=update.current_id != update.requested_id,
        )
        return update.to_dict()

    async def delete_message(self, message_id: Optional[str]) -> dict[str, Any]:
        repository.require_message_id(message_id)
        document = await self.gateway.load()
        next_document, receipt = repository.delete_message(document, self.tabs, message_id, now=self._clock())
        await self.gateway.save(next_document)
        _logger.info("message_deleted", message_id=receipt.message_id, tab=receipt.tab_id)
        return receipt.to_dict()

    def categories(self) -> list[dict[str, Any]]:
        return repository.list_categories(self.tabs)
