"""Pure create/read/update/delete transforms over a board ``Document``.

Nothing here performs I/O or mutates its input: mutations return the next
``Document`` together with a result object, so a failure can never leave a
half-applied change behind. Message ids are positional (see ``ids``); removing
a message from a tab shifts every later message in that tab down by one and
makes their previously issued ids stale.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from .categories import CategoryTable
from .document import Document
from .errors import MessageNotFound, MissingRequiredField
from .ids import decode_message_id, encode_message_id
from .utils import derive_title, iso_timestamp, locale_timestamp, utcnow

DEFAULT_TAB_KEY = "1"


@dataclass(slots=True, frozen=True)
class MessageView:
    id: str
    title: str
    content: str
    tab_id: str
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tabId": self.tab_id,
            "category": self.category,
        }


@dataclass(slots=True, frozen=True)
class CreatedMessage:
    view: MessageView
    created_at: str

    @property
    def id(self) -> str:
        return self.view.id

    def to_dict(self) -> dict[str, Any]:
        return {**self.view.to_dict(), "createdAt": self.created_at}


@dataclass(slots=True, frozen=True)
class MessageUpdate:
    requested_id: str
    current_id: str
    content: str
    tab_id: str
    category: str
    updated_at: str
    title: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.requested_id,
            "currentId": self.current_id,
            "content": self.content,
            "tabId": self.tab_id,
            "category": self.category,
            "updatedAt": self.updated_at,
        }
        if self.title:
            data["title"] = self.title
        return data


@dataclass(slots=True, frozen=True)
class DeletionReceipt:
    message_id: str
    tab_id: str
    category: str
    deleted_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "messageId": self.message_id,
            "tabId": self.tab_id,
            "category": self.category,
            "deletedAt": self.deleted_at,
        }


def _view(tabs: CategoryTable, message_id: str, tab_key: str, content: str) -> MessageView:
    return MessageView(
        id=message_id,
        title=derive_title(content),
        content=content,
        tab_id=tab_key,
        category=tabs.key_to_name(tab_key),
    )


def require_message_id(message_id: Optional[str]) -> str:
    if not message_id:
        raise MissingRequiredField("messageId is required")
    return message_id


def require_title_and_content(title: Optional[str], content: Optional[str]) -> tuple[str, str]:
    if not title or not content:
        raise MissingRequiredField("title and content are required")
    return title, content


def _locate(document: Document, message_id: Optional[str]) -> tuple[str, int, tuple[str, ...]]:
    message_id = require_message_id(message_id)
    tab_key, index = decode_message_id(message_id)
    items = document.sequence(tab_key)
    if items is None or not 0 <= index < len(items):
        raise MessageNotFound(message_id)
    return tab_key, index, items


def list_messages(
    document: Document,
    tabs: CategoryTable,
    category: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> list[MessageView]:
    """Flatten tabs into message views, optionally filtered by category and paginated.

    Without a category every tab of the document is included in ascending
    numeric key order. An unknown category yields an empty list.
    """
    if category:
        target_keys = tabs.keys_for_name(category)
    else:
        target_keys = document.tab_keys()

    messages: list[MessageView] = []
    for tab_key in target_keys:
        items = document.sequence(tab_key)
        if items is None:
            continue
        for index, content in enumerate(items):
            messages.append(_view(tabs, encode_message_id(tab_key, index), tab_key, content))

    if limit and limit > 0:
        start = (max(page or 1, 1) - 1) * limit
        return messages[start : start + limit]
    return messages


def get_message(document: Document, tabs: CategoryTable, message_id: Optional[str]) -> MessageView:
    tab_key, index, items = _locate(document, message_id)
    return _view(tabs, str(message_id), tab_key, items[index])


def create_message(
    document: Document,
    tabs: CategoryTable,
    title: Optional[str],
    content: Optional[str],
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Document, CreatedMessage]:
    """Append ``content`` to the tab named by ``category`` (tab ``1`` when absent or unknown).

    ``lastSaved`` is left untouched on create.
    """
    title, content = require_title_and_content(title, content)
    tab_key = tabs.name_to_key(category) or DEFAULT_TAB_KEY
    items = document.writable_sequence(tab_key) + (content,)
    next_document = document.with_tab(tab_key, items)
    view = MessageView(
        id=encode_message_id(tab_key, len(items) - 1),
        title=title,
        content=content,
        tab_id=tab_key,
        category=tabs.key_to_name(tab_key),
    )
    return next_document, CreatedMessage(view=view, created_at=iso_timestamp(now))


def update_message(
    document: Document,
    tabs: CategoryTable,
    message_id: Optional[str],
    content: Optional[str] = None,
    title: Optional[str] = None,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Document, MessageUpdate]:
    """Replace content in place and/or move the message to another tab.

    A move removes the message from its source tab and appends it to the
    destination, so the returned ``current_id`` differs from the requested id.
    """
    tab_key, index, items = _locate(document, message_id)
    moment = now or utcnow()
    updated = list(items)
    if content:
        updated[index] = content
    body = updated[index]
    next_document = document.with_tab(tab_key, tuple(updated))
    current_tab, current_index = tab_key, index

    if category:
        destination = tabs.name_to_key(category) or tab_key
        if destination != tab_key:
            del updated[index]
            next_document = next_document.with_tab(tab_key, tuple(updated))
            moved = next_document.writable_sequence(destination) + (body,)
            next_document = next_document.with_tab(destination, moved)
            current_tab, current_index = destination, len(moved) - 1

    next_document = next_document.with_last_saved(locale_timestamp(moment))
    result = MessageUpdate(
        requested_id=str(message_id),
        current_id=encode_message_id(current_tab, current_index),
        content=body,
        tab_id=current_tab,
        category=tabs.key_to_name(current_tab),
        updated_at=iso_timestamp(moment),
        title=title or None,
    )
    return next_document, result


def delete_message(
    document: Document,
    tabs: CategoryTable,
    message_id: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[Document, DeletionReceipt]:
    tab_key, index, items = _locate(document, message_id)
    moment = now or utcnow()
    remaining = items[:index] + items[index + 1 :]
    next_document = document.with_tab(tab_key, remaining).with_last_saved(locale_timestamp(moment))
    receipt = DeletionReceipt(
        message_id=str(message_id),
        tab_id=tab_key,
        category=tabs.key_to_name(tab_key),
        deleted_at=iso_timestamp(moment),
    )
    return next_document, receipt


def list_categories(tabs: CategoryTable) -> list[dict[str, Any]]:
    return tabs.entries()
