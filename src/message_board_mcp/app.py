"""Application factory for the Message Board MCP server."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Optional, TypeVar

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError

from .config import Settings, get_settings
from .db import dispose_engine
from .errors import MessageBoardError
from .gateway import DocumentGateway, build_gateway
from .rich_logger import tool_call_logger
from .service import MessageBoardService

SERVER_NAME = "modern-message-board-mcp"
SERVER_VERSION = "1.0.0"

T = TypeVar("T")


def _lifespan_factory(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastMCP):
        try:
            yield
        finally:
            if settings.database.enabled:
                await dispose_engine()

    return lifespan


def build_mcp_server(
    settings: Optional[Settings] = None,
    gateway: Optional[DocumentGateway] = None,
) -> FastMCP:
    """Create and configure the FastMCP server instance."""
    settings = settings or get_settings()
    service = MessageBoardService(gateway or build_gateway(settings), settings.board.tabs)
    lifespan = _lifespan_factory(settings)

    instructions = (
        "You are the Message Board server. Messages live in named categories (tabs); "
        "use get_categories to discover them. Message ids are positional "
        "(tab<key>-msg<index>): deleting or moving a message renumbers the later "
        "messages of its tab, so re-list before reusing ids."
    )

    mcp = FastMCP(name=SERVER_NAME, instructions=instructions, lifespan=lifespan, version=SERVER_VERSION)

    async def _invoke(tool_name: str, failure: str, kwargs: dict[str, Any], call: Callable[[], Awaitable[T]]) -> T:
        try:
            if settings.tools_log_enabled:
                with tool_call_logger(tool_name, kwargs) as logged:
                    logged.result = await call()
                    return logged.result
            return await call()
        except MessageBoardError as exc:
            raise ToolError(f"Error {failure}: {exc}") from exc

    @mcp.tool(name="get_messages", description="Get messages from the message board")
    async def get_messages(
        ctx: Context,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        List messages across all tabs, or within a single category.

        Parameters
        ----------
        category : Optional[str]
            Category (tab) name, matched case-insensitively. An unknown name
            returns an empty list rather than an error.
        limit : Optional[int]
            Page size. Without it every matching message is returned.
        page : Optional[int]
            1-based page number used together with `limit` (default 1).

        Returns
        -------
        dict
            { "messages": [ { id, title, content, tabId, category }, ... ] }
            ordered by tab key, then position within the tab.
        """
        kwargs = {"category": category, "limit": limit, "page": page}
        messages = await _invoke(
            "get_messages",
            "getting messages",
            kwargs,
            lambda: service.list_messages(category=category, limit=limit, page=page),
        )
        await ctx.info(f"Listed {len(messages)} messages.")
        return {"messages": messages}

    @mcp.tool(name="get_message", description="Get a specific message by ID")
    async def get_message(ctx: Context, messageId: str) -> dict[str, Any]:  # noqa: N803
        """
        Fetch one message by its positional id.

        Parameters
        ----------
        messageId : str
            Id of the form `tab<key>-msg<index>`, as returned by `get_messages`.

        Returns
        -------
        dict
            { id, title, content, tabId, category }

        Edge cases
        ----------
        - Malformed ids (or tab key 0) fail with "Invalid message ID format".
        - Ids past the end of their tab fail with "Message not found".
        """
        return await _invoke(
            "get_message",
            "getting message",
            {"messageId": messageId},
            lambda: service.get_message(messageId),
        )

    @mcp.tool(name="create_message", description="Create a new message")
    async def create_message(
        ctx: Context,
        title: str,
        content: str,
        category: Optional[str] = None,
        author: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Append a new message to a category.

        Semantics
        ---------
        - `category` picks the tab by name; missing or unknown names use the
          first tab ("First Messages").
        - Only `content` is stored. `title` is echoed back and `author` is
          accepted but not persisted.

        Returns
        -------
        dict
            { id, title, content, tabId, category, createdAt }
        """
        created = await _invoke(
            "create_message",
            "creating message",
            {"title": title, "content": content, "category": category, "author": author},
            lambda: service.create_message(title, content, category=category),
        )
        await ctx.info(f"Created message {created['id']} in '{created['category']}'.")
        return created

    @mcp.tool(name="update_message", description="Update an existing message")
    async def update_message(
        ctx: Context,
        messageId: str,  # noqa: N803
        title: Optional[str] = None,
        content: Optional[str] = None,
        category: Optional[str] = None,
        author: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Replace a message's content and/or move it to another category.

        Moving
        ------
        A category change removes the message from its tab and appends it to
        the destination tab. The response keeps `id` equal to the id you sent;
        `currentId`, `tabId` and `category` describe where the message lives now.
        Other ids in the source tab after the moved message shift down by one.

        Returns
        -------
        dict
            { id, currentId, content, tabId, category, updatedAt, [title] }
        """
        updated = await _invoke(
            "update_message",
            "updating message",
            {"messageId": messageId, "title": title, "content": content, "category": category, "author": author},
            lambda: service.update_message(messageId, content=content, title=title, category=category),
        )
        await ctx.info(f"Updated message {messageId} (now {updated['currentId']}).")
        return updated

    @mcp.tool(name="delete_message", description="Delete a message")
    async def delete_message(ctx: Context, messageId: str) -> dict[str, Any]:  # noqa: N803
        """
        Remove a message. Later messages in the same tab shift down by one.

        Returns
        -------
        dict
            { success, messageId, tabId, category, deletedAt }
        """
        receipt = await _invoke(
            "delete_message",
            "deleting message",
            {"messageId": messageId},
            lambda: service.delete_message(messageId),
        )
        await ctx.info(f"Deleted message {messageId}.")
        return receipt

    @mcp.tool(name="get_categories", description="Get all available categories")
    async def get_categories(ctx: Context) -> dict[str, Any]:
        """Return the configured categories: { "categories": [ { id, name }, ... ] }."""
        return {"categories": service.categories()}

    @mcp.resource("resource://categories", mime_type="application/json")
    def categories_resource() -> dict[str, Any]:
        """Configured categories, independent of the stored document."""
        return {"categories": service.categories()}

    @mcp.resource("resource://config/environment", mime_type="application/json")
    def environment_resource() -> dict[str, Any]:
        """
        Inspect where this server reads and writes the board document.

        Returns
        -------
        dict
            { "environment": str, "backend": str, "board_url": str, "data_file": str }
        """
        return {
            "environment": settings.environment,
            "backend": settings.board.backend,
            "board_url": settings.board.url,
            "data_file": settings.board.data_file,
        }

    return mcp
