"""Message board document server and MCP tools."""

__version__ = "1.0.0"
