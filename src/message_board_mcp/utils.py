"""Utility helpers for the message board service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

TITLE_LENGTH = 50
TITLE_ELLIPSIS = "..."


def derive_title(content: str) -> str:
    """Return the first 50 characters of ``content``, marking truncation with an ellipsis."""
    if len(content) > TITLE_LENGTH:
        return content[:TITLE_LENGTH] + TITLE_ELLIPSIS
    return content


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: Optional[datetime] = None) -> str:
    return (dt or utcnow()).astimezone(timezone.utc).isoformat()


def locale_timestamp(dt: Optional[datetime] = None) -> str:
    """Format a local time the way an en-US browser renders ``toLocaleString()``.

    Example: ``10/17/2026, 3:04:05 PM``.
    """
    local = (dt or utcnow()).astimezone()
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
