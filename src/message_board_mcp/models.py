"""SQLModel table backing the database document store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

BOARD_DOCUMENT_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoardDocument(SQLModel, table=True):
    __tablename__ = "board_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    body_json: str = Field(default="{}")
    updated_ts: datetime = Field(default_factory=_utcnow)
