"""In-memory model of the persisted message board document.

The JSON shape on disk and on the wire is::

    {"1": ["first message", ...], "2": [...], ..., "lastSaved": "10/17/2026, 3:04:05 PM"}

Tab values are resolved at the boundary into a tagged union: a proper
``TabSequence`` or a ``LegacyScalar`` left over from older writers. Legacy
values survive a load/save round trip untouched until something writes to
that tab, at which point they are coerced into a one-element sequence.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from .categories import CategoryTable
from .utils import locale_timestamp

LAST_SAVED_KEY = "lastSaved"

_TAB_KEY_RE = re.compile(r"^\d+$")


def is_tab_key(key: str) -> bool:
    return bool(_TAB_KEY_RE.match(key))


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, separators=(",", ":"))


@dataclass(slots=True, frozen=True)
class TabSequence:
    items: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.items)


@dataclass(slots=True, frozen=True)
class LegacyScalar:
    value: Any

    @property
    def is_empty(self) -> bool:
        return self.value in (None, False, "", 0)

    def coerce(self) -> TabSequence:
        return TabSequence((_as_text(self.value),))


TabValue = Union[TabSequence, LegacyScalar]


def _parse_tab_value(raw: Any) -> TabValue:
    if isinstance(raw, list):
        return TabSequence(tuple(_as_text(item) for item in raw))
    return LegacyScalar(raw)


def _numeric_order(key: str) -> tuple[int, str]:
    return int(key), key


@dataclass(slots=True, frozen=True)
class Document:
    """Immutable snapshot of the board. Every change returns a new instance."""

    tabs: Mapping[str, TabValue] = field(default_factory=dict)
    last_saved: Optional[Any] = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Document:
        if not isinstance(data, Mapping):
            raise TypeError("Document must be a JSON object")
        tabs: dict[str, TabValue] = {}
        extras: dict[str, Any] = {}
        last_saved: Optional[Any] = None
        for key, raw in data.items():
            if key == LAST_SAVED_KEY:
                last_saved = raw
            elif is_tab_key(key):
                tabs[key] = _parse_tab_value(raw)
            else:
                extras[key] = raw
        return cls(tabs=tabs, last_saved=last_saved, extras=extras)

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key in self.tab_keys():
            value = self.tabs[key]
            payload[key] = list(value.items) if isinstance(value, TabSequence) else value.value
        payload.update(self.extras)
        if self.last_saved is not None:
            payload[LAST_SAVED_KEY] = self.last_saved
        return payload

    def tab_keys(self) -> list[str]:
        """Tab keys in ascending numeric order."""
        return sorted(self.tabs, key=_numeric_order)

    def sequence(self, key: str) -> Optional[tuple[str, ...]]:
        """Return the messages of a tab, or ``None`` if the tab is absent or still a legacy scalar."""
        value = self.tabs.get(key)
        if isinstance(value, TabSequence):
            return value.items
        return None

    def writable_sequence(self, key: str) -> tuple[str, ...]:
        """Return a tab's messages for writing: absent tabs are empty and legacy scalars are coerced."""
        value = self.tabs.get(key)
        if value is None or (isinstance(value, LegacyScalar) and value.is_empty):
            return ()
        if isinstance(value, LegacyScalar):
            return value.coerce().items
        return value.items

    def with_tab(self, key: str, items: tuple[str, ...]) -> Document:
        tabs = dict(self.tabs)
        tabs[key] = TabSequence(tuple(items))
        return Document(tabs=tabs, last_saved=self.last_saved, extras=dict(self.extras))

    def with_last_saved(self, stamp: str) -> Document:
        return Document(tabs=dict(self.tabs), last_saved=stamp, extras=dict(self.extras))

    def message_count(self) -> int:
        return sum(len(value) for value in self.tabs.values() if isinstance(value, TabSequence))


def default_document(tabs: CategoryTable, now: Optional[datetime] = None) -> Document:
    """Fresh board: one empty tab per configured category and a ``lastSaved`` stamp."""
    return Document(
        tabs={key: TabSequence() for key in tabs.keys},
        last_saved=locale_timestamp(now),
    )
