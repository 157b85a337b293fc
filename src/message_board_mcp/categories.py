"""Static tab table: category names to tab keys and back."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Iterable, Optional

DEFAULT_TAB_NAMES: Final[tuple[tuple[str, str], ...]] = (
    ("1", "First Messages"),
    ("2", "Second Messages"),
    ("3", "Third Messages"),
    ("4", "Fourth Messages"),
    ("5", "Short First"),
    ("6", "Not Interested"),
    ("7", "Interested"),
    ("8", "Affiliate"),
    ("9", "Old Connections"),
    ("10", "New Task"),
)


@dataclass(slots=True, frozen=True)
class CategoryTable:
    """Ordered, closed mapping of tab key to display name."""

    pairs: tuple[tuple[str, str], ...] = DEFAULT_TAB_NAMES

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> CategoryTable:
        return cls(tuple((str(key).strip(), str(name).strip()) for key, name in pairs))

    @classmethod
    def from_setting(cls, raw: str) -> CategoryTable:
        """Parse ``"1=First Messages,2=Second Messages"``; empty input gives the default table."""
        pairs: list[tuple[str, str]] = []
        for chunk in (raw or "").split(","):
            if not chunk.strip():
                continue
            key, sep, name = chunk.partition("=")
            if not sep or not key.strip() or not name.strip():
                raise ValueError(f"Invalid tab entry '{chunk.strip()}'; expected '<key>=<name>'.")
            pairs.append((key, name))
        if not pairs:
            return cls()
        return cls.from_pairs(pairs)

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self.pairs]

    def name_to_key(self, name: Optional[str]) -> Optional[str]:
        """Return the tab key for ``name`` (case-insensitive), the last match winning."""
        if not name:
            return None
        wanted = name.lower()
        match: Optional[str] = None
        for key, label in self.pairs:
            if label.lower() == wanted:
                match = key
        return match

    def keys_for_name(self, name: str) -> list[str]:
        wanted = name.lower()
        return [key for key, label in self.pairs if label.lower() == wanted]

    def key_to_name(self, key: str) -> str:
        for candidate, label in self.pairs:
            if candidate == key:
                return label
        return f"Tab {key}"

    def entries(self) -> list[dict[str, Any]]:
        return [{"id": key, "name": label} for key, label in self.pairs]
