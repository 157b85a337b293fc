"""Encoding and decoding of positional message ids (``tab<key>-msg<index>``)."""

from __future__ import annotations

import re

from .errors import InvalidIdFormat

_PREFIX = "tab"
_SEPARATOR = "-msg"
_INT_RE = re.compile(r"^\s*[+-]?\d+\s*$", re.ASCII)


def encode_message_id(tab_key: str, index: int) -> str:
    return f"{_PREFIX}{tab_key}{_SEPARATOR}{index}"


def _parse_int(part: str) -> int | None:
    if not _INT_RE.match(part):
        return None
    return int(part)


def decode_message_id(message_id: str) -> tuple[str, int]:
    """Split a message id into its normalized tab key and positional index.

    The index may be negative; bounds are the caller's concern. A tab key of
    ``0`` is rejected along with anything that is not an integer.
    """
    raw = str(message_id or "")
    parts = raw.removeprefix(_PREFIX).split(_SEPARATOR)
    if len(parts) != 2:
        raise InvalidIdFormat(raw)
    tab_number = _parse_int(parts[0])
    index = _parse_int(parts[1])
    if not tab_number or index is None:
        raise InvalidIdFormat(raw)
    return str(tab_number), index
