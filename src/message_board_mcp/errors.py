"""Exception hierarchy for message board operations."""

from __future__ import annotations


class MessageBoardError(Exception):
    """Base class for every failure raised by the message board layers."""


class InvalidIdFormat(MessageBoardError):
    """A message id could not be decoded into a (tab, index) pair."""

    def __init__(self, message_id: str) -> None:
        super().__init__(f"Invalid message ID format: {message_id}")
        self.message_id = message_id


class MessageNotFound(MessageBoardError):
    """A well-formed id points at a tab or index that does not exist."""

    def __init__(self, message_id: str) -> None:
        super().__init__(f"Message not found: {message_id}")
        self.message_id = message_id


class MissingRequiredField(MessageBoardError):
    """A required argument was absent or empty."""


class PersistenceFailure(MessageBoardError):
    """Loading or saving the document failed."""
