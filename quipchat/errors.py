from __future__ import annotations

from typing import Optional


class ChatError(Exception):
    """Base class for failures surfaced to the chat user."""


class NetworkFailure(ChatError):
    """No response came back from the endpoint."""


class EndpointFailure(ChatError):
    def __init__(self, detail: str, status: Optional[int] = None) -> None:
        super().__init__(detail)
        self.status = status


class PersistenceFailure(ChatError):
    """History could not be read from or written to the store."""


class NotFoundFailure(ChatError):
    def __init__(self, key: str) -> None:
        super().__init__(f"No saved conversation named {key!r}")
        self.key = key
