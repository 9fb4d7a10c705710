"""Error taxonomy shared by the chat routes, stores and services."""
from __future__ import annotations


class ChatError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def __str__(self) -> str:
        return self.message


class ValidationError(ChatError):
    """A request field is missing or malformed."""

    status_code = 400


class NotFound(ChatError):
    status_code = 404


class CredentialMissing(ChatError):
    """No API key could be resolved from any configuration source."""


class UpstreamError(ChatError):
    """The completion provider rejected or failed a call."""

    def __init__(self, message: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StoreError(ChatError):
    """A persistence operation failed."""
