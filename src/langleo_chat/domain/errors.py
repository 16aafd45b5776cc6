"""Error types raised by the chat pipeline."""

from typing import Optional, Union


class ChatError(Exception):
    """Base class for chat pipeline errors."""


class ValidationError(ChatError):
    """Caller input is malformed; the turn is not created."""


class ProviderError(ChatError):
    """The reply provider was unreachable, failed, or throttled the request."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[Union[int, str]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, status={self.status}, code={self.code!r})"


class EmptyResponse(ProviderError):
    """The provider answered with a well-formed envelope but no text."""


class TranslationError(ChatError):
    """A translation backend was unreachable or failed."""

    def __init__(self, message: str, backend: str = "unknown"):
        super().__init__(message)
        self.backend = backend


class PersistenceError(ChatError):
    """The conversation log could not store a record."""
