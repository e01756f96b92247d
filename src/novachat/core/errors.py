"""Domain exceptions raised by the chat service layer."""


class ChatError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(ChatError):
    """Raised when a chat request is missing required input.

    Raised before any history is read or any token is estimated.
    """


class UpstreamError(ChatError):
    """Raised when the remote model call fails.

    Covers transport errors, timeouts, non-2xx statuses and payloads
    that are not a JSON object.  Never retried automatically.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
