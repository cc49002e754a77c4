"""Error types shared by the API client and the session editor."""

from typing import Optional

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class EditorError(Exception):
    """Base class for session editor errors."""


class APIError(EditorError):
    """
    Raised when a backend request fails.

    Covers HTTP error statuses, timeouts, connection failures and
    responses that are not JSON.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        backend_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.backend_message = backend_message


def preferred_message(error: Exception, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Pick the message to show the coach for a failed backend call.

    Backend-supplied text wins, then the exception's own message,
    then the fallback.
    """
    backend_message = getattr(error, "backend_message", None)
    if backend_message:
        return backend_message
    own_message = str(error).strip()
    if own_message:
        return own_message
    return fallback
