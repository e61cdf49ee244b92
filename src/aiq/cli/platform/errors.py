"""Exception hierarchy for the AIQ platform layer."""

from __future__ import annotations

NOT_AUTHORIZED = "Client doesn't seem to be authorized."
SESSION_EXPIRED = "Session is expired. Please login again. See 'aiq login -h'."
API_LEVEL_RANGE = "Api level should be numeric and be in the range 1-65535."


class AIQError(Exception):
    """Base error carrying a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputValidationError(AIQError):
    """Invalid user input, reported before any network call."""


class AuthorizationError(AIQError):
    """No access token is stored."""

    def __init__(self, message: str = NOT_AUTHORIZED) -> None:
        super().__init__(message)


class RemoteError(AIQError):
    """Failure reported by the platform or by the transport.

    ``code`` is the short symbolic error sent by the server (``not_found``,
    ``invalid_token``...), ``"aborted"`` for a response cut mid-flight, or
    ``None`` for transport failures.
    """

    def __init__(
        self, code: str | None, message: str | None = None, status_code: int = 0
    ) -> None:
        self.code = code
        self.status_code = status_code
        super().__init__(message or code or "Network request failed")


class StorageError(AIQError):
    """Filesystem or packaging failure."""


class SizeLimitError(StorageError):
    """Packaged archive exceeds the upload ceiling."""
