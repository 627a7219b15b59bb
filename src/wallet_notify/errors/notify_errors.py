"""NotifyError — base exception class for all wallet-notify errors."""

from __future__ import annotations


class NotifyError(Exception):
    """Base error for all notification pipeline operations.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status the API answers with.
        code: Stable machine-readable code (``intent-not-found``, ...).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "notify-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict[str, str]:
        """The API error body."""
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, status_code={self.status_code})"


class LookupTimeoutError(NotifyError):
    """A preference or directory lookup did not answer in time.

    Raised instead of waiting indefinitely on the datastore; the drainer
    turns it into transient failures for the affected endpoints.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=504, code="lookup-timeout")
