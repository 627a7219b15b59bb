"""Push transport errors."""

from __future__ import annotations

from wallet_notify.errors.notify_errors import NotifyError


class PushTransportError(NotifyError):
    """A whole push request failed (network, timeout, non-2xx, bad body)."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="push-transport-error")
