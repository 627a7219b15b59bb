"""Pre-built error instances raised by services and API routes."""

from __future__ import annotations

from wallet_notify.errors.notify_errors import NotifyError

# -- Authentication --------------------------------------------------------

ErrUnauthorized = NotifyError("unauthorized", status_code=401, code="unauthorized")

# -- Validation ------------------------------------------------------------

ErrInvalidTarget = NotifyError(
    "invalid target descriptor", status_code=400, code="invalid-target"
)
ErrMissingRecipients = NotifyError(
    "at least one wallet address is required", status_code=400, code="missing-recipients"
)
ErrInvalidCategory = NotifyError(
    "notification type must be lowercase letters, digits and underscores",
    status_code=400,
    code="invalid-category",
)

# -- Not Found -------------------------------------------------------------

ErrIntentNotFound = NotifyError("notification intent not found", status_code=404, code="intent-not-found")
ErrNotificationNotFound = NotifyError(
    "notification not found", status_code=404, code="notification-not-found"
)

# -- State -----------------------------------------------------------------

ErrIntentNotFailed = NotifyError(
    "only failed or stalled intents can be re-queued", status_code=409, code="intent-not-failed"
)
