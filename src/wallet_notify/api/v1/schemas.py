"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas — thin wrappers that define the HTTP
contract. They deliberately do NOT inherit from SQLAlchemy models; the
endpoint code maps between ORM objects and these schemas.
"""

from __future__ import annotations

import re
from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any, Literal

from pydantic import BaseModel, Field

from wallet_notify.engine.targets import All, Followers, Specific, TargetDescriptor, WhaleSubscribers
from wallet_notify.errors.definitions import ErrInvalidCategory, ErrInvalidTarget

_CATEGORY_RE = re.compile(r"^[a-z0-9_]{1,64}$")


def check_category(value: str) -> str:
    """Return *value* if it is a well-formed notification type.

    Raises:
        NotifyError: ``invalid-category``.
    """
    if not _CATEGORY_RE.match(value):
        raise ErrInvalidCategory
    return value


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Direct send / drain
# ---------------------------------------------------------------------------


class SendRequest(BaseModel):
    """POST /v1/notifications/send — deliver now to explicit wallets."""

    wallet_addresses: list[str] = Field(default_factory=list)
    title: str
    body: str
    type: str = "system"
    data: dict[str, Any] | None = None
    channel_id: str | None = None


class SendResponse(BaseModel):
    """Message counts for a direct send."""

    success: bool = True
    sent: int
    failed: int


class DrainResponse(BaseModel):
    """Intent counts for one drain."""

    success: bool = True
    processed: int
    failed: int


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


class TargetSchema(BaseModel):
    """Wire form of a target descriptor."""

    type: Literal["specific", "followers", "whale_subscribers", "all"]
    wallets: list[str] | None = None
    kol_wallet: str | None = None

    def to_descriptor(self) -> TargetDescriptor:
        """Build the engine descriptor.

        Raises:
            NotifyError: ``invalid-target`` when required fields are missing.
        """
        match self.type:
            case "specific":
                wallets = tuple(w for w in (self.wallets or []) if w)
                if not wallets:
                    raise ErrInvalidTarget
                return Specific(wallets=wallets)
            case "followers":
                if not self.kol_wallet:
                    raise ErrInvalidTarget
                return Followers(kol_wallet=self.kol_wallet)
            case "whale_subscribers":
                return WhaleSubscribers()
            case _:
                return All()


class IntentCreateRequest(BaseModel):
    """POST /v1/intents — queue a notification intent."""

    target: TargetSchema
    type: str
    title: str
    body: str
    data: dict[str, Any] | None = None
    scheduled_for: datetime | None = None


class IntentResponse(BaseModel):
    """Notification intent representation."""

    id: str
    target_type: str
    target_wallets: list[str] | None = None
    target_kol_wallet: str | None = None
    type: str
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    status: str
    processed_count: int = 0
    failed_count: int = 0
    error_message: str | None = None
    scheduled_for: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    """One delivered notification in a wallet's history."""

    id: str
    wallet_address: str
    type: str
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime | None = None


class UnreadCountResponse(BaseModel):
    """Unread notification count for a wallet."""

    wallet_address: str
    unread_count: int


class MarkAllReadResponse(BaseModel):
    """Number of notifications marked read."""

    success: bool = True
    updated: int
