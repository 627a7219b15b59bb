"""NotificationIntent model — the queued unit of fan-out work."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from typing import Any

from sqlalchemy import JSON, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, UTCDateTime, new_id, utcnow


class IntentStatus(enum.StrEnum):
    """Intent lifecycle: pending → processing → completed | failed."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TargetType(enum.StrEnum):
    """Stored discriminator of the target descriptor."""

    SPECIFIC = "specific"
    FOLLOWERS = "followers"
    WHALE_SUBSCRIBERS = "whale_subscribers"
    ALL = "all"


class NotificationIntent(Base):
    """A queued request to notify some computed set of wallets.

    Rows are created ``pending`` by upstream producers and moved through the
    state machine exclusively by the queue drainer.
    """

    __tablename__ = "notification_queue"
    __table_args__ = (Index("ix_notification_queue_status_scheduled", "status", "scheduled_for"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    target_type: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="specific | followers | whale_subscribers | all"
    )
    target_wallets: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=None)
    target_kol_wallet: Mapped[str | None] = mapped_column(String(128), nullable=True, default=None)

    notification_type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=IntentStatus.PENDING.value
    )
    processed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    scheduled_for: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    @property
    def is_terminal(self) -> bool:
        """Whether the intent reached completed or failed."""
        return self.status in (IntentStatus.COMPLETED, IntentStatus.FAILED)

    def __repr__(self) -> str:
        return f"<NotificationIntent id={self.id[:16]} type={self.notification_type} status={self.status}>"
