"""DeliveryRecord model — notification history per wallet."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from typing import Any

from sqlalchemy import JSON, Boolean, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, UTCDateTime, new_id


class DeliveryRecord(Base):
    """One notification shown in a wallet's history.

    ``delivery_key`` is the intent id (queued sends) or the direct-send id.
    The (wallet, delivery_key) uniqueness is what makes reconciliation
    idempotent.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("wallet_address", "delivery_key", name="uq_notifications_wallet_delivery"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    delivery_key: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="sent")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<DeliveryRecord wallet={self.wallet_address[:16]} type={self.type} read={self.is_read}>"
