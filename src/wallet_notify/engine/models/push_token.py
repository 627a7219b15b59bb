"""PushToken model — a delivery endpoint for one wallet."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, TimestampMixin, UTCDateTime, new_id


class PushToken(Base, TimestampMixin):
    """An Expo push token registered for a wallet.

    The same token may be registered for several wallets (one device, many
    wallets). Deactivated tokens never resolve until re-registered.
    """

    __tablename__ = "push_tokens"
    __table_args__ = (
        UniqueConstraint("wallet_address", "expo_push_token", name="uq_push_tokens_wallet_token"),
        Index("ix_push_tokens_token_lookup", "expo_push_token"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    expo_push_token: Mapped[str] = mapped_column(Text, nullable=False)
    platform: Mapped[str | None] = mapped_column(String(16), nullable=True, comment="ios | android")
    device_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def __repr__(self) -> str:
        return f"<PushToken wallet={self.wallet_address[:16]} active={self.is_active}>"
