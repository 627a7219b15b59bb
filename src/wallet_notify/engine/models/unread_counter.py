"""UnreadCounter model — denormalized unread count per wallet."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, TimestampMixin


class UnreadCounter(Base, TimestampMixin):
    """Unread notification count, maintained alongside ``notifications``."""

    __tablename__ = "unread_counters"

    wallet_address: Mapped[str] = mapped_column(String(128), primary_key=True)
    unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
