"""KolFollow model — follow relation between a wallet and a KOL wallet."""

from __future__ import annotations

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, TimestampMixin, new_id


class KolFollow(Base, TimestampMixin):
    """A follower wallet tracking a KOL wallet's trades."""

    __tablename__ = "kol_follows"
    __table_args__ = (
        UniqueConstraint("follower_wallet_address", "kol_wallet_address", name="uq_kol_follows_pair"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    follower_wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    kol_wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    notify_on_trade: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_on_new_position: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<KolFollow {self.follower_wallet_address[:12]} -> {self.kol_wallet_address[:12]}>"
