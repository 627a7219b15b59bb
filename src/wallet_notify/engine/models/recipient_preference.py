"""RecipientPreference model — per-wallet notification settings."""

from __future__ import annotations

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from wallet_notify.engine.models.base import Base, TimestampMixin, new_id


class RecipientPreference(Base, TimestampMixin):
    """Notification toggles, thresholds and quiet hours for one wallet.

    Read-only to the delivery pipeline; written by the settings UI.
    """

    __tablename__ = "notification_preferences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)

    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    whale_alerts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    whale_alert_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=1000.0)

    kol_activity_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    kol_trade_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    kol_new_position_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    kol_tier_change_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    portfolio_alerts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    price_change_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=10.0)
    pnl_alerts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    copy_trade_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    copy_trade_executed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    copy_trade_failed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    new_follower_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    new_copy_trader_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    leaderboard_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    trending_token_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    new_listing_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    security_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    quiet_hours_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    quiet_hours_start: Mapped[str] = mapped_column(String(5), nullable=False, default="22:00")
    quiet_hours_end: Mapped[str] = mapped_column(String(5), nullable=False, default="08:00")
    quiet_hours_timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    def __repr__(self) -> str:
        return f"<RecipientPreference wallet={self.wallet_address[:16]} enabled={self.notifications_enabled}>"
