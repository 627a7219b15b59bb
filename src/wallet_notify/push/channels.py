"""Category → provider notification channel lookup."""

from __future__ import annotations

DEFAULT_CHANNEL = "default"

_CHANNELS: dict[str, str] = {
    "whale_alert": "trades",
    "copy_trade_executed": "trades",
    "copy_trade_failed": "trades",
    "kol_trade": "kol",
    "kol_new_position": "kol",
    "kol_tier_change": "kol",
    "portfolio_alert": "portfolio",
    "price_alert": "portfolio",
    "pnl_alert": "portfolio",
    "new_follower": "social",
    "new_copy_trader": "social",
    "leaderboard": "social",
    "security": "security",
}


def channel_for(category: str) -> str:
    """Return the channel tag for *category*, ``default`` when unmapped."""
    return _CHANNELS.get(category, DEFAULT_CHANNEL)
