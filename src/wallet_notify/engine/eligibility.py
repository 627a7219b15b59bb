"""Eligibility filter — per-recipient preference checks.

Decision order for one endpoint:

1. No preference row: eligible, unless the category is configured to fail closed.
2. Master toggle off: excluded.
3. Inside quiet hours: excluded.
4. Category rule: every required toggle on, threshold (if any) met.

Quiet-hours and threshold problems (bad ``HH:MM``, unknown time zone,
non-numeric payload values) never exclude a recipient.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from wallet_notify.engine.models.base import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import datetime

    from wallet_notify.engine.directory import PreferenceStore
    from wallet_notify.engine.models.recipient_preference import RecipientPreference
    from wallet_notify.push.models import Endpoint

logger = logging.getLogger(__name__)


class Category(enum.StrEnum):
    """Known notification categories."""

    WHALE_ALERT = "whale_alert"
    KOL_TRADE = "kol_trade"
    KOL_NEW_POSITION = "kol_new_position"
    KOL_TIER_CHANGE = "kol_tier_change"
    PORTFOLIO_ALERT = "portfolio_alert"
    PRICE_ALERT = "price_alert"
    PNL_ALERT = "pnl_alert"
    COPY_TRADE_EXECUTED = "copy_trade_executed"
    COPY_TRADE_FAILED = "copy_trade_failed"
    NEW_FOLLOWER = "new_follower"
    NEW_COPY_TRADER = "new_copy_trader"
    LEADERBOARD = "leaderboard"
    TRENDING_TOKEN = "trending_token"
    NEW_LISTING = "new_listing"
    SECURITY = "security"
    SYSTEM = "system"


@dataclass(frozen=True)
class CategoryRule:
    """Preference toggles a category needs, plus an optional payload threshold.

    When ``threshold_pref`` is set, the payload value at ``payload_field``
    must be greater than or equal to that preference column.
    """

    toggles: tuple[str, ...] = ()
    payload_field: str | None = None
    threshold_pref: str | None = None


RULES: dict[str, CategoryRule] = {
    Category.WHALE_ALERT: CategoryRule(
        ("whale_alerts_enabled",), payload_field="usd_value", threshold_pref="whale_alert_threshold"
    ),
    Category.KOL_TRADE: CategoryRule(("kol_activity_enabled", "kol_trade_notifications")),
    Category.KOL_NEW_POSITION: CategoryRule(("kol_activity_enabled", "kol_new_position_notifications")),
    Category.KOL_TIER_CHANGE: CategoryRule(("kol_activity_enabled", "kol_tier_change_notifications")),
    Category.PORTFOLIO_ALERT: CategoryRule(("portfolio_alerts_enabled",)),
    Category.PRICE_ALERT: CategoryRule(("portfolio_alerts_enabled",)),
    Category.PNL_ALERT: CategoryRule(("portfolio_alerts_enabled", "pnl_alerts_enabled")),
    Category.COPY_TRADE_EXECUTED: CategoryRule(("copy_trade_enabled", "copy_trade_executed")),
    Category.COPY_TRADE_FAILED: CategoryRule(("copy_trade_enabled", "copy_trade_failed")),
    Category.NEW_FOLLOWER: CategoryRule(("new_follower_notifications",)),
    Category.NEW_COPY_TRADER: CategoryRule(("new_copy_trader_notifications",)),
    Category.LEADERBOARD: CategoryRule(("leaderboard_notifications",)),
    Category.TRENDING_TOKEN: CategoryRule(("trending_token_alerts",)),
    Category.NEW_LISTING: CategoryRule(("new_listing_alerts",)),
    Category.SECURITY: CategoryRule(),
    Category.SYSTEM: CategoryRule(),
}


def payload_number(payload: dict[str, Any], key: str, default: float = 0.0) -> float:
    """Read a numeric payload field; missing or non-numeric values give *default*."""
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_hhmm(value: str) -> int:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into minutes after midnight.

    Raises:
        ValueError: If the value is not a valid time of day.
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        msg = f"invalid time of day: {value!r}"
        raise ValueError(msg)
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        msg = f"invalid time of day: {value!r}"
        raise ValueError(msg)
    return hours * 60 + minutes


def in_window(current: int, start: int, end: int) -> bool:
    """Whether *current* falls inside [start, end], wrapping past midnight."""
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def is_in_quiet_hours(pref: RecipientPreference, now: datetime | None = None) -> bool:
    """Whether *pref*'s quiet hours cover *now* in the recipient's time zone.

    Any parse or time-zone failure is logged and treated as "not quiet".
    """
    if not pref.quiet_hours_enabled:
        return False
    now = now or utcnow()
    try:
        local = now.astimezone(ZoneInfo(pref.quiet_hours_timezone or "UTC"))
        start = parse_hhmm(pref.quiet_hours_start)
        end = parse_hhmm(pref.quiet_hours_end)
    except (ValueError, KeyError, AttributeError) as exc:
        logger.warning("Ignoring quiet hours for %s: %s", pref.wallet_address, exc)
        return False
    return in_window(local.hour * 60 + local.minute, start, end)


def passes_category_rule(pref: RecipientPreference, category: str, payload: dict[str, Any]) -> bool:
    """Apply the category rule table; unknown categories always pass."""
    rule = RULES.get(category)
    if rule is None:
        return True
    if not all(getattr(pref, toggle, True) for toggle in rule.toggles):
        return False
    if rule.payload_field and rule.threshold_pref:
        threshold = getattr(pref, rule.threshold_pref, None)
        if threshold is None:
            return True
        return payload_number(payload, rule.payload_field) >= threshold
    return True


class EligibilityFilter:
    """Prune endpoints whose owners do not want this notification.

    Args:
        preferences: Preference lookup used by :meth:`filter`.
        fail_closed_categories: Categories suppressed for wallets with no
            preference row. Empty means every category fails open.
        clock: Current-time source; overridable in tests.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        *,
        fail_closed_categories: Iterable[str] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._preferences = preferences
        self._fail_closed = frozenset(fail_closed_categories)
        self._clock = clock

    async def filter(
        self,
        endpoints: Sequence[Endpoint],
        category: str,
        payload: dict[str, Any] | None = None,
    ) -> list[Endpoint]:
        """Look up preferences for the endpoints' owners and apply them.

        Raises:
            LookupTimeoutError: If the preference lookup timed out.
        """
        if not endpoints:
            return []
        prefs = await self._preferences.get_many(e.wallet_address for e in endpoints)
        return self.apply(endpoints, category, prefs, payload or {})

    def apply(
        self,
        endpoints: Sequence[Endpoint],
        category: str,
        preferences: dict[str, RecipientPreference],
        payload: dict[str, Any],
    ) -> list[Endpoint]:
        """Return eligible endpoints, de-duplicated, in input order."""
        now = self._clock()
        verdicts: dict[str, bool] = {}
        eligible: dict[Endpoint, None] = {}
        for endpoint in endpoints:
            wallet = endpoint.wallet_address
            if wallet not in verdicts:
                verdicts[wallet] = self.is_eligible(preferences.get(wallet), category, payload, now)
            if verdicts[wallet]:
                eligible.setdefault(endpoint, None)
        return list(eligible)

    def is_eligible(
        self,
        pref: RecipientPreference | None,
        category: str,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> bool:
        """Decide a single recipient."""
        if pref is None:
            return category not in self._fail_closed
        if not pref.notifications_enabled:
            return False
        if is_in_quiet_hours(pref, now or self._clock()):
            return False
        return passes_category_rule(pref, category, payload)
