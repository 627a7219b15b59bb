"""Tests for the eligibility filter: quiet hours, category rules, fail-open."""

from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from wallet_notify.engine.eligibility import (
    RULES,
    Category,
    EligibilityFilter,
    in_window,
    is_in_quiet_hours,
    parse_hhmm,
    passes_category_rule,
    payload_number,
)
from wallet_notify.engine.models.recipient_preference import RecipientPreference
from wallet_notify.errors.notify_errors import LookupTimeoutError
from wallet_notify.push.models import Endpoint

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_DEFAULTS = {
    c.name: c.default.arg
    for c in RecipientPreference.__table__.columns
    if c.default is not None and not callable(c.default.arg)
}


def _pref(**overrides) -> SimpleNamespace:
    """A preference with the schema defaults applied."""
    values = dict(_DEFAULTS)
    values["wallet_address"] = "wallet-a"
    values.update(overrides)
    return SimpleNamespace(**values)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 14, hour, minute, tzinfo=UTC)


def _quiet(start: str, end: str, tz: str = "UTC") -> SimpleNamespace:
    return _pref(
        quiet_hours_enabled=True,
        quiet_hours_start=start,
        quiet_hours_end=end,
        quiet_hours_timezone=tz,
    )


class _NoLookup:
    async def get_many(self, wallets):
        raise AssertionError("unexpected preference lookup")


# ---------------------------------------------------------------------------
# Time parsing
# ---------------------------------------------------------------------------


class TestParseHHMM:
    @pytest.mark.parametrize(
        ("value", "minutes"),
        [("00:00", 0), ("08:00", 480), ("22:30", 1350), ("23:59", 1439), ("07:05:00", 425)],
    )
    def test_valid(self, value: str, minutes: int) -> None:
        assert parse_hhmm(value) == minutes

    @pytest.mark.parametrize("value", ["", "8", "24:00", "12:60", "ab:cd", "1:2:3:4"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestInWindow:
    def test_same_day_inclusive(self) -> None:
        assert in_window(480, 480, 1320)
        assert in_window(1320, 480, 1320)
        assert not in_window(479, 480, 1320)

    def test_overnight_wraps(self) -> None:
        assert in_window(1380, 1320, 480)
        assert in_window(0, 1320, 480)
        assert in_window(480, 1320, 480)
        assert not in_window(540, 1320, 480)


# ---------------------------------------------------------------------------
# Quiet hours
# ---------------------------------------------------------------------------


class TestQuietHours:
    def test_disabled_never_quiet(self) -> None:
        pref = _pref(quiet_hours_enabled=False)
        assert not is_in_quiet_hours(pref, _at(23, 30))

    def test_overnight_window(self) -> None:
        pref = _quiet("22:00", "08:00")
        assert is_in_quiet_hours(pref, _at(23, 30))
        assert not is_in_quiet_hours(pref, _at(9, 0))

    def test_daytime_window(self) -> None:
        pref = _quiet("08:00", "22:00")
        assert is_in_quiet_hours(pref, _at(9, 0))
        assert not is_in_quiet_hours(pref, _at(23, 0))
        assert not is_in_quiet_hours(pref, _at(7, 0))

    def test_uses_recipient_time_zone(self) -> None:
        # 03:30 UTC is 23:30 the previous day in New York (EDT, UTC-4)
        pref = _quiet("22:00", "23:45", tz="America/New_York")
        assert is_in_quiet_hours(pref, _at(3, 30))
        assert not is_in_quiet_hours(_quiet("22:00", "23:45"), _at(3, 30))

    @pytest.mark.parametrize(
        "pref",
        [
            _quiet("22:00", "08:00", tz="Mars/Olympus_Mons"),
            _quiet("late", "08:00"),
            _quiet("22:00", "25:00"),
        ],
    )
    def test_bad_settings_fail_open(self, pref, caplog) -> None:
        with caplog.at_level("WARNING"):
            assert not is_in_quiet_hours(pref, _at(23, 30))
        assert "Ignoring quiet hours" in caplog.text


# ---------------------------------------------------------------------------
# Category rules
# ---------------------------------------------------------------------------


class TestCategoryRules:
    def test_every_category_has_a_rule(self) -> None:
        assert set(RULES) == set(Category)

    @pytest.mark.parametrize(
        ("category", "toggle"),
        [
            ("kol_trade", "kol_activity_enabled"),
            ("kol_trade", "kol_trade_notifications"),
            ("kol_new_position", "kol_new_position_notifications"),
            ("kol_tier_change", "kol_tier_change_notifications"),
            ("portfolio_alert", "portfolio_alerts_enabled"),
            ("price_alert", "portfolio_alerts_enabled"),
            ("pnl_alert", "pnl_alerts_enabled"),
            ("pnl_alert", "portfolio_alerts_enabled"),
            ("copy_trade_executed", "copy_trade_enabled"),
            ("copy_trade_executed", "copy_trade_executed"),
            ("copy_trade_failed", "copy_trade_failed"),
            ("new_follower", "new_follower_notifications"),
            ("new_copy_trader", "new_copy_trader_notifications"),
            ("leaderboard", "leaderboard_notifications"),
            ("whale_alert", "whale_alerts_enabled"),
        ],
    )
    def test_required_toggle(self, category: str, toggle: str) -> None:
        payload = {"usd_value": 10**9}
        assert passes_category_rule(_pref(), category, payload)
        assert not passes_category_rule(_pref(**{toggle: False}), category, payload)

    def test_opt_in_categories_default_off(self) -> None:
        assert not passes_category_rule(_pref(), "trending_token", {})
        assert not passes_category_rule(_pref(), "new_listing", {})
        assert passes_category_rule(_pref(trending_token_alerts=True), "trending_token", {})

    def test_whale_threshold(self) -> None:
        pref = _pref(whale_alert_threshold=10_000)
        assert passes_category_rule(pref, "whale_alert", {"usd_value": 10_000})
        assert passes_category_rule(pref, "whale_alert", {"usd_value": "50000"})
        assert not passes_category_rule(pref, "whale_alert", {"usd_value": 9_999.99})
        assert not passes_category_rule(pref, "whale_alert", {})

    @pytest.mark.parametrize("category", ["security", "system", "brand_new_type"])
    def test_always_eligible(self, category: str) -> None:
        pref = _pref(security_notifications=False, whale_alerts_enabled=False)
        assert passes_category_rule(pref, category, {})


class TestPayloadNumber:
    @pytest.mark.parametrize(
        ("payload", "expected"),
        [({"v": 5}, 5.0), ({"v": "7.5"}, 7.5), ({"v": None}, 0.0), ({}, 0.0), ({"v": "x"}, 0.0)],
    )
    def test_values(self, payload: dict, expected: float) -> None:
        assert payload_number(payload, "v") == expected

    def test_bool_is_not_a_number(self) -> None:
        assert payload_number({"v": True}, "v", default=-1.0) == -1.0


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


class TestEligibilityFilter:
    def _filter(self, **kwargs) -> EligibilityFilter:
        return EligibilityFilter(_NoLookup(), clock=lambda: _at(12), **kwargs)

    def test_missing_preference_fails_open(self) -> None:
        endpoints = [Endpoint("w1", "t1")]
        assert self._filter().apply(endpoints, "whale_alert", {}, {}) == endpoints

    def test_missing_preference_fail_closed_category(self) -> None:
        f = self._filter(fail_closed_categories=["security"])
        endpoints = [Endpoint("w1", "t1")]
        assert f.apply(endpoints, "security", {}, {}) == []
        assert f.apply(endpoints, "system", {}, {}) == endpoints

    def test_master_toggle_short_circuits(self) -> None:
        endpoints = [Endpoint("w1", "t1")]
        prefs = {"w1": _pref(notifications_enabled=False)}
        assert self._filter().apply(endpoints, "security", prefs, {}) == []

    def test_quiet_hours_suppress(self) -> None:
        endpoints = [Endpoint("w1", "t1"), Endpoint("w2", "t2")]
        prefs = {"w1": _quiet("11:00", "13:00"), "w2": _pref()}
        assert self._filter().apply(endpoints, "system", prefs, {}) == [Endpoint("w2", "t2")]

    def test_deduplicates_and_keeps_all_tokens(self) -> None:
        endpoints = [Endpoint("w1", "t1"), Endpoint("w1", "t2"), Endpoint("w1", "t1")]
        result = self._filter().apply(endpoints, "system", {"w1": _pref()}, {})
        assert result == [Endpoint("w1", "t1"), Endpoint("w1", "t2")]

    async def test_filter_uses_preference_store(self, datastore, seed) -> None:
        from wallet_notify.engine.directory import PreferenceStore

        await seed.preference("w1", notifications_enabled=False)
        await seed.preference("w2")
        f = EligibilityFilter(PreferenceStore(datastore), clock=lambda: _at(12))
        endpoints = [Endpoint("w1", "t1"), Endpoint("w2", "t2"), Endpoint("w3", "t3")]

        result = await f.filter(endpoints, "system", {})

        assert result == [Endpoint("w2", "t2"), Endpoint("w3", "t3")]

    async def test_filter_propagates_lookup_timeout(self) -> None:
        class _Slow:
            async def get_many(self, wallets):
                raise LookupTimeoutError("preference lookup timed out after 1s")

        f = EligibilityFilter(_Slow())
        with pytest.raises(LookupTimeoutError):
            await f.filter([Endpoint("w1", "t1")], "system")
