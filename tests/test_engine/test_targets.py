"""Tests for target descriptors and the target resolver."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from wallet_notify.engine.targets import (
    All,
    Followers,
    Specific,
    WhaleSubscribers,
    descriptor_columns,
    descriptor_from_intent,
)
from wallet_notify.errors.notify_errors import LookupTimeoutError


def _row(**fields) -> SimpleNamespace:
    values = {"target_type": "all", "target_wallets": None, "target_kol_wallet": None}
    values.update(fields)
    return SimpleNamespace(**values)


class TestDescriptorMapping:
    def test_from_rows(self) -> None:
        assert descriptor_from_intent(_row(target_type="specific", target_wallets=["a", "b"])) == (
            Specific(wallets=("a", "b"))
        )
        assert descriptor_from_intent(_row(target_type="followers", target_kol_wallet="kol")) == (
            Followers(kol_wallet="kol")
        )
        assert descriptor_from_intent(_row(target_type="whale_subscribers")) == WhaleSubscribers()
        assert descriptor_from_intent(_row(target_type="all")) == All()

    def test_unknown_type_is_none(self) -> None:
        assert descriptor_from_intent(_row(target_type="everyone_on_mars")) is None

    @pytest.mark.parametrize(
        "descriptor",
        [Specific(wallets=("a",)), Followers(kol_wallet="k"), WhaleSubscribers(), All()],
    )
    def test_columns_round_trip(self, descriptor) -> None:
        assert descriptor_from_intent(_row(**descriptor_columns(descriptor))) == descriptor

    def test_columns_reject_unknown(self) -> None:
        with pytest.raises(TypeError):
            descriptor_columns("all")  # type: ignore[arg-type]


class TestTargetResolver:
    async def test_specific_is_deduplicated_input(self, pipeline, seed) -> None:
        # No tokens or preferences exist; resolution must not consult them
        result = await pipeline.resolver.resolve(Specific(wallets=("a", "b", "a", "")))
        assert result == {"a", "b"}

    async def test_followers_with_trade_opt_in(self, pipeline, seed) -> None:
        await seed.follow("f1", "kol")
        await seed.follow("f2", "kol", notify_on_trade=False)
        await seed.follow("f3", "other-kol")

        assert await pipeline.resolver.resolve(Followers(kol_wallet="kol")) == {"f1"}

    async def test_followers_without_kol_is_empty(self, pipeline) -> None:
        assert await pipeline.resolver.resolve(Followers(kol_wallet="")) == set()

    async def test_whale_subscribers_threshold(self, pipeline, seed) -> None:
        await seed.preference("low", whale_alert_threshold=10_000)
        await seed.preference("high", whale_alert_threshold=100_000)
        await seed.preference("off", whale_alert_threshold=1, whale_alerts_enabled=False)
        await seed.preference("muted", whale_alert_threshold=1, notifications_enabled=False)

        result = await pipeline.resolver.resolve(WhaleSubscribers(), {"usd_value": 50_000})

        assert result == {"low"}

    async def test_whale_subscribers_without_value(self, pipeline, seed) -> None:
        await seed.preference("w", whale_alert_threshold=1)
        assert await pipeline.resolver.resolve(WhaleSubscribers(), {}) == set()

    async def test_all_active(self, pipeline, seed) -> None:
        await seed.token("w1", "t1")
        await seed.token("w1", "t2")
        await seed.token("w2", "t3")
        await seed.token("w3", "t4", active=False)

        assert await pipeline.resolver.resolve(All()) == {"w1", "w2"}

    async def test_unknown_descriptor_is_empty(self, pipeline) -> None:
        assert await pipeline.resolver.resolve(None) == set()
        assert await pipeline.resolver.resolve("bogus") == set()  # type: ignore[arg-type]

    async def test_directory_timeout_propagates(self, pipeline) -> None:
        class _Slow:
            async def trade_followers(self, kol_wallet):
                raise LookupTimeoutError("follower lookup timed out after 1s")

        pipeline.resolver._follows = _Slow()
        with pytest.raises(LookupTimeoutError):
            await pipeline.resolver.resolve(Followers(kol_wallet="kol"))
