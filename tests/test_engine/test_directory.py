"""Tests for the datastore-backed directories."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select

from wallet_notify.engine.directory import EndpointDirectory, PreferenceStore, bounded
from wallet_notify.engine.models.push_token import PushToken
from wallet_notify.errors.notify_errors import LookupTimeoutError
from wallet_notify.push.models import Endpoint


class TestBounded:
    async def test_returns_value(self) -> None:
        async def quick():
            return 42

        assert await bounded(quick(), 1.0, "test") == 42

    async def test_timeout_becomes_lookup_error(self) -> None:
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(LookupTimeoutError, match="test lookup timed out") as exc_info:
            await bounded(slow(), 0.01, "test")
        assert exc_info.value.status_code == 504
        assert exc_info.value.code == "lookup-timeout"


class TestPreferenceStore:
    async def test_get_many(self, datastore, seed) -> None:
        await seed.preference("w1", whale_alert_threshold=5.0)
        await seed.preference("w2")
        store = PreferenceStore(datastore)

        prefs = await store.get_many(["w1", "w3", "w1"])

        assert set(prefs) == {"w1"}
        assert prefs["w1"].whale_alert_threshold == 5.0

    async def test_get_many_empty(self, datastore) -> None:
        assert await PreferenceStore(datastore).get_many([]) == {}


class TestEndpointDirectory:
    async def test_active_endpoints(self, datastore, seed) -> None:
        await seed.token("w2", "t-b")
        await seed.token("w1", "t-a")
        await seed.token("w1", "t-dead", active=False)
        await seed.token("w9", "t-z")

        endpoints = await EndpointDirectory(datastore).active_endpoints({"w1", "w2"})

        assert endpoints == [Endpoint("w1", "t-a"), Endpoint("w2", "t-b")]

    async def test_active_endpoints_empty(self, datastore) -> None:
        assert await EndpointDirectory(datastore).active_endpoints([]) == []

    async def test_deactivate_every_row_holding_token(self, datastore, seed) -> None:
        await seed.token("w1", "shared")
        await seed.token("w2", "shared")
        await seed.token("w3", "other")
        directory = EndpointDirectory(datastore)

        assert await directory.deactivate(["shared", "shared"]) == 2
        assert await directory.deactivate(["shared"]) == 0

        async with datastore.session() as session:
            rows = (await session.execute(select(PushToken))).scalars().all()
        assert {r.wallet_address: r.is_active for r in rows} == {"w1": False, "w2": False, "w3": True}
        assert await directory.all_active_recipients() == {"w3"}

    async def test_deactivate_nothing(self, datastore) -> None:
        assert await EndpointDirectory(datastore).deactivate([]) == 0
