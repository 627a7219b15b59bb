"""Shared test fixtures for the wallet-notify test suite."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from wallet_notify.config.settings import (
    AppConfig,
    DatabaseConfig,
    DatabaseEngine,
    PushConfig,
    TaskConfig,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from wallet_notify.datastore.client import Datastore

MEMORY_DSN = "sqlite+aiosqlite:///:memory:"
FIXED_NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with safe defaults (no cron jobs)."""
    return AppConfig(
        debug=True,
        db=DatabaseConfig(engine=DatabaseEngine.SQLITE, dsn=MEMORY_DSN),
        push=PushConfig(url="https://push.test/--/api/v2/push/send"),
        task=TaskConfig(enabled=False),
    )


# ---------------------------------------------------------------------------
# Datastore
# ---------------------------------------------------------------------------


async def _open_datastore(dsn: str) -> Datastore:
    from wallet_notify.datastore.client import Datastore
    from wallet_notify.datastore.migrations import run_auto_migrate

    ds = Datastore(DatabaseConfig(engine=DatabaseEngine.SQLITE, dsn=dsn))
    await ds.open()
    await run_auto_migrate(ds.engine)
    return ds


@pytest.fixture
async def datastore() -> AsyncIterator[Datastore]:
    """An open in-memory datastore with every table created."""
    ds = await _open_datastore(MEMORY_DSN)
    yield ds
    await ds.close()


@pytest.fixture
async def file_datastore(tmp_path) -> AsyncIterator[Datastore]:
    """An open file-backed datastore; separate sessions use separate connections."""
    ds = await _open_datastore(f"sqlite+aiosqlite:///{tmp_path / 'notify.db'}")
    yield ds
    await ds.close()


class Seeder:
    """Insert fixture rows directly through the ORM."""

    def __init__(self, ds: Datastore) -> None:
        self._ds = ds

    async def _add(self, *rows: Any) -> None:
        async with self._ds.session() as session:
            session.add_all(rows)
            await session.commit()

    async def token(self, wallet: str, token: str, *, active: bool = True) -> None:
        from wallet_notify.engine.models.push_token import PushToken

        await self._add(PushToken(wallet_address=wallet, expo_push_token=token, is_active=active))

    async def preference(self, wallet: str, **fields: Any) -> None:
        from wallet_notify.engine.models.recipient_preference import RecipientPreference

        await self._add(RecipientPreference(wallet_address=wallet, **fields))

    async def follow(self, follower: str, kol: str, *, notify_on_trade: bool = True) -> None:
        from wallet_notify.engine.models.kol_follow import KolFollow

        await self._add(
            KolFollow(
                follower_wallet_address=follower,
                kol_wallet_address=kol,
                notify_on_trade=notify_on_trade,
            )
        )

    async def intent(self, **fields: Any) -> str:
        from wallet_notify.engine.models.notification_intent import NotificationIntent

        values: dict[str, Any] = {
            "target_type": "all",
            "notification_type": "system",
            "title": "Title",
            "body": "Body",
            "data": {},
            "scheduled_for": FIXED_NOW,
        }
        values.update(fields)
        intent = NotificationIntent(**values)
        await self._add(intent)
        return intent.id


@pytest.fixture
def seed(datastore) -> Seeder:
    return Seeder(datastore)


@pytest.fixture
def file_seed(file_datastore) -> Seeder:
    return Seeder(file_datastore)


# ---------------------------------------------------------------------------
# Push provider
# ---------------------------------------------------------------------------


@dataclass
class FakeExpo:
    """Records every push request; answers with per-token ticket rules.

    ``errors`` maps a token to an Expo ``details.error`` code; every other
    token gets an ok ticket. A request carrying any token in ``fail_tokens``
    is answered with HTTP 500.
    """

    errors: dict[str, str]
    fail_tokens: set[str]
    requests: list[list[dict[str, Any]]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        messages = json.loads(request.content)
        self.requests.append(messages)
        if any(m["to"] in self.fail_tokens for m in messages):
            return httpx.Response(500, text="upstream exploded")
        data = []
        for i, msg in enumerate(messages):
            error = self.errors.get(msg["to"])
            if error:
                data.append({"status": "error", "message": error, "details": {"error": error}})
            else:
                data.append({"status": "ok", "id": f"ticket-{len(self.requests)}-{i}"})
        return httpx.Response(200, json={"data": data})

    @property
    def sent_tokens(self) -> list[str]:
        return [m["to"] for batch in self.requests for m in batch]


@pytest.fixture
def fake_expo() -> FakeExpo:
    return FakeExpo(errors={}, fail_tokens=set(), requests=[])


def make_push_client(handler: Callable[[httpx.Request], httpx.Response]):
    """An ExpoPushClient wired to an httpx MockTransport."""
    from wallet_notify.push.client import ExpoPushClient

    client = ExpoPushClient(PushConfig(url="https://push.test/--/api/v2/push/send"))
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass
class Pipeline:
    """Every pipeline component wired against one datastore."""

    preferences: Any
    endpoints: Any
    follows: Any
    resolver: Any
    eligibility: Any
    dispatcher: Any
    reconciler: Any
    drainer: Any
    cache: Any
    metrics: Any


async def build_pipeline(
    ds: Datastore,
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    clock: Callable[[], datetime] = lambda: FIXED_NOW,
    fail_closed: tuple[str, ...] = (),
    lookup_timeout: float = 5.0,
) -> Pipeline:
    from wallet_notify.cache.client import CacheClient
    from wallet_notify.config.settings import CacheConfig
    from wallet_notify.engine.directory import EndpointDirectory, FollowDirectory, PreferenceStore
    from wallet_notify.engine.drainer import QueueDrainer
    from wallet_notify.engine.eligibility import EligibilityFilter
    from wallet_notify.engine.reconciler import OutcomeReconciler
    from wallet_notify.engine.targets import TargetResolver
    from wallet_notify.metrics.collector import NotifyMetrics
    from wallet_notify.push.dispatcher import BatchDispatcher

    cache = CacheClient(CacheConfig())
    await cache.connect()
    metrics = NotifyMetrics()
    preferences = PreferenceStore(ds, timeout=lookup_timeout)
    endpoints = EndpointDirectory(ds, timeout=lookup_timeout)
    follows = FollowDirectory(ds, timeout=lookup_timeout)
    resolver = TargetResolver(preferences, endpoints, follows)
    eligibility = EligibilityFilter(preferences, fail_closed_categories=fail_closed, clock=clock)
    dispatcher = BatchDispatcher(make_push_client(handler), metrics=metrics)
    reconciler = OutcomeReconciler(ds, endpoints, cache=cache, metrics=metrics)
    drainer = QueueDrainer(
        ds, resolver, endpoints, eligibility, dispatcher, reconciler, metrics=metrics, clock=clock
    )
    return Pipeline(
        preferences=preferences,
        endpoints=endpoints,
        follows=follows,
        resolver=resolver,
        eligibility=eligibility,
        dispatcher=dispatcher,
        reconciler=reconciler,
        drainer=drainer,
        cache=cache,
        metrics=metrics,
    )


@pytest.fixture
async def pipeline(datastore, fake_expo) -> Pipeline:
    return await build_pipeline(datastore, fake_expo.handler)


@pytest.fixture
def pipeline_factory(datastore, fake_expo):
    """Build a pipeline on the in-memory datastore with custom options."""

    async def _build(**kwargs: Any) -> Pipeline:
        return await build_pipeline(datastore, fake_expo.handler, **kwargs)

    return _build


@pytest.fixture
async def file_pipeline(file_datastore, fake_expo) -> Pipeline:
    return await build_pipeline(file_datastore, fake_expo.handler)


@pytest.fixture
def push_client_factory():
    return make_push_client


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@pytest.fixture
async def notify_engine(app_config, fake_expo):
    """An initialized NotifyEngine on an in-memory database, pushing to ``fake_expo``."""
    from wallet_notify.engine.client import NotifyEngine

    engine = NotifyEngine(app_config)
    await engine.initialize()
    await engine.push_client._client.aclose()
    engine.push_client._client = httpx.AsyncClient(transport=httpx.MockTransport(fake_expo.handler))
    yield engine
    await engine.close()


@pytest.fixture
def engine_seed(notify_engine) -> Seeder:
    return Seeder(notify_engine.datastore)
