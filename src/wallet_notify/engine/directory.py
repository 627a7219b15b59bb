"""Read-side collaborators backed by the datastore.

- ``PreferenceStore`` — per-wallet notification preferences
- ``EndpointDirectory`` — active push tokens per wallet, deactivation
- ``FollowDirectory`` — KOL follow relations

Every lookup is bounded by the configured lookup timeout and raises
``LookupTimeoutError`` when it expires.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select, update

from wallet_notify.engine.models.base import utcnow
from wallet_notify.engine.models.kol_follow import KolFollow
from wallet_notify.engine.models.push_token import PushToken
from wallet_notify.engine.models.recipient_preference import RecipientPreference
from wallet_notify.errors.notify_errors import LookupTimeoutError
from wallet_notify.push.models import Endpoint

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

    from wallet_notify.datastore.client import Datastore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LOOKUP_TIMEOUT = 10.0


async def bounded(awaitable: Awaitable[T], timeout: float, what: str) -> T:
    """Await *awaitable*, converting a timeout into ``LookupTimeoutError``."""
    try:
        async with asyncio.timeout(timeout):
            return await awaitable
    except TimeoutError as exc:
        msg = f"{what} lookup timed out after {timeout:g}s"
        raise LookupTimeoutError(msg) from exc


class _DatastoreLookup:
    def __init__(self, datastore: Datastore, *, timeout: float = DEFAULT_LOOKUP_TIMEOUT) -> None:
        self._ds = datastore
        self._timeout = timeout


class PreferenceStore(_DatastoreLookup):
    """Read access to ``notification_preferences``."""

    async def get_many(self, wallets: Iterable[str]) -> dict[str, RecipientPreference]:
        """Return preference rows keyed by wallet; wallets without a row are absent."""
        wanted = sorted(set(wallets))
        if not wanted:
            return {}
        return await bounded(self._get_many(wanted), self._timeout, "preference")

    async def _get_many(self, wallets: list[str]) -> dict[str, RecipientPreference]:
        async with self._ds.session() as session:
            stmt = select(RecipientPreference).where(RecipientPreference.wallet_address.in_(wallets))
            result = await session.execute(stmt)
            return {p.wallet_address: p for p in result.scalars().all()}

    async def whale_subscribers(self, usd_value: float) -> list[str]:
        """Wallets with whale alerts on whose threshold is at most *usd_value*."""
        return await bounded(self._whale_subscribers(usd_value), self._timeout, "whale subscriber")

    async def _whale_subscribers(self, usd_value: float) -> list[str]:
        async with self._ds.session() as session:
            stmt = select(RecipientPreference.wallet_address).where(
                RecipientPreference.notifications_enabled.is_(True),
                RecipientPreference.whale_alerts_enabled.is_(True),
                RecipientPreference.whale_alert_threshold <= usd_value,
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())


class EndpointDirectory(_DatastoreLookup):
    """Active push tokens and their deactivation."""

    async def active_endpoints(self, wallets: Iterable[str]) -> list[Endpoint]:
        """Active endpoints for *wallets*, de-duplicated, ordered by wallet then token."""
        wanted = sorted(set(wallets))
        if not wanted:
            return []
        return await bounded(self._active_endpoints(wanted), self._timeout, "endpoint")

    async def _active_endpoints(self, wallets: list[str]) -> list[Endpoint]:
        async with self._ds.session() as session:
            stmt = (
                select(PushToken.wallet_address, PushToken.expo_push_token)
                .where(PushToken.wallet_address.in_(wallets), PushToken.is_active.is_(True))
                .order_by(PushToken.wallet_address, PushToken.expo_push_token)
            )
            result = await session.execute(stmt)
            seen: dict[Endpoint, None] = {}
            for wallet, token in result.all():
                seen.setdefault(Endpoint(wallet_address=wallet, token=token), None)
            return list(seen)

    async def all_active_recipients(self) -> set[str]:
        """Every wallet holding at least one active token."""
        return await bounded(self._all_active_recipients(), self._timeout, "recipient")

    async def _all_active_recipients(self) -> set[str]:
        async with self._ds.session() as session:
            stmt = select(PushToken.wallet_address).where(PushToken.is_active.is_(True)).distinct()
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def deactivate(self, tokens: Iterable[str]) -> int:
        """Mark every row holding one of *tokens* inactive.

        Returns:
            Number of rows switched from active to inactive.
        """
        unique = sorted(set(tokens))
        if not unique:
            return 0
        async with self._ds.session() as session:
            stmt = (
                update(PushToken)
                .where(PushToken.expo_push_token.in_(unique), PushToken.is_active.is_(True))
                .values(is_active=False, updated_at=utcnow())
            )
            result = await session.execute(stmt)
            await session.commit()
        count = result.rowcount  # type: ignore[union-attr]
        if count:
            logger.info("Deactivated %d push token rows (%d tokens)", count, len(unique))
        return count


class FollowDirectory(_DatastoreLookup):
    """Read access to ``kol_follows``."""

    async def trade_followers(self, kol_wallet: str) -> list[str]:
        """Wallets following *kol_wallet* with trade notifications on."""
        return await bounded(self._trade_followers(kol_wallet), self._timeout, "follower")

    async def _trade_followers(self, kol_wallet: str) -> list[str]:
        async with self._ds.session() as session:
            stmt = select(KolFollow.follower_wallet_address).where(
                KolFollow.kol_wallet_address == kol_wallet,
                KolFollow.notify_on_trade.is_(True),
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())
