"""Target descriptors and their resolution to recipient wallets.

A queued intent names its audience with one of four descriptor shapes.
The resolver expands a descriptor into a concrete set of wallets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wallet_notify.engine.eligibility import payload_number
from wallet_notify.engine.models.notification_intent import TargetType

if TYPE_CHECKING:
    from wallet_notify.engine.directory import EndpointDirectory, FollowDirectory, PreferenceStore
    from wallet_notify.engine.models.notification_intent import NotificationIntent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Specific:
    """An explicit list of wallets."""

    wallets: tuple[str, ...]


@dataclass(frozen=True)
class Followers:
    """Everyone following a KOL wallet with trade notifications on."""

    kol_wallet: str


@dataclass(frozen=True)
class WhaleSubscribers:
    """Wallets whose whale threshold is met by the payload's ``usd_value``."""


@dataclass(frozen=True)
class All:
    """Every wallet with an active push token."""


TargetDescriptor = Specific | Followers | WhaleSubscribers | All


def descriptor_from_intent(intent: NotificationIntent) -> TargetDescriptor | None:
    """Rebuild the descriptor stored on a queue row; None if unrecognised."""
    match intent.target_type:
        case TargetType.SPECIFIC:
            return Specific(wallets=tuple(intent.target_wallets or ()))
        case TargetType.FOLLOWERS:
            return Followers(kol_wallet=intent.target_kol_wallet or "")
        case TargetType.WHALE_SUBSCRIBERS:
            return WhaleSubscribers()
        case TargetType.ALL:
            return All()
        case _:
            return None


def descriptor_columns(descriptor: TargetDescriptor) -> dict[str, Any]:
    """Column values that store *descriptor* on a queue row."""
    match descriptor:
        case Specific(wallets=wallets):
            return {"target_type": TargetType.SPECIFIC.value, "target_wallets": list(wallets)}
        case Followers(kol_wallet=kol_wallet):
            return {"target_type": TargetType.FOLLOWERS.value, "target_kol_wallet": kol_wallet}
        case WhaleSubscribers():
            return {"target_type": TargetType.WHALE_SUBSCRIBERS.value}
        case All():
            return {"target_type": TargetType.ALL.value}
    msg = f"unsupported target descriptor: {descriptor!r}"
    raise TypeError(msg)


class TargetResolver:
    """Expand target descriptors into recipient wallets."""

    def __init__(
        self,
        preferences: PreferenceStore,
        endpoints: EndpointDirectory,
        follows: FollowDirectory,
    ) -> None:
        self._preferences = preferences
        self._endpoints = endpoints
        self._follows = follows

    async def resolve(
        self,
        descriptor: TargetDescriptor | None,
        payload: dict[str, Any] | None = None,
    ) -> set[str]:
        """Return the wallets addressed by *descriptor*.

        Unknown descriptors resolve to an empty set. Directory timeouts
        propagate as ``LookupTimeoutError``.
        """
        match descriptor:
            case Specific(wallets=wallets):
                return {w for w in wallets if w}
            case Followers(kol_wallet=kol_wallet):
                if not kol_wallet:
                    return set()
                return set(await self._follows.trade_followers(kol_wallet))
            case WhaleSubscribers():
                usd_value = payload_number(payload or {}, "usd_value")
                return set(await self._preferences.whale_subscribers(usd_value))
            case All():
                return await self._endpoints.all_active_recipients()
            case _:
                logger.warning("Unresolvable target descriptor %r; no recipients", descriptor)
                return set()
