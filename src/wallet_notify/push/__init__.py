"""Push transport — Expo push client, batch dispatcher, channel routing.

Provides:
- ``ExpoPushClient`` — posts message batches, returns per-message tickets
- ``BatchDispatcher`` — chunks endpoints and delivers chunks concurrently
- ``channel_for`` — category → provider notification channel
"""

from __future__ import annotations

from wallet_notify.push.channels import channel_for
from wallet_notify.push.client import ExpoPushClient
from wallet_notify.push.dispatcher import BatchDispatcher, DispatchResult
from wallet_notify.push.models import Endpoint, PushMessage, PushTicket, TicketOutcome

__all__ = [
    "BatchDispatcher",
    "DispatchResult",
    "Endpoint",
    "ExpoPushClient",
    "PushMessage",
    "PushTicket",
    "TicketOutcome",
    "channel_for",
]
