"""Push data models — endpoints, messages and delivery tickets.

Matches the Expo push API contract:
``POST /--/api/v2/push/send`` with a JSON array of messages, answered by
``{"data": [ticket, ...]}`` in the same order.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

# Ticket ``details.error`` values meaning the token will never work again.
PERMANENT_ERRORS = frozenset({"DeviceNotRegistered", "InvalidCredentials"})


@dataclass(frozen=True)
class Endpoint:
    """A push token owned by a wallet. Identity is the (wallet, token) pair."""

    wallet_address: str
    token: str


@dataclass
class PushMessage:
    """One addressed push message."""

    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str | None = "default"
    channel_id: str = "default"
    priority: str = "high"
    ttl: int = 86400

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the Expo wire format."""
        msg: dict[str, Any] = {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "channelId": self.channel_id,
            "priority": self.priority,
            "ttl": self.ttl,
        }
        if self.sound:
            msg["sound"] = self.sound
        return msg


class TicketOutcome(enum.StrEnum):
    """Per-message delivery outcome."""

    OK = "ok"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


@dataclass(frozen=True)
class PushTicket:
    """A provider's per-message result.

    Attributes:
        outcome: ok, transient error or permanent error.
        error: Provider error code (``details.error``) or a local reason.
        message: Human-readable provider message.
        ticket_id: Provider ticket id for receipt lookups (ok tickets only).
    """

    outcome: TicketOutcome
    error: str = ""
    message: str = ""
    ticket_id: str = ""

    @property
    def ok(self) -> bool:
        """Whether the provider accepted the message."""
        return self.outcome is TicketOutcome.OK

    @property
    def permanent(self) -> bool:
        """Whether the endpoint should be deactivated."""
        return self.outcome is TicketOutcome.PERMANENT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PushTicket:
        """Parse one element of the Expo ``data`` array."""
        status = data.get("status")
        if status == "ok":
            return cls(outcome=TicketOutcome.OK, ticket_id=str(data.get("id", "")))
        details = data.get("details") or {}
        error = str(details.get("error", "")) if isinstance(details, dict) else ""
        outcome = TicketOutcome.PERMANENT if error in PERMANENT_ERRORS else TicketOutcome.TRANSIENT
        return cls(outcome=outcome, error=error, message=str(data.get("message", "")))

    @classmethod
    def transient(cls, reason: str, message: str = "") -> PushTicket:
        """Build a locally synthesized transient failure."""
        return cls(outcome=TicketOutcome.TRANSIENT, error=reason, message=message)
