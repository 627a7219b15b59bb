"""ORM models for the notification pipeline.

Import :data:`ALL_MODELS` for migration and table creation.
"""

from wallet_notify.engine.models.base import Base, TimestampMixin
from wallet_notify.engine.models.delivery_record import DeliveryRecord
from wallet_notify.engine.models.kol_follow import KolFollow
from wallet_notify.engine.models.notification_intent import (
    IntentStatus,
    NotificationIntent,
    TargetType,
)
from wallet_notify.engine.models.push_token import PushToken
from wallet_notify.engine.models.recipient_preference import RecipientPreference
from wallet_notify.engine.models.unread_counter import UnreadCounter

ALL_MODELS: list[type[Base]] = [
    NotificationIntent,
    RecipientPreference,
    PushToken,
    KolFollow,
    DeliveryRecord,
    UnreadCounter,
]

__all__ = [
    "ALL_MODELS",
    "Base",
    "DeliveryRecord",
    "IntentStatus",
    "KolFollow",
    "NotificationIntent",
    "PushToken",
    "RecipientPreference",
    "TargetType",
    "TimestampMixin",
    "UnreadCounter",
]
