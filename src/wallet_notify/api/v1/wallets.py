"""V1 wallet history endpoints — delivered notifications and unread counts."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from wallet_notify.api.dependencies import get_engine, require_admin
from wallet_notify.api.v1.schemas import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from wallet_notify.engine.client import NotifyEngine  # noqa: TC001
from wallet_notify.engine.models.delivery_record import DeliveryRecord  # noqa: TC001

router = APIRouter(
    prefix="/wallets/{wallet}",
    tags=["history"],
    dependencies=[Depends(require_admin)],
)


def _notification_resp(n: DeliveryRecord) -> dict:
    return NotificationResponse(
        id=n.id,
        wallet_address=n.wallet_address,
        type=n.type,
        title=n.title,
        body=n.body,
        data=n.data or {},
        is_read=n.is_read,
        read_at=n.read_at,
        sent_at=n.sent_at,
        created_at=n.created_at,
    ).model_dump(mode="json")


@router.get("/notifications")
async def list_notifications(
    wallet: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
    unread_only: bool = False,
    limit: int = 50,
) -> list[dict]:
    """List a wallet's notifications, newest first."""
    records = await engine.history_service.list_notifications(
        wallet, unread_only=unread_only, limit=max(1, min(limit, 500))
    )
    return [_notification_resp(n) for n in records]


@router.get("/unread-count")
async def unread_count(
    wallet: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Number of unread notifications."""
    count = await engine.history_service.unread_count(wallet)
    return UnreadCountResponse(wallet_address=wallet, unread_count=count).model_dump(mode="json")


@router.post("/notifications/read-all")
async def mark_all_read(
    wallet: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Mark every unread notification read."""
    updated = await engine.history_service.mark_all_read(wallet)
    return MarkAllReadResponse(updated=updated).model_dump(mode="json")


@router.post("/notifications/{notification_id}/read")
async def mark_read(
    wallet: str,
    notification_id: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Mark one notification read."""
    record = await engine.history_service.mark_read(wallet, notification_id)
    return _notification_resp(record)
