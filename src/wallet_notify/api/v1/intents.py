"""V1 intent endpoints — queue, inspect and re-queue notification intents."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from wallet_notify.api.dependencies import get_engine, require_admin
from wallet_notify.api.v1.schemas import IntentCreateRequest, IntentResponse, check_category
from wallet_notify.engine.client import NotifyEngine  # noqa: TC001
from wallet_notify.engine.models.notification_intent import NotificationIntent  # noqa: TC001

router = APIRouter(prefix="/intents", tags=["intents"], dependencies=[Depends(require_admin)])


def _intent_resp(i: NotificationIntent) -> dict:
    return IntentResponse(
        id=i.id,
        target_type=i.target_type,
        target_wallets=i.target_wallets,
        target_kol_wallet=i.target_kol_wallet,
        type=i.notification_type,
        title=i.title,
        body=i.body,
        data=i.data or {},
        status=i.status,
        processed_count=i.processed_count,
        failed_count=i.failed_count,
        error_message=i.error_message,
        scheduled_for=i.scheduled_for,
        started_at=i.started_at,
        completed_at=i.completed_at,
        created_at=i.created_at,
    ).model_dump(mode="json")


@router.post("", status_code=201)
async def create_intent(
    req: IntentCreateRequest,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Queue a notification intent for the next drain."""
    intent = await engine.queue_service.enqueue(
        req.target.to_descriptor(),
        check_category(req.type),
        req.title,
        req.body,
        req.data,
        scheduled_for=req.scheduled_for,
    )
    return _intent_resp(intent)


@router.get("")
async def list_intents(
    engine: Annotated[NotifyEngine, Depends(get_engine)],
    status: str | None = None,
    limit: int = 50,
) -> list[dict]:
    """List intents, most recently scheduled first."""
    intents = await engine.queue_service.list_intents(status=status, limit=max(1, min(limit, 500)))
    return [_intent_resp(i) for i in intents]


@router.get("/{intent_id}")
async def get_intent(
    intent_id: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Get one intent, including its counts and error message."""
    return _intent_resp(await engine.queue_service.get_intent(intent_id))


@router.post("/{intent_id}/requeue", status_code=201)
async def requeue_intent(
    intent_id: str,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Queue a fresh copy of a failed intent."""
    return _intent_resp(await engine.queue_service.requeue(intent_id))
