"""V1 notification trigger endpoints.

- ``POST /notifications/send`` — synchronous entry point
- ``POST /notifications/drain`` — drain one batch of due intents
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from wallet_notify.api.dependencies import get_engine, require_admin
from wallet_notify.api.v1.schemas import DrainResponse, SendRequest, SendResponse, check_category
from wallet_notify.engine.client import NotifyEngine  # noqa: TC001
from wallet_notify.errors.definitions import ErrMissingRecipients

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_admin)],
)


@router.post("/send")
async def send_notification(
    req: SendRequest,
    engine: Annotated[NotifyEngine, Depends(get_engine)],
) -> dict:
    """Deliver a notification to the given wallets right away."""
    wallets = [w for w in req.wallet_addresses if w]
    if not wallets:
        raise ErrMissingRecipients
    result = await engine.drainer.send_now(
        wallets,
        req.title,
        req.body,
        category=check_category(req.type),
        payload=req.data,
        channel=req.channel_id,
    )
    return SendResponse(sent=result.sent, failed=result.failed).model_dump(mode="json")


@router.post("/drain")
async def drain_queue(
    engine: Annotated[NotifyEngine, Depends(get_engine)],
    max_items: int | None = None,
) -> dict:
    """Process up to one batch of due notification intents."""
    limit = max_items if max_items and max_items > 0 else engine.config.queue.batch_size
    result = await engine.drainer.drain_queue(limit)
    return DrainResponse(processed=result.processed, failed=result.failed).model_dump(mode="json")
