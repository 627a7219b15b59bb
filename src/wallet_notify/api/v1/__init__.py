"""V1 REST API routes.

Combines all sub-routers under the ``/v1`` prefix.
"""

from fastapi import APIRouter

from wallet_notify.api.v1.intents import router as intents_router
from wallet_notify.api.v1.notifications import router as notifications_router
from wallet_notify.api.v1.wallets import router as wallets_router

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(notifications_router)
v1_router.include_router(intents_router)
v1_router.include_router(wallets_router)

__all__ = ["v1_router"]
