"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for engine access and
authentication in route handlers.

Usage in a route::

    @router.post("/drain", dependencies=[Depends(require_admin)])
    async def drain(engine: NotifyEngine = Depends(get_engine)) -> ...:
        ...
"""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Header, Request

from wallet_notify.engine.client import NotifyEngine  # noqa: TC001
from wallet_notify.errors.definitions import ErrUnauthorized
from wallet_notify.errors.notify_errors import NotifyError

ErrEngineUnavailable = NotifyError(
    "notification engine is not running", status_code=503, code="engine-unavailable"
)

_BEARER = "bearer "

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> NotifyEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        NotifyError: ``engine-unavailable`` outside the app lifespan.
    """
    engine: NotifyEngine | None = getattr(request.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        raise ErrEngineUnavailable
    return engine


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def require_admin(
    engine: Annotated[NotifyEngine, Depends(get_engine)],
    authorization: Annotated[str, Header()] = "",
) -> None:
    """Require ``Authorization: Bearer <admin_token>`` when a token is configured.

    Raises:
        NotifyError: 401 if the token is missing or wrong.
    """
    expected = engine.config.admin_token
    if not expected:
        return
    if not authorization.lower().startswith(_BEARER):
        raise ErrUnauthorized
    supplied = authorization[len(_BEARER) :].strip()
    if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise ErrUnauthorized
