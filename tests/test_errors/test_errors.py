"""Tests for error classes and pre-defined error instances."""

from __future__ import annotations

import pytest

from wallet_notify.errors import definitions as defs
from wallet_notify.errors.notify_errors import LookupTimeoutError, NotifyError
from wallet_notify.errors.push_errors import PushTransportError

# ---------------------------------------------------------------------------
# NotifyError base class
# ---------------------------------------------------------------------------


class TestNotifyError:
    def test_default_attributes(self) -> None:
        err = NotifyError("something broke")
        assert str(err) == "something broke"
        assert err.message == "something broke"
        assert err.status_code == 500
        assert err.code == "notify-error"

    def test_custom_attributes(self) -> None:
        err = NotifyError("bad request", status_code=400, code="bad-req")
        assert err.status_code == 400
        assert err.code == "bad-req"

    def test_to_dict(self) -> None:
        assert NotifyError("nope", code="x").to_dict() == {"code": "x", "message": "nope"}

    def test_is_exception(self) -> None:
        with pytest.raises(NotifyError, match="boom"):
            raise NotifyError("boom")


# ---------------------------------------------------------------------------
# Subclasses
# ---------------------------------------------------------------------------


class TestSubclasses:
    def test_lookup_timeout(self) -> None:
        err = LookupTimeoutError("preference lookup timed out after 1s")
        assert isinstance(err, NotifyError)
        assert err.status_code == 504
        assert err.code == "lookup-timeout"

    def test_push_transport_default_status(self) -> None:
        err = PushTransportError("connection refused")
        assert err.status_code == 502
        assert err.code == "push-transport-error"

    def test_push_transport_keeps_upstream_status(self) -> None:
        assert PushTransportError("upstream 500", status_code=500).status_code == 500


# ---------------------------------------------------------------------------
# Pre-defined instances
# ---------------------------------------------------------------------------


class TestDefinitions:
    @pytest.mark.parametrize(
        ("err", "status", "code"),
        [
            (defs.ErrUnauthorized, 401, "unauthorized"),
            (defs.ErrInvalidTarget, 400, "invalid-target"),
            (defs.ErrMissingRecipients, 400, "missing-recipients"),
            (defs.ErrInvalidCategory, 400, "invalid-category"),
            (defs.ErrIntentNotFound, 404, "intent-not-found"),
            (defs.ErrNotificationNotFound, 404, "notification-not-found"),
            (defs.ErrIntentNotFailed, 409, "intent-not-failed"),
        ],
    )
    def test_definition(self, err: NotifyError, status: int, code: str) -> None:
        assert err.status_code == status
        assert err.code == code

    def test_codes_unique(self) -> None:
        errors = [v for v in vars(defs).values() if isinstance(v, NotifyError)]
        codes = [e.code for e in errors]
        assert len(codes) == len(set(codes))
