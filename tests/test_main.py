"""Tests for wallet_notify.main entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest


def test_main_calls_uvicorn_run() -> None:
    with patch("wallet_notify.main.uvicorn.run") as mock_run:
        from wallet_notify.main import main

        main()
        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] == "wallet_notify.api.app:create_app"
        assert kwargs["factory"] is True
        assert kwargs["port"] == 3010
        assert kwargs["log_level"] == "info"


def test_main_reads_server_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WALLETNOTIFY_SERVER__PORT", "9100")
    monkeypatch.setenv("WALLETNOTIFY_DEBUG", "true")
    with patch("wallet_notify.main.uvicorn.run") as mock_run:
        from wallet_notify.main import main

        main()
    kwargs = mock_run.call_args[1]
    assert kwargs["port"] == 9100
    assert kwargs["log_level"] == "debug"
