from __future__ import annotations

import pytest
from pydantic import ValidationError

from invoker.config import InvokerSettings


def test_defaults_match_executor_defaults(monkeypatch):
    monkeypatch.chdir("/")
    settings = InvokerSettings()

    assert settings.retry.max_retries == 3
    assert settings.retry.retry_delay == pytest.approx(1.0)
    assert settings.retry.show_error_toast is True
    assert settings.retry.show_success_toast is False
    assert settings.batch.max_concurrency is None
    assert settings.backend.auth_token is None


def test_nested_environment_overrides(monkeypatch):
    monkeypatch.setenv("INVOKER_RETRY__MAX_RETRIES", "5")
    monkeypatch.setenv("INVOKER_RETRY__RETRY_DELAY", "0.25")
    monkeypatch.setenv("INVOKER_BATCH__MAX_CONCURRENCY", "4")
    monkeypatch.setenv("INVOKER_BACKEND__AUTH_TOKEN", "  ")

    settings = InvokerSettings()

    assert settings.retry.max_retries == 5
    assert settings.retry.retry_delay == pytest.approx(0.25)
    assert settings.batch.max_concurrency == 4
    assert settings.backend.auth_token is None


def test_invalid_retry_delay_is_rejected(monkeypatch):
    monkeypatch.setenv("INVOKER_RETRY__RETRY_DELAY", "0")

    with pytest.raises(ValidationError):
        InvokerSettings()
