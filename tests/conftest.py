"""Shared pytest fixtures for executor and orchestrator tests."""

from __future__ import annotations

import asyncio

import pytest

_real_sleep = asyncio.sleep


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def success(self, message: str) -> None:
        self.events.append(("success", message))

    def error(self, message: str) -> None:
        self.events.append(("error", message))

    def messages(self, level: str) -> list[str]:
        return [message for kind, message in self.events if kind == level]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """Record backoff delays instead of waiting them out."""

    recorded: list[float] = []

    async def _fake_sleep(delay, *args, **kwargs):
        recorded.append(delay)
        await _real_sleep(0)

    monkeypatch.setattr("invoker.services.executor.asyncio.sleep", _fake_sleep)
    return recorded
