"""Cooperative cancellation handles for executor invocation chains."""

from __future__ import annotations


class CancellationToken:
    """Per-invocation flag checked after every suspension point."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def is_valid(self) -> bool:
        return not self._cancelled


__all__ = ["CancellationToken"]
