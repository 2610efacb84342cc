"""Exponential backoff schedule shared by the retrying executors."""

from __future__ import annotations


def backoff_delay(attempt_index: int, base_delay: float) -> float:
    """Return ``base_delay * 2 ** attempt_index`` seconds, without jitter."""

    return base_delay * (2 ** attempt_index)


__all__ = ["backoff_delay"]
