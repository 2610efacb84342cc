"""Pydantic models shared across the executor, orchestrator and loaders."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RetryOptions(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, gt=0, description="Base backoff delay in seconds.")
    show_error_toast: bool = True
    show_success_toast: bool = False
    success_message: str | None = None
    error_message: str | None = None


class OverviewSnapshot(BaseModel):
    students: Any | None = None
    coaches: Any | None = None
    branches: Any | None = None
    courses: Any | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors


__all__ = [
    "RetryOptions",
    "OverviewSnapshot",
]
