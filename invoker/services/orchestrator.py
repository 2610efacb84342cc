"""Concurrent fan-out of independent operations with per-item failure isolation."""

from __future__ import annotations

import asyncio
import inspect
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

import structlog

from invoker.logging import logger
from invoker.services.exceptions import BatchValidationError, describe_error

T = TypeVar("T")


class BatchStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SETTLED = "settled"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class BatchCall(Generic[T]):
    id: str
    operation: Callable[[], Awaitable[T]]
    on_success: Callable[[T], Any] | None = None
    on_error: Callable[[Exception], Any] | None = None


@dataclass(slots=True)
class CallRecord(Generic[T]):
    id: str
    data: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True, eq=False)
class _BatchRun:
    status: BatchStatus = BatchStatus.IDLE
    errors: list[str] = field(default_factory=list)
    active_ids: set[str] = field(default_factory=set)


async def _maybe_await(value: Any) -> None:
    if inspect.isawaitable(value):
        await value


class ConcurrentOperationOrchestrator:
    """Run a batch of operations concurrently and settle all of them.

    Each ``execute_multiple()`` call keeps its own error list and active-id
    bookkeeping; ``errors`` reports the most recently started batch.
    """

    def __init__(self, max_concurrency: int | None = None) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer or None")
        self.max_concurrency = max_concurrency
        self._tracked: set[_BatchRun] = set()
        self._latest: _BatchRun | None = None

    @property
    def loading(self) -> bool:
        return any(run.status is BatchStatus.RUNNING for run in self._tracked)

    @property
    def errors(self) -> list[str]:
        if self._latest is None:
            return []
        return list(self._latest.errors)

    @property
    def status(self) -> BatchStatus:
        if self._latest is None:
            return BatchStatus.IDLE
        return self._latest.status

    @property
    def active_calls_count(self) -> int:
        return sum(len(run.active_ids) for run in self._tracked)

    async def execute_multiple(self, calls: Sequence[BatchCall[T]]) -> list[CallRecord[T]]:
        calls = list(calls)
        duplicates = sorted(call_id for call_id, count in Counter(c.id for c in calls).items() if count > 1)
        if duplicates:
            raise BatchValidationError(f"Duplicate call ids in batch: {', '.join(duplicates)}")

        run = _BatchRun(status=BatchStatus.RUNNING)
        self._tracked.add(run)
        self._latest = run
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        logger.info("batch_started", size=len(calls), max_concurrency=self.max_concurrency)

        try:
            outcomes = await asyncio.gather(
                *(self._run_call(run, call, semaphore) for call in calls),
                return_exceptions=True,
            )
        finally:
            if run.status is BatchStatus.RUNNING:
                run.status = BatchStatus.SETTLED
            run.active_ids.clear()
            self._tracked.discard(run)

        records: list[CallRecord[T]] = []
        for call, outcome in zip(calls, outcomes):
            if isinstance(outcome, CallRecord):
                records.append(outcome)
            else:
                # on_error itself raised; the item is still recorded as failed.
                records.append(CallRecord(id=call.id, error=outcome))
        logger.info(
            "batch_settled",
            size=len(records),
            failed=sum(1 for record in records if not record.ok),
        )
        return records

    def cancel_all(self) -> None:
        """Stop tracking in-flight batches; running operations are not interrupted."""

        for run in self._tracked:
            run.active_ids.clear()
            run.status = BatchStatus.CANCELLED
        self._tracked.clear()
        logger.info("batch_cancel_all")

    async def _run_call(
        self,
        run: _BatchRun,
        call: BatchCall[T],
        semaphore: asyncio.Semaphore | None,
    ) -> CallRecord[T]:
        with structlog.contextvars.bound_contextvars(call_id=call.id):
            if semaphore is None:
                return await self._invoke(run, call)
            async with semaphore:
                return await self._invoke(run, call)

    async def _invoke(self, run: _BatchRun, call: BatchCall[T]) -> CallRecord[T]:
        run.active_ids.add(call.id)
        try:
            data = await call.operation()
            run.active_ids.discard(call.id)
            if call.on_success is not None:
                await _maybe_await(call.on_success(data))
            return CallRecord(id=call.id, data=data)
        except Exception as exc:
            run.active_ids.discard(call.id)
            if call.on_error is not None:
                await _maybe_await(call.on_error(exc))
            run.errors.append(f"{call.id}: {describe_error(exc)}")
            logger.warning("batch_item_failed", error=describe_error(exc))
            return CallRecord(id=call.id, error=exc)


__all__ = [
    "BatchCall",
    "BatchStatus",
    "CallRecord",
    "ConcurrentOperationOrchestrator",
]
