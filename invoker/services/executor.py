"""Retrying executor for a single unreliable async operation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

from invoker.config import get_settings
from invoker.domain.models import RetryOptions
from invoker.logging import logger
from invoker.services.cancellation import CancellationToken
from invoker.services.exceptions import DEFAULT_ERROR_TEXT, OperationFailedError, describe_error
from invoker.services.notifications import LoggingNotificationSink, NotificationSink
from invoker.utils.backoff import backoff_delay

T = TypeVar("T")
AsyncOperation = Callable[..., Awaitable[T]]


class OperationStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class OperationState(Generic[T]):
    data: T | None = None
    loading: bool = False
    error: str | None = None
    retry_count: int = 0
    is_retrying: bool = False
    status: OperationStatus = OperationStatus.IDLE


StateListener = Callable[[OperationState[Any]], None]


class OperationExecutor(Generic[T]):
    """Drive one async operation through a bounded exponential-backoff retry loop.

    Every ``execute()`` issues a fresh cancellation token and invalidates the
    previous one, so only the most recently started chain may mutate state.
    Failures never propagate out of ``execute()``/``retry()``: a terminal
    failure lands in ``state.error`` and the call returns ``None``.
    """

    def __init__(
        self,
        operation: AsyncOperation[T],
        options: RetryOptions | None = None,
        *,
        notifier: NotificationSink | None = None,
        name: str = "operation",
        on_state_change: StateListener | None = None,
    ) -> None:
        self._operation = operation
        self.options = options or get_settings().retry
        self.notifier = notifier or LoggingNotificationSink()
        self.name = name
        self._on_state_change = on_state_change
        self._state: OperationState[T] = OperationState()
        self._token: CancellationToken | None = None
        self._last_call: tuple[tuple[Any, ...], dict[str, Any]] | None = None

    @property
    def state(self) -> OperationState[T]:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._token is not None

    async def execute(self, *args: Any, **kwargs: Any) -> T | None:
        self._last_call = (args, kwargs)
        result, _ = await self._run(args, kwargs)
        return result

    async def retry(self) -> T | None:
        """Replay the arguments of the last ``execute()`` call."""

        if self._last_call is None:
            logger.warning("operation_retry_without_previous_call", operation=self.name)
            return None
        args, kwargs = self._last_call
        result, _ = await self._run(args, kwargs)
        return result

    def cancel(self) -> None:
        token = self._token
        self._token = None
        if token is None:
            self._set_state(loading=False, is_retrying=False)
            return
        token.cancel()
        logger.info(
            "operation_cancelled",
            operation=self.name,
            retry_count=self._state.retry_count,
        )
        self._set_state(loading=False, is_retrying=False, status=OperationStatus.CANCELLED)

    def reset(self) -> None:
        self.cancel()
        self._state = OperationState()
        self._notify_listener()

    def as_operation(self, *args: Any, **kwargs: Any) -> Callable[[], Awaitable[T | None]]:
        """Bind arguments into a zero-argument callable for batch fan-out.

        The returned coroutine function raises ``OperationFailedError`` only when its
        own chain ends in terminal failure so a batch can record it per item.
        """

        async def _operation() -> T | None:
            self._last_call = (args, kwargs)
            result, failed = await self._run(args, kwargs)
            if failed:
                raise OperationFailedError(self._state.error or DEFAULT_ERROR_TEXT)
            return result

        return _operation

    async def _run(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[T | None, bool]:
        """Run one invocation chain; the flag is True only if this chain failed terminally."""

        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        self._set_state(
            loading=True,
            error=None,
            retry_count=0,
            is_retrying=False,
            status=OperationStatus.RUNNING,
        )
        try:
            with structlog.contextvars.bound_contextvars(operation=self.name):
                return await self._attempt_loop(token, args, kwargs)
        except asyncio.CancelledError:
            if self._token is token:
                self._token = None
                self._set_state(loading=False, is_retrying=False, status=OperationStatus.CANCELLED)
            raise

    async def _attempt_loop(
        self,
        token: CancellationToken,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> tuple[T | None, bool]:
        options = self.options
        retry_count = 0
        while True:
            try:
                result = await self._operation(*args, **kwargs)
            except Exception as exc:
                if not token.is_valid():
                    return None, False
                message = describe_error(exc)
                if retry_count < options.max_retries:
                    delay = backoff_delay(retry_count, options.retry_delay)
                    retry_count += 1
                    logger.warning(
                        "operation_retry_scheduled",
                        attempt=retry_count,
                        max_attempts=options.max_retries + 1,
                        delay=delay,
                        error=message,
                    )
                    self._set_state(
                        loading=False,
                        is_retrying=True,
                        retry_count=retry_count,
                        status=OperationStatus.RETRYING,
                    )
                    self.notifier.info(
                        f"Retrying in {delay:g} seconds... ({retry_count}/{options.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    if not token.is_valid():
                        return None, False
                    self._set_state(loading=True)
                    continue

                self._release(token)
                self._set_state(
                    data=None,
                    loading=False,
                    error=message,
                    is_retrying=False,
                    status=OperationStatus.FAILED,
                )
                logger.error(
                    "operation_failed",
                    attempts=retry_count + 1,
                    error=message,
                    exc_info=exc,
                )
                if options.show_error_toast:
                    self.notifier.error(
                        options.error_message
                        or f"Failed after {options.max_retries + 1} attempts: {message}"
                    )
                return None, True

            if not token.is_valid():
                return None, False
            self._release(token)
            self._set_state(
                data=result,
                loading=False,
                error=None,
                is_retrying=False,
                status=OperationStatus.SUCCEEDED,
            )
            if options.show_success_toast and options.success_message:
                self.notifier.success(options.success_message)
            return result, False

    def _release(self, token: CancellationToken) -> None:
        if self._token is token:
            self._token = None

    def _set_state(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self._notify_listener()

    def _notify_listener(self) -> None:
        if self._on_state_change is not None:
            self._on_state_change(self._state)


REPORTS_RETRY_OPTIONS = RetryOptions(
    max_retries=2,
    retry_delay=1.5,
    show_error_toast=True,
    error_message="Failed to load report data. Please try again.",
)


def reports_executor(
    operation: AsyncOperation[T],
    *,
    notifier: NotificationSink | None = None,
    name: str = "reports",
    on_state_change: StateListener | None = None,
    **overrides: Any,
) -> OperationExecutor[T]:
    """Executor preset used by report pages; keyword overrides win over the preset."""

    options = RetryOptions(**{**REPORTS_RETRY_OPTIONS.model_dump(), **overrides})
    return OperationExecutor(
        operation,
        options,
        notifier=notifier,
        name=name,
        on_state_change=on_state_change,
    )


__all__ = [
    "OperationExecutor",
    "OperationState",
    "OperationStatus",
    "REPORTS_RETRY_OPTIONS",
    "reports_executor",
]
