"""User-facing notification sinks the executors report to."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from invoker.logging import logger


@runtime_checkable
class NotificationSink(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotificationSink:
    """Forward notifications to the structured logger."""

    def info(self, message: str) -> None:
        logger.info("notification_info", message=message)

    def success(self, message: str) -> None:
        logger.info("notification_success", message=message)

    def error(self, message: str) -> None:
        logger.error("notification_error", message=message)


class NullNotificationSink:
    def info(self, message: str) -> None:
        return None

    def success(self, message: str) -> None:
        return None

    def error(self, message: str) -> None:
        return None


__all__ = ["NotificationSink", "LoggingNotificationSink", "NullNotificationSink"]
