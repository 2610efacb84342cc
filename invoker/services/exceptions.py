"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class OperationFailedError(ServiceError):
    """Raised by an executor's batch adapter once retries are exhausted."""


class BatchValidationError(ServiceError):
    pass


class BackendError(ServiceError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


DEFAULT_ERROR_TEXT = "An unexpected error occurred"


def describe_error(exc: BaseException) -> str:
    """Human-readable message for a failed operation."""

    text = str(exc).strip()
    return text or DEFAULT_ERROR_TEXT
