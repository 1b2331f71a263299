from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WritePermissionError(ServiceError):
    """The principal's role may not create, update or delete this entity."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class ScopeForbiddenError(ServiceError):
    """The row exists but lies outside the principal's scope."""

    def __init__(self, message: str = "Not allowed to access this resource") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationFailedError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class TermOperationError(ServiceError):
    """The store aborted a term transaction. Nothing was persisted; the caller may retry."""

    retryable = True

    def __init__(self, message: str = "Term operation failed") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class TermInvariantError(ServiceError):
    """More or fewer than one Active term after a committed write. Internal bug, never user input."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
