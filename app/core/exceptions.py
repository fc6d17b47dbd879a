from typing import Any, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(ServiceError):
    """Malformed or missing input. Raised before any write."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class AuthenticationError(ServiceError):
    def __init__(self, message: str = "Could not validate credentials", details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class AuthorizationError(ServiceError):
    def __init__(self, message: str = "Insufficient permissions", details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class ScopeViolation(AuthorizationError):
    """An explicit target (group, student, task) lies outside the principal's scope."""


class NotFoundError(ServiceError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ConflictError(ServiceError):
    """Unique-constraint collision."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class InternalError(ServiceError):
    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)
