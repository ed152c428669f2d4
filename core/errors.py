"""Application error hierarchy.

Every business-rule denial, missing record and persistence failure is raised as
an ``AppException`` subclass and rendered by the handler in ``main.py`` as
``{"message": ..., "code": ...}`` with the matching HTTP status.
"""

from typing import Any, Optional


class AppException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict = {"message": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationException(AppException):
    """Exception raised when business-level validation fails."""

    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedException(AppException):
    """Exception raised when the caller is not authenticated."""

    def __init__(self, message: str = "Not authenticated", details: Optional[Any] = None):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            details=details,
        )


class ForbiddenException(AppException):
    """Exception raised for every denial: wrong role, ban, expired trial, quota, ownership."""

    def __init__(
        self,
        message: str = "Forbidden",
        code: str = "forbidden",
        details: Optional[Any] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=403,
            details=details,
        )


class NotFoundException(AppException):
    """Exception raised when a resource is missing or hidden from the caller."""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


class PersistenceError(AppException):
    """Exception raised when the database rejects or fails a read or write."""

    def __init__(
        self, message: str = "Database error occurred", details: Optional[Any] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=message,
            status_code=500,
            details=details,
        )
