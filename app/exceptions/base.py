# ruff: noqa: D107
"""Base exception classes."""

from typing import Any

from fastapi import HTTPException


class BaseAppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={"message": message, "error_code": error_code, "details": details},
            headers=headers,
        )


class ValidationError(BaseAppException):
    """Exception raised when request data is malformed or out of range."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class AuthenticationError(BaseAppException):
    """Exception raised for a missing, invalid or expired credential."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_ERROR",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(BaseAppException):
    """Exception raised when a valid user lacks permission on a resource."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, status_code=403, error_code="PERMISSION_DENIED")


class NotFoundError(BaseAppException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, status_code=404, error_code="NOT_FOUND", details=details)


class ConflictError(BaseAppException):
    """Exception raised on a uniqueness violation."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message=message, status_code=409, error_code="CONFLICT")


class FileUploadError(BaseAppException):
    """Exception raised when an upload is rejected (type, size or count)."""

    def __init__(self, message: str = "File upload failed"):
        super().__init__(message=message, status_code=400, error_code="FILE_UPLOAD_ERROR")


class RateLimitError(BaseAppException):
    """Exception raised when a client exceeds its attempt budget."""

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        retry_after: int | None = None,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMITED",
            details={"retry_after": retry_after},
            headers=headers,
        )


class DatabaseError(BaseAppException):
    """Exception raised when a store operation fails unexpectedly."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message=message, status_code=500, error_code="DATABASE_ERROR")
