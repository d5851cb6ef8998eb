"""File attachment exceptions."""

from .base import AuthorizationError, NotFoundError


class AttachmentNotFoundError(NotFoundError):
    """Raised when a file record or its blob is missing."""

    def __init__(self, message: str = "File not found"):
        super().__init__(message=message)


class AttachmentPermissionError(AuthorizationError):
    """Raised when the actor may not upload to or delete from an issue."""

    def __init__(self, message: str = "You do not have permission to manage this file"):
        super().__init__(message=message)
