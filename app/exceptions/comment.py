"""Comment-related exceptions."""

from .base import AuthorizationError, NotFoundError


class CommentNotFoundError(NotFoundError):
    """Raised when a comment is not found."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message=message)


class CommentPermissionError(AuthorizationError):
    """Raised when the actor may not modify a comment."""

    def __init__(self, message: str = "You can only edit your own comments"):
        super().__init__(message=message)
