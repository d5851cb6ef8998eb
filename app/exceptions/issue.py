"""Issue-related exceptions."""

from .base import AuthorizationError, NotFoundError, ValidationError


class IssueNotFoundError(NotFoundError):
    """Raised when an issue is not found."""

    def __init__(self, message: str = "Issue not found"):
        super().__init__(message=message)


class IssuePermissionError(AuthorizationError):
    """Raised when the actor is neither creator nor assignee."""

    def __init__(self, message: str = "You can only edit issues you created or are assigned to"):
        super().__init__(message=message)


class AssigneeNotFoundError(ValidationError):
    """Raised when assignedTo references a user that does not exist."""

    def __init__(self, message: str = "Assigned user not found"):
        super().__init__(message=message)
