"""Authentication and identity exceptions."""

from .base import AuthenticationError, ConflictError


class InvalidCredentialsError(AuthenticationError):
    """Raised on a failed login. Unknown email and wrong password look the same."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message)


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer or refresh token cannot be verified."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message)


class UserAlreadyExistsError(ConflictError):
    """Raised when registering an email that is already taken."""

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message=message)
