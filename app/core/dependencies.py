# app/core/dependencies.py
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import TokenPayload, TokenService
from app.database import get_db
from app.exceptions.base import AuthenticationError
from models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_token_service() -> TokenService:
    """Token service built from the current settings."""
    return TokenService()


async def validate_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """Validate and decode the bearer access token.

    Returns:
        TokenPayload: Decoded token payload

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required")

    return token_service.verify_access_token(credentials.credentials)


async def get_current_user(
    request: Request,
    payload: TokenPayload = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from JWT payload.

    Returns:
        User: Current authenticated user

    Raises:
        AuthenticationError: If the token subject no longer exists
    """
    user = await db.get(User, payload.user_id)
    if user is None:
        logger.info("Token subject %s no longer exists", payload.user_id)
        raise AuthenticationError("User not found")

    # Add user info to request state for logging
    request.state.user_id = user.id

    return user
