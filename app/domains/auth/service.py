# app/domains/auth/service.py
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import (
    TokenPair,
    TokenService,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from app.exceptions.auth import (
    InvalidCredentialsError,
    InvalidTokenError,
    UserAlreadyExistsError,
)
from app.exceptions.base import AuthenticationError, DatabaseError, NotFoundError
from app.schemas.user import UserRegisterRequest, UserUpdateRequest
from models import User

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, login, token refresh and profile management."""

    def __init__(self, db: AsyncSession, token_service: TokenService):
        self.db = db
        self.tokens = token_service

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email, case-insensitively."""
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def register(self, data: UserRegisterRequest) -> tuple[User, TokenPair]:
        """Create a user and issue its first token pair."""
        email = str(data.email).lower()
        if await self.get_user_by_email(email):
            raise UserAlreadyExistsError()

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
        )

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            # Lost a race against a concurrent registration of the same email
            await self.db.rollback()
            raise UserAlreadyExistsError() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to register user: {str(e)}") from e

        logger.info("New user registered: %s", user.email)
        return user, self.tokens.create_token_pair(user.id, user.email)

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Check credentials and issue a token pair."""
        user = await self.get_user_by_email(email)
        password_hash = user.password_hash if user is not None else dummy_password_hash()
        if not verify_password(password, password_hash) or user is None:
            logger.info("Failed login attempt for %s", email.lower())
            raise InvalidCredentialsError()

        logger.info("User logged in: %s", user.email)
        return user, self.tokens.create_token_pair(user.id, user.email)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a valid refresh token for a new token pair."""
        payload = self.tokens.verify_refresh_token(refresh_token)
        user = await self.get_user_by_id(payload.user_id)
        if user is None:
            raise InvalidTokenError("Invalid refresh token")
        return self.tokens.create_token_pair(user.id, user.email)

    async def update_profile(self, user: User, data: UserUpdateRequest) -> User:
        """Update first/last name; absent fields are left untouched."""
        if data.first_name is not None:
            user.first_name = data.first_name
        if data.last_name is not None:
            user.last_name = data.last_name

        try:
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to update profile: {str(e)}") from e

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one."""
        stored = await self.get_user_by_id(user.id)
        if stored is None:
            raise NotFoundError("User not found")
        if not verify_password(current_password, stored.password_hash):
            raise AuthenticationError("Current password is incorrect")

        try:
            stored.password_hash = hash_password(new_password)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to change password: {str(e)}") from e

        logger.info("Password changed for user: %s", stored.email)
