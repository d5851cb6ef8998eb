"""Security related functions: password hashing and JWT issuance/verification."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from app.core.config import settings
from app.exceptions.auth import InvalidTokenError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """A throwaway hash at the configured cost, checked when no user matches
    so unknown and known emails take the same time to reject.
    """
    return hash_password("not-a-real-password")


@dataclass(frozen=True)
class TokenPayload:
    user_id: UUID
    email: str
    issued_at: datetime
    expires_at: datetime
    token_type: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """
    Issues and verifies signed, time-bounded access and refresh tokens.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so neither kind verifies as the other. Every verification
    failure (bad signature, expiry, malformed token, wrong type, bad subject)
    surfaces as the same ``InvalidTokenError``.

    :ivar access_secret: Secret used to sign access tokens.
    :ivar refresh_secret: Secret used to sign refresh tokens.
    :ivar access_lifetime: Lifetime of access tokens.
    :ivar refresh_lifetime: Lifetime of refresh tokens.
    """

    def __init__(
        self,
        access_secret: str | None = None,
        refresh_secret: str | None = None,
        algorithm: str | None = None,
        access_lifetime: timedelta | None = None,
        refresh_lifetime: timedelta | None = None,
    ):
        self.access_secret = access_secret or settings.jwt_secret
        self.refresh_secret = refresh_secret or settings.jwt_refresh_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_lifetime = access_lifetime or timedelta(
            minutes=settings.access_token_expire_minutes
        )
        self.refresh_lifetime = refresh_lifetime or timedelta(
            days=settings.refresh_token_expire_days
        )

    def create_access_token(self, user_id: UUID, email: str) -> str:
        return self._encode(user_id, email, ACCESS_TOKEN_TYPE)

    def create_refresh_token(self, user_id: UUID, email: str) -> str:
        return self._encode(user_id, email, REFRESH_TOKEN_TYPE)

    def create_token_pair(self, user_id: UUID, email: str) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(user_id, email),
            refresh_token=self.create_refresh_token(user_id, email),
        )

    def verify_access_token(self, token: str) -> TokenPayload:
        return self._decode(token, ACCESS_TOKEN_TYPE, "Invalid access token")

    def verify_refresh_token(self, token: str) -> TokenPayload:
        return self._decode(token, REFRESH_TOKEN_TYPE, "Invalid refresh token")

    def _encode(self, user_id: UUID, email: str, token_type: str) -> str:
        now = datetime.now(timezone.utc)
        if token_type == ACCESS_TOKEN_TYPE:
            secret, lifetime = self.access_secret, self.access_lifetime
        else:
            secret, lifetime = self.refresh_secret, self.refresh_lifetime
        claims = {
            "sub": str(user_id),
            "email": email,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str, message: str) -> TokenPayload:
        secret = self.access_secret if token_type == ACCESS_TOKEN_TYPE else self.refresh_secret
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
            if claims.get("type") != token_type:
                raise jwt.InvalidTokenError("unexpected token type")
            return TokenPayload(
                user_id=UUID(claims["sub"]),
                email=claims.get("email", ""),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                token_type=token_type,
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.debug("Rejected %s token: %s", token_type, e)
            raise InvalidTokenError(message) from e

