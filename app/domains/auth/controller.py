"""Authentication controller endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_token_service, validate_token
from app.core.rate_limit import login_rate_limiter, refresh_rate_limiter, register_rate_limiter
from app.core.security import TokenPayload, TokenService
from app.database import get_db
from app.domains.auth.service import AuthService
from app.schemas.base import ResponseSchema
from app.schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    RefreshTokenRequest,
    TokenInfo,
    TokenResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
    UserSummary,
    UserUpdateRequest,
)
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, token_service)


@router.post(
    "/register",
    response_model=ResponseSchema,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limiter)],
)
async def register(
    register_data: UserRegisterRequest, service: AuthService = Depends(get_auth_service)
):
    """Register a new user and return an access/refresh token pair."""
    user, tokens = await service.register(register_data)

    return ResponseSchema(
        message="User registered successfully",
        data=AuthResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=UserResponse.model_validate(user),
        ).to_json(),
    )


@router.post("/login", response_model=ResponseSchema, dependencies=[Depends(login_rate_limiter)])
async def login(login_data: UserLoginRequest, service: AuthService = Depends(get_auth_service)):
    """Authenticate with email and password."""
    user, tokens = await service.login(str(login_data.email), login_data.password)

    return ResponseSchema(
        message="Login successful",
        data=AuthResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=UserResponse.model_validate(user),
        ).to_json(),
    )


@router.post(
    "/refresh-token",
    response_model=ResponseSchema,
    dependencies=[Depends(refresh_rate_limiter)],
)
async def refresh_token(
    refresh_data: RefreshTokenRequest, service: AuthService = Depends(get_auth_service)
):
    """Exchange a refresh token for a new token pair."""
    tokens = await service.refresh(refresh_data.refresh_token)

    return ResponseSchema(
        message="Tokens refreshed successfully",
        data=TokenResponse(
            access_token=tokens.access_token, refresh_token=tokens.refresh_token
        ).to_json(),
    )


@router.get("/profile", response_model=ResponseSchema)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile."""
    return ResponseSchema(
        message="Profile retrieved successfully",
        data={"user": UserResponse.model_validate(current_user).to_json()},
    )


@router.put("/profile", response_model=ResponseSchema)
async def update_profile(
    update_data: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Update the authenticated user's first and/or last name."""
    user = await service.update_profile(current_user, update_data)

    return ResponseSchema(
        message="Profile updated successfully",
        data={"user": UserResponse.model_validate(user).to_json()},
    )


@router.post("/change-password", response_model=ResponseSchema)
async def change_password(
    password_data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Change the authenticated user's password."""
    await service.change_password(
        current_user, password_data.current_password, password_data.new_password
    )
    return ResponseSchema(message="Password changed successfully")


@router.post("/logout", response_model=ResponseSchema)
async def logout(current_user: User = Depends(get_current_user)):
    """Log out. Tokens are stateless, so the client simply discards them."""
    logger.info("User logged out: %s", current_user.email)
    return ResponseSchema(message="Logout successful")


@router.get("/verify-token", response_model=ResponseSchema)
async def verify_token(
    current_user: User = Depends(get_current_user),
    payload: TokenPayload = Depends(validate_token),
):
    """Check the bearer token and return the user it belongs to."""
    return ResponseSchema(
        message="Token is valid",
        data=TokenInfo(
            user=UserSummary.model_validate(current_user), expires_at=payload.expires_at
        ).to_json(),
    )
