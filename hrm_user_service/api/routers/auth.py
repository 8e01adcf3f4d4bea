from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hrm_user_service.core.db import get_db
from hrm_user_service.deps.auth import get_auth_service, get_bearer_token
from hrm_user_service.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UserOut,
)
from hrm_user_service.schemas.common import ErrorResponse
from hrm_user_service.services.auth import AuthService

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
    description="Creates a user and its active account in one transaction. The password is stored hashed.",
    operation_id="auth_register",
    responses={409: {"model": ErrorResponse}},
)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> UserOut:
    """Register a new user account."""
    return auth.register(db, payload)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login and receive access/refresh tokens",
    description="Verifies credentials and returns JWT access/refresh tokens with the user's employee, roles and permissions.",
    operation_id="auth_login",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate a user and issue JWT tokens."""
    return auth.login(db, payload.username, payload.password)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user context",
    description="Introspects the Bearer access token and returns the user, employee, roles and permissions.",
    operation_id="auth_me",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def me(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> MeResponse:
    """Return authenticated context for the token holder."""
    return auth.decode_token(db, token)


@router.post(
    "/auth/refresh-token",
    response_model=TokenPair,
    summary="Refresh tokens",
    description="Exchanges a refresh token for a new access/refresh pair. Expired refresh tokens answer 401 with code token_expired.",
    operation_id="auth_refresh",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def refresh(
    payload: RefreshRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> TokenPair:
    """Refresh access/refresh tokens."""
    return auth.refresh_token(db, payload.refresh_token)
