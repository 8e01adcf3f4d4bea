from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hrm_user_service.clients.hr import HRClient
from hrm_user_service.clients.permission import PermissionClient
from hrm_user_service.core.config import get_settings
from hrm_user_service.core.errors import AuthorizationError, PermissionDeniedError
from hrm_user_service.core.jwt import AccessClaims, TokenCodec
from hrm_user_service.services.auth import AuthService
from hrm_user_service.services.employees import EmployeeInfoResolver
from hrm_user_service.services.permissions import RolePermissionAggregator
from hrm_user_service.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_permission_client() -> PermissionClient:
    settings = get_settings()
    return PermissionClient(settings.permission_service_url, settings.rpc_timeout_seconds)


@lru_cache
def get_hr_client() -> HRClient:
    settings = get_settings()
    return HRClient(settings.hr_service_url, settings.rpc_timeout_seconds)


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(get_settings())


# PUBLIC_INTERFACE
def get_auth_service() -> AuthService:
    """FastAPI dependency returning the auth orchestrator wired to the process-wide clients."""
    return AuthService(
        get_settings(),
        RolePermissionAggregator(get_permission_client()),
        EmployeeInfoResolver(get_hr_client()),
        codec=get_token_codec(),
    )


# PUBLIC_INTERFACE
def get_user_service() -> UserService:
    permission_client = get_permission_client()
    return UserService(RolePermissionAggregator(permission_client), permission_client)


# PUBLIC_INTERFACE
def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Extract the raw token from an ``Authorization: Bearer <token>`` header."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthorizationError("Authorization header is missing or not a Bearer token")
    return credentials.credentials


# PUBLIC_INTERFACE
def get_current_claims(
    token: str = Depends(get_bearer_token),
    codec: TokenCodec = Depends(get_token_codec),
) -> AccessClaims:
    """Verify the access token and return its claims without touching the store.

    Entitlements come from the token's issuance-time snapshot.
    """
    return codec.verify_access(token)


# PUBLIC_INTERFACE
def require_permissions(required: list[str]):
    """Dependency factory that enforces permission checks against the token snapshot."""

    def _checker(claims: AccessClaims = Depends(get_current_claims)) -> AccessClaims:
        missing = [p for p in required if p not in claims.permission_codes]
        if missing:
            raise PermissionDeniedError(f"Missing permissions: {', '.join(missing)}")
        return claims

    return _checker
