"""Authentication orchestration: register, login, token introspection and refresh.

Each flow combines the local credential store, the Permission service (roles
and permissions, load-bearing), the HR service (employee affiliation,
best-effort) and the token codec. The service keeps no per-request state; the
request-scoped ``Session`` is passed to every call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy.orm import Session

from hrm_user_service.core.config import Settings
from hrm_user_service.core.errors import (
    AccountInactiveError,
    DependencyError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from hrm_user_service.core.jwt import TokenCodec
from hrm_user_service.core.security import burn_password_check, hash_password, verify_password
from hrm_user_service.models.user import Account, User
from hrm_user_service.schemas.auth import (
    AccountOut,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    TokenPair,
    UserOut,
)
from hrm_user_service.services.credentials import PROFILE_FIELDS, CredentialStore
from hrm_user_service.services.employees import EmployeeInfo, EmployeeInfoResolver
from hrm_user_service.services.permissions import RolePermissionAggregator, RolesAndPerms

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        settings: Settings,
        aggregator: RolePermissionAggregator,
        resolver: EmployeeInfoResolver,
        codec: TokenCodec | None = None,
    ) -> None:
        self.settings = settings
        self.codec = codec or TokenCodec(settings)
        self.aggregator = aggregator
        self.resolver = resolver

    @property
    def access_token_expires_in(self) -> int:
        return int(self.codec.access_ttl.total_seconds())

    # PUBLIC_INTERFACE
    def register(self, db: Session, payload: RegisterRequest) -> UserOut:
        """Create a user and its active account atomically.

        Raises:
            ConflictError: username, phone or email already taken.
        """
        password_hash = hash_password(payload.password)
        profile = payload.model_dump(include=set(PROFILE_FIELDS))
        user, account = CredentialStore(db).create_user_and_account(profile, payload.username, password_hash)
        logger.info("User registered", extra={"user_id": user.id, "account_id": account.id})
        return UserOut.model_validate(user)

    # PUBLIC_INTERFACE
    def login(self, db: Session, username: str, password: str) -> LoginResponse:
        """Verify credentials and issue an access/refresh token pair.

        Unknown usernames and wrong passwords produce the same
        ``InvalidCredentialsError``. An inactive account is rejected with
        ``AccountInactiveError`` before the password is compared.
        """
        store = CredentialStore(db)
        try:
            account = store.find_account_by_username(username)
        except NotFoundError:
            burn_password_check(password)
            logger.info("Login rejected", extra={"reason": "invalid_credentials"})
            raise InvalidCredentialsError() from None

        if not account.is_active:
            logger.info("Login rejected", extra={"reason": "account_inactive", "account_id": account.id})
            raise AccountInactiveError()
        if not verify_password(password, account.password):
            logger.info("Login rejected", extra={"reason": "invalid_credentials", "account_id": account.id})
            raise InvalidCredentialsError()

        user = store.find_user_by_account(account)
        entitlements, employee = self._fetch_context(user.id, step="login")
        access_token, refresh_token = self._mint(user.id, entitlements, employee)

        logger.info("User logged in", extra={"user_id": user.id, "employee_id": employee.employee_id})
        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.access_token_expires_in,
            user=UserOut.model_validate(user),
            account=AccountOut.model_validate(account),
            employee=employee.employee,
            roles=entitlements.roles,
            perms=entitlements.perms,
        )

    # PUBLIC_INTERFACE
    def decode_token(self, db: Session, token: str) -> MeResponse:
        """Introspect an access token and return the caller's current context.

        The account status and entitlements are re-read, so a deactivated
        account is rejected even while its token is unexpired. Nothing is minted.
        """
        claims = self.codec.verify_access(token)
        user, _ = self._load_active(db, claims.user_id)
        entitlements, employee = self._fetch_context(user.id, step="decode token")
        return MeResponse(
            user=UserOut.model_validate(user),
            employee=employee.employee,
            roles=entitlements.roles,
            perms=entitlements.perms,
        )

    # PUBLIC_INTERFACE
    def refresh_token(self, db: Session, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair carrying a fresh permission snapshot.

        Raises:
            TokenExpiredError: the refresh token is expired; the client must log in again.
            InvalidTokenError: any other verification failure.
            AccountInactiveError: the account was deactivated since issuance.
        """
        claims = self.codec.verify_refresh(refresh_token)
        user, _ = self._load_active(db, claims.user_id)
        entitlements, employee = self._fetch_context(user.id, step="refresh token")
        access_token, new_refresh_token = self._mint(user.id, entitlements, employee)
        logger.info("Tokens refreshed", extra={"user_id": user.id})
        return TokenPair(
            access_token=access_token,
            refresh_token=new_refresh_token,
            token_type="Bearer",
            expires_in=self.access_token_expires_in,
        )

    def _load_active(self, db: Session, user_id: int) -> tuple[User, Account]:
        store = CredentialStore(db)
        try:
            user = store.find_user_by_id(user_id)
            account = store.find_account_by_user_id(user_id)
        except NotFoundError as exc:
            raise InvalidTokenError("Token subject no longer exists") from exc
        if not account.is_active:
            raise AccountInactiveError()
        return user, account

    def _fetch_context(self, user_id: int, *, step: str) -> tuple[RolesAndPerms, EmployeeInfo]:
        # Both lookups complete before the caller mints anything.
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="auth-fanout") as pool:
            entitlements_future = pool.submit(self.aggregator.get_roles_and_perms, user_id)
            employee_future = pool.submit(self.resolver.get_employee_info, user_id)
            try:
                entitlements = entitlements_future.result()
            except DependencyError as exc:
                logger.error("Permission lookup failed", extra={"step": step, "user_id": user_id})
                raise DependencyError(f"{step}: {exc.message}") from exc
            employee = employee_future.result()
        return entitlements, employee

    def _mint(self, user_id: int, entitlements: RolesAndPerms, employee: EmployeeInfo) -> tuple[str, str]:
        access_token = self.codec.sign_access_token(
            user_id=user_id,
            permission_codes=entitlements.permission_codes,
            employee_id=employee.employee_id,
            org_id=employee.org_id,
            employee_status=employee.status,
        )
        refresh_token = self.codec.sign_refresh_token(user_id)
        return access_token, refresh_token
