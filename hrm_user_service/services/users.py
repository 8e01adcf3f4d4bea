"""User management: CRUD over users/accounts plus role/permission assignment."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from hrm_user_service.clients.permission import PermissionClient
from hrm_user_service.core.db import transaction
from hrm_user_service.core.errors import DependencyError
from hrm_user_service.core.security import hash_password
from hrm_user_service.schemas.auth import UserOut
from hrm_user_service.schemas.users import (
    CreateUserRequest,
    DeleteUserResponse,
    UpdateUserRequest,
    UserDetailResponse,
)
from hrm_user_service.services.credentials import PROFILE_FIELDS, CredentialStore
from hrm_user_service.services.permissions import RolePermissionAggregator

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, aggregator: RolePermissionAggregator, permission_client: PermissionClient) -> None:
        self.aggregator = aggregator
        self.permission_client = permission_client

    def list_users(self, db: Session, *, offset: int = 0, limit: int | None = None) -> list[UserOut]:
        return [UserOut.model_validate(u) for u in CredentialStore(db).list_users(offset=offset, limit=limit)]

    def get_users_by_ids(
        self, db: Session, ids: list[int], *, offset: int = 0, limit: int | None = None
    ) -> list[UserOut]:
        users = CredentialStore(db).find_users_by_ids(ids, offset=offset, limit=limit)
        return [UserOut.model_validate(u) for u in users]

    # PUBLIC_INTERFACE
    def get_user(self, db: Session, user_id: int) -> UserDetailResponse:
        """Return a user with its roles and direct permissions."""
        user = CredentialStore(db).find_user_by_id(user_id)
        try:
            entitlements = self.aggregator.get_roles_and_perms(user.id)
        except DependencyError as exc:
            raise DependencyError(f"get user: {exc.message}") from exc
        return UserDetailResponse(
            user=UserOut.model_validate(user),
            roles=entitlements.roles,
            perms=entitlements.perms,
        )

    # PUBLIC_INTERFACE
    def create_user(self, db: Session, payload: CreateUserRequest) -> UserOut:
        """Create a user, its account and its role/permission assignments.

        Assignments are sent before the local commit; if the Permission service
        rejects them the user and account rows are rolled back.
        """
        password_hash = hash_password(payload.account.password)
        profile = payload.model_dump(include=set(PROFILE_FIELDS))
        store = CredentialStore(db)
        with transaction(db):
            user, _ = store.add_user_and_account(profile, payload.account.username, password_hash)
            self._assign(
                user.id,
                perm_ids=payload.perm_ids or None,
                role_ids=payload.role_ids or None,
                step="create user",
            )
        logger.info("User created", extra={"user_id": user.id})
        return UserOut.model_validate(user)

    # PUBLIC_INTERFACE
    def update_user(self, db: Session, user_id: int, payload: UpdateUserRequest) -> UserOut:
        """Apply a partial update to the profile, the account and the assignments."""
        profile = payload.model_dump(include=set(PROFILE_FIELDS), exclude_unset=True)
        account = payload.account
        password_hash = hash_password(account.password) if account and account.password else None
        store = CredentialStore(db)
        with transaction(db):
            user = store.find_user_by_id(user_id)
            store.apply_user_changes(
                user,
                profile,
                username=account.username if account else None,
                password_hash=password_hash,
                status=account.status if account else None,
            )
            self._assign(user.id, perm_ids=payload.perm_ids, role_ids=payload.role_ids, step="update user")
        logger.info("User updated", extra={"user_id": user.id})
        return UserOut.model_validate(user)

    # PUBLIC_INTERFACE
    def delete_user(self, db: Session, user_id: int) -> DeleteUserResponse:
        """Delete a user locally, then clean up its assignments in the Permission service.

        The local delete is committed first. Cleanup failures are reported as
        warnings and never undo the local delete.
        """
        CredentialStore(db).delete_user(user_id)
        logger.info("User deleted", extra={"user_id": user_id})

        warnings: list[str] = []
        for cleanup in (self.permission_client.delete_user_perms, self.permission_client.delete_user_roles):
            try:
                cleanup(user_id)
            except DependencyError as exc:
                logger.warning(
                    "Permission cleanup after user delete failed",
                    extra={"user_id": user_id, "error": exc.message},
                )
                warnings.append(exc.message)
        return DeleteUserResponse(success=True, cleanup_ok=not warnings, warnings=warnings)

    def _assign(self, user_id: int, *, perm_ids: list[str] | None, role_ids: list[str] | None, step: str) -> None:
        try:
            if perm_ids is not None:
                self.permission_client.update_user_perms(user_id, perm_ids)
            if role_ids is not None:
                self.permission_client.update_user_roles(user_id, role_ids)
        except DependencyError as exc:
            raise DependencyError(f"{step}: {exc.message}") from exc
