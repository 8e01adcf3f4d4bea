"""Credential store access: account and user rows."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrm_user_service.core.db import transaction
from hrm_user_service.core.errors import ConflictError, InternalError, NotFoundError, ServiceError
from hrm_user_service.models.user import Account, AccountStatus, User

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "gender",
    "phone",
    "email",
    "ward_code",
    "address",
    "avatar",
    "company_id",
)
REQUIRED_PROFILE_FIELDS = frozenset({"first_name", "last_name", "gender", "phone"})


def _integrity_error(step: str, exc: IntegrityError) -> ServiceError:
    """Duplicates become ``ConflictError``; NOT NULL, FK and check violations are internal."""
    detail = str(exc.orig).lower()
    if "unique" not in detail and "duplicate" not in detail:
        return InternalError(f"{step}: integrity constraint violated")
    for field in ("username", "phone", "email"):
        if field in detail:
            return ConflictError(f"{step}: {field} already exists")
    return ConflictError(f"{step}: unique constraint violated")


class CredentialStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # PUBLIC_INTERFACE
    def find_account_by_username(self, username: str) -> Account:
        account = self.db.scalar(select(Account).where(Account.username == username))
        if account is None:
            raise NotFoundError("Account not found")
        return account

    # PUBLIC_INTERFACE
    def find_user_by_account(self, account: Account) -> User:
        return account.user

    # PUBLIC_INTERFACE
    def find_user_by_id(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    # PUBLIC_INTERFACE
    def find_account_by_user_id(self, user_id: int) -> Account:
        account = self.db.scalar(select(Account).where(Account.user_id == user_id))
        if account is None:
            raise NotFoundError(f"Account for user {user_id} not found")
        return account

    def list_users(self, *, offset: int = 0, limit: int | None = None) -> list[User]:
        stmt = select(User).order_by(User.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    def find_users_by_ids(self, ids: Iterable[int], *, offset: int = 0, limit: int | None = None) -> list[User]:
        stmt = select(User).where(User.id.in_(list(ids))).order_by(User.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    # PUBLIC_INTERFACE
    def create_user_and_account(
        self,
        profile: dict[str, Any],
        username: str,
        password_hash: str,
        *,
        status: str = AccountStatus.ACTIVE.value,
    ) -> tuple[User, Account]:
        """Insert a user and its account as one atomic unit."""
        with transaction(self.db):
            user, account = self.add_user_and_account(profile, username, password_hash, status=status)
        return user, account

    def add_user_and_account(
        self,
        profile: dict[str, Any],
        username: str,
        password_hash: str,
        *,
        status: str = AccountStatus.ACTIVE.value,
    ) -> tuple[User, Account]:
        """Insert and flush both rows inside the caller's open transaction."""
        user = User(**{k: v for k, v in profile.items() if k in PROFILE_FIELDS})
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise _integrity_error("create user", exc) from exc

        account = Account(username=username, password=password_hash, status=status, user=user)
        self.db.add(account)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise _integrity_error("create account", exc) from exc
        return user, account

    def apply_user_changes(
        self,
        user: User,
        profile: dict[str, Any],
        *,
        username: str | None = None,
        password_hash: str | None = None,
        status: str | None = None,
    ) -> User:
        """Apply profile/account changes and flush inside the caller's open transaction."""
        for key, value in profile.items():
            if key not in PROFILE_FIELDS:
                continue
            if value is None and key in REQUIRED_PROFILE_FIELDS:
                continue
            setattr(user, key, value)

        account = user.account
        if account is None and (username or password_hash or status):
            raise NotFoundError(f"Account for user {user.id} not found")
        if account is not None:
            if username is not None:
                account.username = username
            if password_hash is not None:
                account.password = password_hash
            if status is not None:
                account.status = status
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise _integrity_error("update user", exc) from exc
        return user

    def delete_user(self, user_id: int) -> None:
        """Delete a user and, through the owned relationship, its account in one transaction."""
        with transaction(self.db):
            user = self.find_user_by_id(user_id)
            self.db.delete(user)
