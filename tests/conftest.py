"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator

import pytest

# Set test environment variables before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("JWT_ISSUER", "hrm-user-service-test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hrm_user_service.api.main import app  # noqa: E402
from hrm_user_service.core.config import Settings, get_settings  # noqa: E402
from hrm_user_service.core.db import get_db  # noqa: E402
from hrm_user_service.core.errors import DependencyError  # noqa: E402
from hrm_user_service.core.jwt import TokenCodec  # noqa: E402
from hrm_user_service.deps.auth import get_auth_service, get_token_codec, get_user_service  # noqa: E402
from hrm_user_service.models.base import Base  # noqa: E402
from hrm_user_service.schemas.auth import EmployeeOut, PermOut, RegisterRequest, RoleOut, UserOut  # noqa: E402
from hrm_user_service.services.auth import AuthService  # noqa: E402
from hrm_user_service.services.employees import EmployeeInfoResolver  # noqa: E402
from hrm_user_service.services.permissions import RolePermissionAggregator  # noqa: E402
from hrm_user_service.services.users import UserService  # noqa: E402


def make_role(code: str, *perm_codes: str) -> RoleOut:
    return RoleOut(code=code, name=code.title(), perms=[PermOut(code=p, name=p) for p in perm_codes])


class FakePermissionClient:
    """In-memory stand-in for the Permission service client."""

    def __init__(self) -> None:
        self.roles: dict[int, list[RoleOut]] = {}
        self.perms: dict[int, list[PermOut]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False
        self.calls: list[tuple] = []

    def _check(self, failing: bool, step: str) -> None:
        if failing:
            raise DependencyError(f"{step}: permission service is unreachable")

    def get_user_roles(self, user_id: int) -> list[RoleOut]:
        self._check(self.fail_reads, "get user roles")
        return list(self.roles.get(user_id, []))

    def get_user_perms(self, user_id: int) -> list[PermOut]:
        self._check(self.fail_reads, "get user perms")
        return list(self.perms.get(user_id, []))

    def update_user_roles(self, user_id: int, role_ids: list[str]) -> None:
        self.calls.append(("update_user_roles", user_id, list(role_ids)))
        self._check(self.fail_writes, "update user roles")

    def update_user_perms(self, user_id: int, perm_ids: list[str]) -> None:
        self.calls.append(("update_user_perms", user_id, list(perm_ids)))
        self._check(self.fail_writes, "update user perms")

    def delete_user_roles(self, user_id: int) -> None:
        self.calls.append(("delete_user_roles", user_id))
        self._check(self.fail_deletes, "delete user roles")

    def delete_user_perms(self, user_id: int) -> None:
        self.calls.append(("delete_user_perms", user_id))
        self._check(self.fail_deletes, "delete user perms")

    def close(self) -> None:
        pass


class FakeHRClient:
    """In-memory stand-in for the HR service client."""

    def __init__(self) -> None:
        self.employees: dict[int, EmployeeOut] = {}
        self.fail = False

    def get_employee_by_user_id(self, user_id: int) -> EmployeeOut | None:
        if self.fail:
            raise DependencyError("get employee by user id: hr service timed out")
        return self.employees.get(user_id)

    def close(self) -> None:
        pass


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def permission_client() -> FakePermissionClient:
    return FakePermissionClient()


@pytest.fixture
def hr_client() -> FakeHRClient:
    return FakeHRClient()


@pytest.fixture
def auth_service(
    settings: Settings, codec: TokenCodec, permission_client: FakePermissionClient, hr_client: FakeHRClient
) -> AuthService:
    return AuthService(
        settings,
        RolePermissionAggregator(permission_client),
        EmployeeInfoResolver(hr_client),
        codec=codec,
    )


@pytest.fixture
def user_service(permission_client: FakePermissionClient) -> UserService:
    return UserService(RolePermissionAggregator(permission_client), permission_client)


@pytest.fixture
def register_user(auth_service: AuthService, db_session: Session):
    """Factory registering a user through the auth service."""

    def _register(
        username: str = "alice",
        password: str = "pw123456",
        phone: str = "0912345678",
        **profile,
    ) -> UserOut:
        payload = RegisterRequest(
            username=username,
            password=password,
            first_name=profile.pop("first_name", "Alice"),
            last_name=profile.pop("last_name", "Nguyen"),
            phone=phone,
            **profile,
        )
        return auth_service.register(db_session, payload)

    return _register


@pytest.fixture
def client(
    db_session: Session,
    codec: TokenCodec,
    auth_service: AuthService,
    user_service: UserService,
) -> Generator[TestClient, None, None]:
    """TestClient with the store and sibling services replaced by test doubles."""

    def _get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_user_service] = lambda: user_service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def bearer(codec: TokenCodec):
    """Factory for Authorization headers carrying the given permission codes."""

    def _bearer(*permission_codes: str, user_id: int = 1) -> dict[str, str]:
        token = codec.sign_access_token(user_id=user_id, permission_codes=permission_codes)
        return {"Authorization": f"Bearer {token}"}

    return _bearer
