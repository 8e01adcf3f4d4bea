from datetime import timedelta

import pytest
from conftest import FakePermissionClient, make_role

from hrm_user_service.core.db import transaction
from hrm_user_service.services.credentials import CredentialStore

REGISTER_BODY = {
    "username": "alice",
    "password": "pw123456",
    "first_name": "Alice",
    "last_name": "Nguyen",
    "gender": "female",
    "phone": "0912345678",
    "email": "alice@example.com",
}


def _register(client, **overrides) -> dict:
    response = client.post("/register", json={**REGISTER_BODY, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def _login(client, username: str = "alice", password: str = "pw123456"):
    return client.post("/login", json={"username": username, "password": password})


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Healthy"}


class TestAuthRoutes:
    def test_register(self, client):
        body = _register(client)

        assert body["id"] > 0
        assert body["account"]["username"] == "alice"
        assert "password" not in body["account"]

    def test_register_conflict(self, client):
        _register(client)
        response = client.post("/register", json={**REGISTER_BODY, "phone": "0987654321"})

        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    def test_register_validation(self, client):
        response = client.post("/register", json={**REGISTER_BODY, "username": "a!", "phone": "12"})
        assert response.status_code == 422

    def test_login(self, client):
        registered = _register(client)

        response = _login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"] and body["refresh_token"]
        assert body["token_type"] == "Bearer"
        assert body["user"]["id"] == registered["id"]
        assert body["employee"] is None

    def test_login_bad_credentials(self, client):
        _register(client)

        response = _login(client, password="wrongpw")

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid username or password.", "code": "invalid_credentials"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_login_permission_service_down(self, client, permission_client: FakePermissionClient):
        _register(client)
        permission_client.fail_reads = True

        response = _login(client)

        assert response.status_code == 503
        assert response.json()["code"] == "service_unavailable"

    def test_me(self, client, permission_client: FakePermissionClient):
        registered = _register(client)
        permission_client.roles[registered["id"]] = [make_role("viewer", "user.read")]
        token = _login(client).json()["access_token"]

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["id"]
        assert response.json()["roles"][0]["code"] == "viewer"

    def test_me_requires_bearer(self, client):
        response = client.get("/me")
        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized"

        response = client.get("/me", headers={"Authorization": "Basic YWxpY2U6cHc="})
        assert response.status_code == 401

    def test_me_invalid_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["code"] == "invalid_token"

    def test_refresh(self, client):
        _register(client)
        refresh_token = _login(client).json()["refresh_token"]

        response = client.post("/auth/refresh-token", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        assert response.json()["token_type"] == "Bearer"
        assert response.json()["expires_in"] > 0

    def test_refresh_expired(self, client, codec):
        registered = _register(client)
        expired = codec.sign_refresh_token(registered["id"], ttl=timedelta(seconds=-1))

        response = client.post("/auth/refresh-token", json={"refresh_token": expired})

        assert response.status_code == 401
        assert response.json()["code"] == "token_expired"


class TestUserRoutes:
    def test_requires_token(self, client):
        assert client.get("/users").status_code == 401

    def test_requires_permission(self, client, bearer):
        response = client.get("/users", headers=bearer("user.update"))

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_crud(self, client, bearer, permission_client: FakePermissionClient):
        created = client.post(
            "/users",
            headers=bearer("user.create"),
            json={
                "first_name": "Bob",
                "last_name": "Tran",
                "phone": "0900000001",
                "account": {"username": "bob", "password": "secret123"},
                "role_ids": ["r1"],
            },
        )
        assert created.status_code == 201, created.text
        user_id = created.json()["id"]

        listed = client.get("/users", headers=bearer("user.read"))
        assert [u["id"] for u in listed.json()["users"]] == [user_id]

        detail = client.get(f"/users/{user_id}", headers=bearer("user.read"))
        assert detail.status_code == 200
        assert detail.json()["user"]["account"]["username"] == "bob"

        batch = client.post("/users/batch", headers=bearer("user.read"), json={"ids": [user_id, 999]})
        assert [u["id"] for u in batch.json()["users"]] == [user_id]

        updated = client.put(f"/users/{user_id}", headers=bearer("user.update"), json={"last_name": "Le"})
        assert updated.status_code == 200
        assert updated.json()["last_name"] == "Le"

        deleted = client.delete(f"/users/{user_id}", headers=bearer("user.delete"))
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "cleanup_ok": True, "warnings": []}

        missing = client.get(f"/users/{user_id}", headers=bearer("user.read"))
        assert missing.status_code == 404
        assert missing.json()["code"] == "not_found"


class TestRpcRoutes:
    def test_login_and_decode(self, client):
        registered = _register(client)

        login = client.post("/rpc/Login", json={"username": "alice", "password": "pw123456"})
        assert login.status_code == 200

        decoded = client.post("/rpc/DecodeToken", json={"token": login.json()["access_token"]})
        assert decoded.status_code == 200
        assert decoded.json()["user"]["id"] == registered["id"]

    def test_user_lifecycle(self, client):
        created = client.post(
            "/rpc/CreateUser",
            json={
                "first_name": "Bob",
                "last_name": "Tran",
                "phone": "0900000001",
                "account": {"username": "bob", "password": "secret123"},
            },
        )
        assert created.status_code == 200, created.text
        user_id = created.json()["id"]

        assert client.post("/rpc/GetUserById", json={"id": user_id}).json()["user"]["id"] == user_id
        assert len(client.post("/rpc/ListUsers").json()["users"]) == 1
        assert client.post("/rpc/GetUsersByIDs", json={"ids": [user_id]}).json()["users"][0]["id"] == user_id

        updated = client.post("/rpc/UpdateUserByID", json={"id": user_id, "first_name": "Robert"})
        assert updated.json()["first_name"] == "Robert"

        assert client.post("/rpc/DeleteUserByID", json={"id": user_id}).json()["success"] is True
        assert client.post("/rpc/GetUserById", json={"id": user_id}).status_code == 404


class TestBatchLookup:
    @pytest.fixture
    def sixty_user_ids(self, db_session) -> list[int]:
        store = CredentialStore(db_session)
        with transaction(db_session):
            users = [
                store.add_user_and_account(
                    {"first_name": "User", "last_name": str(i), "phone": f"09{i:08d}"}, f"user{i}", "not-a-real-hash"
                )[0]
                for i in range(60)
            ]
        return [user.id for user in users]

    def test_returns_every_requested_user(self, client, bearer, sixty_user_ids):
        response = client.post("/users/batch", headers=bearer("user.read"), json={"ids": sixty_user_ids})

        assert response.status_code == 200
        assert [u["id"] for u in response.json()["users"]] == sixty_user_ids

    def test_rpc_returns_every_requested_user(self, client, sixty_user_ids):
        response = client.post("/rpc/GetUsersByIDs", json={"ids": sixty_user_ids})
        assert len(response.json()["users"]) == 60

    def test_explicit_page(self, client, bearer, sixty_user_ids):
        response = client.post(
            "/users/batch",
            headers=bearer("user.read"),
            json={"ids": sixty_user_ids, "page": 2, "page_size": 25},
        )
        assert [u["id"] for u in response.json()["users"]] == sixty_user_ids[25:50]


class TestPasswordLimits:
    def test_register_rejects_password_over_bcrypt_limit(self, client):
        response = client.post("/register", json={**REGISTER_BODY, "password": "é" * 36 + "aaaa"})
        assert response.status_code == 422
