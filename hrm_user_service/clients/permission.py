from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from hrm_user_service.clients.base import ServiceClient
from hrm_user_service.core.errors import DependencyError
from hrm_user_service.schemas.auth import PermOut, RoleOut


class PermissionClient(ServiceClient):
    """RPC client for the Permission service (user roles and direct permissions)."""

    service_name = "permission service"

    def _items(self, body: dict[str, Any] | None, key: str, model: type, step: str) -> list:
        raw = (body or {}).get(key) or []
        try:
            return [model.model_validate(item) for item in raw]
        except PydanticValidationError as exc:
            raise DependencyError(f"{step}: unexpected {key} payload from {self.service_name}") from exc

    # PUBLIC_INTERFACE
    def get_user_roles(self, user_id: int) -> list[RoleOut]:
        """Return the roles assigned to a user, each with its embedded permissions."""
        step = "get user roles"
        body = self._request("GET", f"/users/{user_id}/roles", step=step)
        return self._items(body, "roles", RoleOut, step)

    # PUBLIC_INTERFACE
    def get_user_perms(self, user_id: int) -> list[PermOut]:
        """Return the permissions assigned directly to a user."""
        step = "get user perms"
        body = self._request("GET", f"/users/{user_id}/perms", step=step)
        return self._items(body, "perms", PermOut, step)

    def update_user_roles(self, user_id: int, role_ids: list[str]) -> None:
        self._request(
            "PUT",
            f"/users/{user_id}/roles",
            step="update user roles",
            payload={"user_id": str(user_id), "role_ids": list(role_ids)},
        )

    def update_user_perms(self, user_id: int, perm_ids: list[str]) -> None:
        self._request(
            "PUT",
            f"/users/{user_id}/perms",
            step="update user perms",
            payload={"user_id": str(user_id), "perm_ids": list(perm_ids)},
        )

    def delete_user_roles(self, user_id: int) -> None:
        self._request("DELETE", f"/users/{user_id}/roles", step="delete user roles", allow_not_found=True)

    def delete_user_perms(self, user_id: int) -> None:
        self._request("DELETE", f"/users/{user_id}/perms", step="delete user perms", allow_not_found=True)
