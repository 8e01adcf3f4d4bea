"""Role/permission aggregation for token entitlements and API responses."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from hrm_user_service.clients.permission import PermissionClient
from hrm_user_service.schemas.auth import PermOut, RoleOut


@dataclass(frozen=True)
class RolesAndPerms:
    roles: list[RoleOut]
    perms: list[PermOut]
    permission_codes: frozenset[str]


# PUBLIC_INTERFACE
def flatten_permission_codes(roles: Iterable[RoleOut]) -> frozenset[str]:
    """Union of the permission codes embedded in the given roles."""
    codes: set[str] = set()
    for role in roles:
        for perm in role.perms:
            codes.add(perm.code)
    return frozenset(codes)


class RolePermissionAggregator:
    def __init__(self, permission_client: PermissionClient) -> None:
        self.permission_client = permission_client

    # PUBLIC_INTERFACE
    def get_roles_and_perms(self, user_id: int) -> RolesAndPerms:
        """Fetch a user's roles and direct permissions.

        Only role-derived codes feed ``permission_codes``; direct permissions are
        returned for display. Any RPC failure propagates as ``DependencyError``.
        """
        perms = self.permission_client.get_user_perms(user_id)
        roles = self.permission_client.get_user_roles(user_id)
        return RolesAndPerms(roles=roles, perms=perms, permission_codes=flatten_permission_codes(roles))
