import pytest
from conftest import FakePermissionClient, make_role

from hrm_user_service.core.errors import DependencyError
from hrm_user_service.schemas.auth import PermOut
from hrm_user_service.services.permissions import RolePermissionAggregator, flatten_permission_codes


class TestFlattenPermissionCodes:
    def test_overlapping_roles_are_deduplicated(self):
        roles = [make_role("r1", "permA", "permB"), make_role("r2", "permB", "permC")]
        assert flatten_permission_codes(roles) == frozenset({"permA", "permB", "permC"})

    def test_order_independent(self):
        r1 = make_role("r1", "permA", "permB")
        r2 = make_role("r2", "permB", "permC")
        assert flatten_permission_codes([r1, r2]) == flatten_permission_codes([r2, r1])

    def test_no_roles(self):
        assert flatten_permission_codes([]) == frozenset()


class TestRolePermissionAggregator:
    def test_direct_perms_are_not_folded_into_codes(self, permission_client: FakePermissionClient):
        permission_client.roles[1] = [make_role("viewer", "user.read")]
        permission_client.perms[1] = [PermOut(code="report.export", name="Export reports")]

        result = RolePermissionAggregator(permission_client).get_roles_and_perms(1)

        assert [r.code for r in result.roles] == ["viewer"]
        assert [p.code for p in result.perms] == ["report.export"]
        assert result.permission_codes == frozenset({"user.read"})

    def test_failure_propagates(self, permission_client: FakePermissionClient):
        permission_client.fail_reads = True
        with pytest.raises(DependencyError):
            RolePermissionAggregator(permission_client).get_roles_and_perms(1)
