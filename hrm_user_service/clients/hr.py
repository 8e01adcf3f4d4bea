from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from hrm_user_service.clients.base import ServiceClient
from hrm_user_service.core.errors import DependencyError
from hrm_user_service.schemas.auth import EmployeeOut


class HRClient(ServiceClient):
    """RPC client for the HR service."""

    service_name = "hr service"

    # PUBLIC_INTERFACE
    def get_employee_by_user_id(self, user_id: int) -> EmployeeOut | None:
        """Return the employee linked to a user, or None if the user is not an employee."""
        step = "get employee by user id"
        body = self._request("GET", f"/employees/by-user/{user_id}", step=step, allow_not_found=True)
        if body is None or body.get("employee") is None:
            return None
        try:
            return EmployeeOut.model_validate(body["employee"])
        except PydanticValidationError as exc:
            raise DependencyError(f"{step}: unexpected employee payload from {self.service_name}") from exc
