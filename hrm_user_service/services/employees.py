from __future__ import annotations

import logging
from dataclasses import dataclass

from hrm_user_service.clients.hr import HRClient
from hrm_user_service.core.errors import DependencyError
from hrm_user_service.schemas.auth import EmployeeOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeInfo:
    employee: EmployeeOut | None = None

    @property
    def employee_id(self) -> int | None:
        return self.employee.id if self.employee else None

    @property
    def org_id(self) -> int | None:
        return self.employee.org_id if self.employee else None

    @property
    def status(self) -> str:
        return self.employee.status if self.employee else ""


ABSENT = EmployeeInfo()


class EmployeeInfoResolver:
    """Resolve HR employee affiliation; lookup failures degrade to an absent employee."""

    def __init__(self, hr_client: HRClient) -> None:
        self.hr_client = hr_client

    # PUBLIC_INTERFACE
    def get_employee_info(self, user_id: int) -> EmployeeInfo:
        try:
            employee = self.hr_client.get_employee_by_user_id(user_id)
        except DependencyError as exc:
            logger.warning(
                "Employee lookup failed; continuing without employee data",
                extra={"user_id": user_id, "error": exc.message},
            )
            return ABSENT
        return EmployeeInfo(employee=employee)
