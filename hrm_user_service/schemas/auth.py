from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from hrm_user_service.core.security import BCRYPT_MAX_PASSWORD_BYTES, password_fits_bcrypt

Gender = Literal["other", "female", "male"]
AccountStatus = Literal["active", "inactive"]


def _within_bcrypt_limit(value: str) -> str:
    if not password_fits_bcrypt(value):
        raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes in UTF-8")
    return value


# Character limits alone let multi-byte passwords past the bcrypt byte limit.
Password = Annotated[str, AfterValidator(_within_bcrypt_limit)]


class ProfileFields(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50, description="First name.")
    last_name: str = Field(..., min_length=1, max_length=50, description="Last name.")
    gender: Gender = Field("other", description="Gender.")
    phone: str = Field(..., pattern=r"^[0-9]{10,15}$", description="Phone number (10-15 digits).")
    email: EmailStr | None = Field(None, description="Email address.")
    ward_code: str | None = Field(None, pattern=r"^[0-9]{3,10}$", description="Administrative ward code.")
    address: str | None = Field(None, max_length=200, description="Street address.")
    avatar: str | None = Field(None, description="Avatar URL.")
    company_id: str | None = Field(None, max_length=64, description="Company/organization affiliation.")


class RegisterRequest(ProfileFields):
    username: str = Field(..., pattern=r"^[A-Za-z0-9]{3,20}$", description="Login name (3-20 alphanumeric).")
    password: Password = Field(..., min_length=6, max_length=50, description="Plaintext password; stored hashed.")


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, description="Login name.")
    password: str = Field(..., min_length=1, max_length=128, description="User password.")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="JWT refresh token.")


class TokenPair(BaseModel):
    access_token: str = Field(..., description="JWT access token.")
    refresh_token: str = Field(..., description="JWT refresh token.")
    token_type: str = Field("Bearer", description="Token type for Authorization header.")
    expires_in: int = Field(..., description="Access token lifetime in seconds.")


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    status: AccountStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    gender: Gender
    phone: str
    email: str | None = None
    ward_code: str | None = None
    address: str | None = None
    avatar: str | None = None
    company_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    account: AccountOut | None = None


class PermOut(BaseModel):
    code: str
    name: str
    description: str | None = None


class RoleOut(BaseModel):
    code: str
    name: str
    color: str | None = None
    description: str | None = None
    perms: list[PermOut] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None


class OrganizationOut(BaseModel):
    id: int
    name: str | None = None
    code: str | None = None


class DepartmentOut(BaseModel):
    id: int
    name: str | None = None
    code: str | None = None
    organization: OrganizationOut | None = None


class PositionOut(BaseModel):
    id: int
    name: str | None = None
    code: str | None = None
    departments: DepartmentOut | None = None


class EmployeeOut(BaseModel):
    id: int
    user_id: str | None = None
    code: str | None = None
    status: str = ""
    position_id: int | None = None
    org_id: int | None = None
    joining_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    position: PositionOut | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> str:
        """Reduce enum names such as ``EMPLOYEE_STATUS_ACTIVE`` to ``active``."""
        if v is None:
            return ""
        status = str(v)
        marker = status.upper().find("STATUS_")
        if marker != -1:
            status = status[marker + len("STATUS_"):]
        return status.lower()


class LoginResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token.")
    refresh_token: str = Field(..., description="JWT refresh token.")
    token_type: str = Field("Bearer", description="Token type for Authorization header.")
    expires_in: int = Field(..., description="Access token lifetime in seconds.")
    user: UserOut
    account: AccountOut
    employee: EmployeeOut | None = None
    roles: list[RoleOut]
    perms: list[PermOut]


class MeResponse(BaseModel):
    user: UserOut
    employee: EmployeeOut | None = None
    roles: list[RoleOut]
    perms: list[PermOut]
