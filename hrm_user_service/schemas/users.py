from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from hrm_user_service.schemas.auth import AccountStatus, Gender, Password, PermOut, ProfileFields, RoleOut, UserOut
from hrm_user_service.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class AccountIn(BaseModel):
    username: str = Field(..., pattern=r"^[A-Za-z0-9]{3,20}$", description="Login name (3-20 alphanumeric).")
    password: Password = Field(..., min_length=6, max_length=50, description="Plaintext password; stored hashed.")


class AccountUpdate(BaseModel):
    username: str | None = Field(None, pattern=r"^[A-Za-z0-9]{3,20}$", description="New login name.")
    password: Password | None = Field(None, min_length=6, max_length=50, description="New password; rehashed.")
    status: AccountStatus | None = Field(None, description="Account status.")


class CreateUserRequest(ProfileFields):
    account: AccountIn
    perm_ids: list[str] = Field(default_factory=list, description="Permission ids to assign directly.")
    role_ids: list[str] = Field(default_factory=list, description="Role ids to assign.")


class UpdateUserRequest(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    gender: Gender | None = None
    phone: str | None = Field(None, pattern=r"^[0-9]{10,15}$")
    email: EmailStr | None = None
    ward_code: str | None = Field(None, pattern=r"^[0-9]{3,10}$")
    address: str | None = Field(None, max_length=200)
    avatar: str | None = None
    company_id: str | None = Field(None, max_length=64)

    account: AccountUpdate | None = None
    perm_ids: list[str] | None = Field(None, description="Replace direct permissions when given.")
    role_ids: list[str] | None = Field(None, description="Replace roles when given.")


class UsersByIdsRequest(BaseModel):
    ids: list[int] = Field(..., description="User ids to fetch.")
    page: int | None = Field(None, ge=1, description="1-based page number; omit with page_size for all ids.")
    page_size: int | None = Field(None, ge=1, le=MAX_PAGE_SIZE, description="Page size; omit with page for all ids.")

    def window(self) -> tuple[int, int | None]:
        """Return ``(offset, limit)``; unlimited unless the caller asked for a page."""
        if self.page is None and self.page_size is None:
            return 0, None
        page_size = self.page_size or DEFAULT_PAGE_SIZE
        return ((self.page or 1) - 1) * page_size, page_size


class UserIdRequest(BaseModel):
    id: int = Field(..., ge=1, description="User id.")


class UpdateUserRpcRequest(UpdateUserRequest):
    id: int = Field(..., ge=1, description="User id.")


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1, description="JWT access token.")


class UserListResponse(BaseModel):
    users: list[UserOut]


class UserDetailResponse(BaseModel):
    user: UserOut
    roles: list[RoleOut]
    perms: list[PermOut]


class DeleteUserResponse(BaseModel):
    success: bool = Field(..., description="Local user and account rows were deleted.")
    cleanup_ok: bool = Field(..., description="Role/permission cleanup in the Permission service succeeded.")
    warnings: list[str] = Field(default_factory=list)
