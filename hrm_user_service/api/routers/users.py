from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrm_user_service.core.db import get_db
from hrm_user_service.deps.auth import get_user_service, require_permissions
from hrm_user_service.schemas.auth import UserOut
from hrm_user_service.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Pagination
from hrm_user_service.schemas.users import (
    CreateUserRequest,
    DeleteUserResponse,
    UpdateUserRequest,
    UserDetailResponse,
    UserListResponse,
    UsersByIdsRequest,
)
from hrm_user_service.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="List users ordered by id. Requires user.read.",
    operation_id="users_list",
    dependencies=[Depends(require_permissions(["user.read"]))],
)
def list_users(
    page: int = Query(1, ge=1, description="1-based page number."),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Records per page."),
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    pagination = Pagination(page=page, page_size=page_size)
    return UserListResponse(users=users.list_users(db, offset=pagination.offset, limit=pagination.page_size))


@router.post(
    "/batch",
    response_model=UserListResponse,
    summary="Get users by ids",
    description="Fetch the users whose ids are listed. Requires user.read.",
    operation_id="users_batch",
    dependencies=[Depends(require_permissions(["user.read"]))],
)
def get_users_by_ids(
    payload: UsersByIdsRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    offset, limit = payload.window()
    return UserListResponse(users=users.get_users_by_ids(db, payload.ids, offset=offset, limit=limit))


@router.get(
    "/{user_id}",
    response_model=UserDetailResponse,
    summary="Get user",
    description="Get a user with roles and permissions. Requires user.read.",
    operation_id="users_get",
    dependencies=[Depends(require_permissions(["user.read"]))],
)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    return users.get_user(db, user_id)


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user with an account and role/permission assignments. Requires user.create.",
    operation_id="users_create",
    dependencies=[Depends(require_permissions(["user.create"]))],
)
def create_user(
    payload: CreateUserRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return users.create_user(db, payload)


@router.put(
    "/{user_id}",
    response_model=UserOut,
    summary="Update user",
    description="Partially update a user, its account and its assignments. Requires user.update.",
    operation_id="users_update",
    dependencies=[Depends(require_permissions(["user.update"]))],
)
def update_user(
    user_id: int,
    payload: UpdateUserRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return users.update_user(db, user_id, payload)


@router.delete(
    "/{user_id}",
    response_model=DeleteUserResponse,
    summary="Delete user",
    description="Delete a user and its account, then clean up its roles and permissions. Requires user.delete.",
    operation_id="users_delete",
    dependencies=[Depends(require_permissions(["user.delete"]))],
)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> DeleteUserResponse:
    return users.delete_user(db, user_id)
