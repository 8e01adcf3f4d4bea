"""Service-to-service RPC surface.

Mirrors the user service's RPC methods as JSON POST endpoints. Callers are
other platform services on the internal network, so these routes carry no
end-user authorization.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hrm_user_service.core.db import get_db
from hrm_user_service.deps.auth import get_auth_service, get_user_service
from hrm_user_service.schemas.auth import LoginRequest, LoginResponse, MeResponse, UserOut
from hrm_user_service.schemas.users import (
    CreateUserRequest,
    DeleteUserResponse,
    TokenRequest,
    UpdateUserRpcRequest,
    UserDetailResponse,
    UserIdRequest,
    UserListResponse,
    UsersByIdsRequest,
)
from hrm_user_service.services.auth import AuthService
from hrm_user_service.services.users import UserService

router = APIRouter(prefix="/rpc", tags=["RPC"])


@router.post("/ListUsers", response_model=UserListResponse, operation_id="rpc_list_users")
def list_users(db: Session = Depends(get_db), users: UserService = Depends(get_user_service)) -> UserListResponse:
    return UserListResponse(users=users.list_users(db))


@router.post("/GetUserById", response_model=UserDetailResponse, operation_id="rpc_get_user_by_id")
def get_user_by_id(
    payload: UserIdRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    return users.get_user(db, payload.id)


@router.post("/GetUsersByIDs", response_model=UserListResponse, operation_id="rpc_get_users_by_ids")
def get_users_by_ids(
    payload: UsersByIdsRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    offset, limit = payload.window()
    return UserListResponse(users=users.get_users_by_ids(db, payload.ids, offset=offset, limit=limit))


@router.post("/CreateUser", response_model=UserOut, operation_id="rpc_create_user")
def create_user(
    payload: CreateUserRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return users.create_user(db, payload)


@router.post("/UpdateUserByID", response_model=UserOut, operation_id="rpc_update_user")
def update_user(
    payload: UpdateUserRpcRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return users.update_user(db, payload.id, payload)


@router.post("/DeleteUserByID", response_model=DeleteUserResponse, operation_id="rpc_delete_user")
def delete_user(
    payload: UserIdRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
) -> DeleteUserResponse:
    return users.delete_user(db, payload.id)


@router.post("/Login", response_model=LoginResponse, operation_id="rpc_login")
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    return auth.login(db, payload.username, payload.password)


@router.post("/DecodeToken", response_model=MeResponse, operation_id="rpc_decode_token")
def decode_token(
    payload: TokenRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> MeResponse:
    return auth.decode_token(db, payload.token)
