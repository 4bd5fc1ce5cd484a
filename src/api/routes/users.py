"""User administration routes.

This module handles HTTP endpoints for listing and creating users, toggling
account status and replacing passwords.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, status

from config import (
    NAME_MIN_LENGTH,
    PASSWORD_MIN_LENGTH,
    REQUIRE_ADMIN_FOR_USER_CREATION,
    USERNAME_MIN_LENGTH,
)
from core.dependencies import UserManagerDep
from core.exceptions import NotFoundError
from schemas.user import (
    CreateUserRequest,
    UpdatePasswordRequest,
    UpdateUserStatusRequest,
    UserListResponse,
    UserResponse,
    UserRole,
)
from utils.user_manager import UserAlreadyExistsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _user_form_violations(req: CreateUserRequest) -> List[str]:
    violations = []
    if len(req.name.strip()) < NAME_MIN_LENGTH:
        violations.append(f"Name must be at least {NAME_MIN_LENGTH} characters")
    if len(req.username.strip()) < USERNAME_MIN_LENGTH:
        violations.append(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters"
        )
    if len(req.password) < PASSWORD_MIN_LENGTH:
        violations.append(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    return violations


@router.get("", summary="List users")
def list_users(user_manager: UserManagerDep) -> UserListResponse:
    return UserListResponse(users=user_manager.list_users())


@router.post("", summary="Create user", status_code=status.HTTP_201_CREATED)
def create_user(
    req: CreateUserRequest,
    user_manager: UserManagerDep,
    user_role: Optional[str] = Header(default=None),
) -> UserResponse:
    """Create a user account.

    The deployed service accepts this call from anyone. Set
    REQUIRE_ADMIN_FOR_USER_CREATION to demand the ``user-role: admin`` header.

    Raises:
        HTTPException: 400 on invalid fields, 403 when admin is required and
            missing, 409 if the username is taken.
    """
    if REQUIRE_ADMIN_FOR_USER_CREATION and user_role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. Only administrators can create users.",
        )
    violations = _user_form_violations(req)
    if violations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(violations)
        )
    try:
        user = user_manager.create_user(
            username=req.username.strip(),
            password=req.password,
            name=req.name.strip(),
            role=req.role,
            talent=req.talent,
        )
    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return UserResponse(user=user)


@router.put("/{user_id}/status", summary="Activate or deactivate user")
def update_user_status(
    user_id: int,
    req: UpdateUserStatusRequest,
    user_manager: UserManagerDep,
) -> UserResponse:
    try:
        user = user_manager.set_active(user_id, req.active)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UserResponse(user=user)


@router.put("/{user_id}/password", summary="Replace user password")
def update_user_password(
    user_id: int,
    req: UpdatePasswordRequest,
    user_manager: UserManagerDep,
) -> UserResponse:
    if len(req.password) < PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
        )
    try:
        user = user_manager.set_password(user_id, req.password)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UserResponse(user=user)
