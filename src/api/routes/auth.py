"""Authentication routes.

This module handles the login endpoint. Credentials are checked in plaintext
against the users table; no token is issued and callers identify themselves
on later requests through the ``user-role`` and ``user-id`` headers.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from core.dependencies import UserManagerDep
from schemas.user import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/login", summary="User login")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep,
) -> LoginResponse:
    """Login with username, password and role.

    Args:
        req: Login request.
        user_manager: Injected UserManager instance.

    Returns:
        LoginResponse with the user (password omitted).

    Raises:
        HTTPException: 401 if no active account matches all three fields.
    """
    user = user_manager.authenticate(req.username, req.password, req.role)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials or inactive user",
        )
    return LoginResponse(user=user)
