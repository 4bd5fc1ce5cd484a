"""User schema definitions.

This module defines the User data model and the request/response bodies of the
login and user administration endpoints.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    PARENT = "parent"


class TalentCategory(str, Enum):
    """Talent tag shared by students and articles."""

    SPORTING = "sporting"
    MUSICAL = "musical"
    MATHEMATICAL = "mathematical"
    LINGUISTIC = "linguistic"
    TECHNOLOGICAL = "technological"
    ARTISTIC = "artistic"


class User(BaseModel):
    id: int = Field(description="Numeric user id.")
    username: str = Field(description="Unique login name.")
    # Stored and compared in plaintext; a known weakness kept for
    # compatibility with the deployed login behaviour.
    password: Optional[str] = Field(
        default=None,
        description="Plaintext credential. Only present in the local cache.",
    )
    name: str = Field(description="Display name.")
    role: UserRole
    talent: Optional[TalentCategory] = Field(
        default=None,
        description="Talent category, only meaningful for students.",
    )
    active: bool = True
    last_login: Optional[str] = None

    def public_copy(self) -> "User":
        """Return a copy without the credential."""
        return self.model_copy(update={"password": None})


class LoginRequest(BaseModel):
    username: str
    password: str
    role: UserRole


class LoginResponse(BaseModel):
    user: User


class CreateUserRequest(BaseModel):
    username: str
    password: str
    name: str
    role: UserRole
    talent: Optional[TalentCategory] = None


class UpdateUserStatusRequest(BaseModel):
    active: bool


class UpdatePasswordRequest(BaseModel):
    password: str


class UserResponse(BaseModel):
    user: User


class UserListResponse(BaseModel):
    users: List[User]
