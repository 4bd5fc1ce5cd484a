"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, Enum, Integer, String

from schemas.user import TalentCategory, UserRole
from .base import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # plaintext, see schemas.user
    name = Column(String(100), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=_enum_values, native_enum=False, length=20),
        index=True,
        nullable=False,
    )
    talent = Column(
        Enum(TalentCategory, values_callable=_enum_values, native_enum=False, length=20),
        nullable=True,
    )
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(String, nullable=True)  # ISO format string
    created_at = Column(String, nullable=False)  # ISO format string
