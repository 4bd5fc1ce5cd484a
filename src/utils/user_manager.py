"""User management utilities.

This module provides user storage, plaintext credential checks, account
status toggling and password resets for the API server.
"""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models.user import UserModel
from schemas.user import TalentCategory, User, UserRole
from utils.converters import model_to_user

logger = logging.getLogger(__name__)


class UserAlreadyExistsError(Exception):
    """Exception raised when trying to create a user that already exists."""

    pass


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, user_id: int) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if not model:
            raise NotFoundError("User", user_id)
        return model

    def authenticate(self, username: str, password: str, role: str) -> Optional[User]:
        """Check credentials against the users table.

        Passwords are compared in plaintext. This is a known weakness kept so
        that existing accounts keep working; it is not fixed here.

        Args:
            username: Login name.
            password: Plaintext password.
            role: Role the user claims to log in as.

        Returns:
            The User (without password) if an active account matches,
            None otherwise.
        """
        model = (
            self.db.query(UserModel)
            .filter(
                UserModel.username == username,
                UserModel.password == password,
                UserModel.role == UserRole(role),
                UserModel.active.is_(True),
            )
            .first()
        )
        if not model:
            logger.info("Failed login for username: %s", username)
            return None

        model.last_login = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("User logged in: %s", username)
        return model_to_user(model)

    def create_user(
        self,
        username: str,
        password: str,
        name: str,
        role: str,
        talent: Optional[str] = None,
    ) -> User:
        """Create a new user.

        Args:
            username: Username for the new user.
            password: Plaintext password.
            name: Display name.
            role: User role.
            talent: Talent category; dropped unless the role is student.

        Returns:
            Created User object.

        Raises:
            UserAlreadyExistsError: If username already exists.
        """
        existing = self.db.query(UserModel).filter(UserModel.username == username).first()
        if existing:
            raise UserAlreadyExistsError(f"User '{username}' already exists")

        role = UserRole(role)
        model = UserModel(
            username=username,
            password=password,
            name=name,
            role=role,
            talent=TalentCategory(talent) if talent and role == UserRole.STUDENT else None,
            active=True,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        # Two requests may pass the check above at once; the unique
        # constraint catches the second one.
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(f"User '{username}' already exists") from e

        logger.info("Created user: %s (%s)", username, role.value)
        return model_to_user(model)

    def list_users(self) -> List[User]:
        """List all users ordered by id."""
        models = self.db.query(UserModel).order_by(UserModel.id.asc()).all()
        return [model_to_user(m) for m in models]

    def set_active(self, user_id: int, active: bool) -> User:
        """Activate or deactivate an account.

        Raises:
            NotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        model.active = active
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s %s", user_id, "activated" if active else "deactivated")
        return model_to_user(model)

    def set_password(self, user_id: int, password: str) -> User:
        """Replace a user's password.

        Raises:
            NotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        model.password = password
        self.db.commit()
        self.db.refresh(model)
        logger.info("Password updated for user %s", user_id)
        return model_to_user(model)
