"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.user import UserRole
from utils import article_manager
from utils import notification_manager
from utils import user_manager


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_article_manager(db: Session = Depends(get_db)) -> article_manager.ArticleManager:
    """Get ArticleManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        ArticleManager instance.
    """
    return article_manager.ArticleManager(db)


def get_notification_manager(
    db: Session = Depends(get_db),
) -> notification_manager.NotificationManager:
    """Get NotificationManager instance with request-scoped DB session."""
    return notification_manager.NotificationManager(db)


def get_actor_role(user_role: Optional[str] = Header(default=None)) -> UserRole:
    """Read the acting user's role from the ``user-role`` header.

    Raises:
        HTTPException: 403 if the header is missing or not a known role.
    """
    try:
        return UserRole(user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. A valid user-role header is required.",
        )


def get_actor_id(user_id: Optional[int] = Header(default=None)) -> Optional[int]:
    """Read the acting user's id from the ``user-id`` header, if sent."""
    return user_id


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
ArticleManagerDep = Annotated[
    article_manager.ArticleManager, Depends(get_article_manager)
]
NotificationManagerDep = Annotated[
    notification_manager.NotificationManager, Depends(get_notification_manager)
]
ActorRoleDep = Annotated[UserRole, Depends(get_actor_role)]
ActorIdDep = Annotated[Optional[int], Depends(get_actor_id)]
