"""Database models.

Importing this package registers every model with Base.metadata.
"""

from .base import Base
from .user import UserModel
from .article import ArticleModel
from .comment import CommentModel
from .notification import NotificationModel

__all__ = [
    "Base",
    "UserModel",
    "ArticleModel",
    "CommentModel",
    "NotificationModel",
]
