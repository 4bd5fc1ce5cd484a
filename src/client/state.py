"""In-memory application state owned by the Sync Coordinator.

Both the remote and the local-fallback paths write through this container;
nothing else holds a second copy of users, articles or notifications.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from schemas.article import Article, Comment
from schemas.notification import Notification
from schemas.user import User

logger = logging.getLogger(__name__)

USERS = "users"
ARTICLES = "articles"
NOTIFICATIONS = "notifications"

_ENTITY_TYPES = {
    USERS: User,
    ARTICLES: Article,
    NOTIFICATIONS: Notification,
}


def next_id(items: Iterable[Any]) -> int:
    """One greater than the largest id in ``items``, or 1 if empty."""
    return max((item.id for item in items), default=0) + 1


@dataclass
class AppState:
    users: List[User] = field(default_factory=list)
    articles: List[Article] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    current_user: Optional[User] = None

    def collection(self, target: str) -> List[Any]:
        if target not in _ENTITY_TYPES:
            raise KeyError(f"Unknown collection: {target}")
        return getattr(self, target)

    def replace(self, target: str, items: List[Any]) -> None:
        self.collection(target)[:] = items

    def next_id(self, target: str) -> int:
        return next_id(self.collection(target))

    def next_comment_id(self) -> int:
        return next_id(c for a in self.articles for c in a.comments)

    def find(self, target: str, entity_id: int) -> Optional[Any]:
        for item in self.collection(target):
            if item.id == entity_id:
                return item
        return None

    def upsert(self, target: str, item: Any, front: bool = True) -> Any:
        """Replace the entity with the same id, or insert it."""
        items = self.collection(target)
        for i, existing in enumerate(items):
            if existing.id == item.id:
                items[i] = item
                return item
        if front:
            items.insert(0, item)
        else:
            items.append(item)
        return item

    def remove(self, target: str, entity_id: int) -> Optional[Any]:
        items = self.collection(target)
        for i, existing in enumerate(items):
            if existing.id == entity_id:
                return items.pop(i)
        return None

    def add_comment(self, article: Article, comment: Comment) -> Comment:
        if all(c.id != comment.id for c in article.comments):
            article.comments.append(comment)
        return comment

    def to_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """JSON-ready copy of every mirrored collection."""
        return {
            target: [item.model_dump(mode="json") for item in self.collection(target)]
            for target in _ENTITY_TYPES
        }

    def load_snapshot(
        self, snapshot: Dict[str, List[Dict[str, Any]]], only_if_empty: bool = True
    ) -> List[str]:
        """Load cached collections into memory.

        Args:
            snapshot: Mapping of collection name to serialized entities.
            only_if_empty: Leave collections that already hold data untouched.

        Returns:
            Names of the collections that were loaded.
        """
        loaded = []
        for target, entity_type in _ENTITY_TYPES.items():
            raw = snapshot.get(target)
            if raw is None:
                continue
            if only_if_empty and self.collection(target):
                continue
            self.replace(target, [entity_type.model_validate(item) for item in raw])
            loaded.append(target)
        if loaded:
            logger.info("Loaded cached collections: %s", ", ".join(loaded))
        return loaded
