"""Article workflow rules.

Provides the article status state machine shared by the API server and the
offline client engine:
- Content validation that reports every violated rule
- Legal transitions and the actor allowed to perform each one
- Transition application that keeps published_at and rejection_reason
  consistent with the status
- Role-based listing restrictions

States:
    draft ──→ pending ──→ published
      ↑          │
      └─ rejected ←┘

Usage:
    check_transition(article.status, ArticleStatus.PUBLISHED, role, user_id,
                     article.author_id)
    apply_transition(article, ArticleStatus.PUBLISHED)
"""

import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

import pytz

from config import (
    COMMENT_MAX_LENGTH,
    CONTENT_MAX_LENGTH,
    CONTENT_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from core.exceptions import ForbiddenTransitionError, ValidationError
from schemas.article import ArticleStatus
from schemas.user import UserRole

logger = logging.getLogger(__name__)

AUTHOR = "author"
REVIEWER = "reviewer"

REVIEWER_ROLES: FrozenSet[UserRole] = frozenset({UserRole.TEACHER, UserRole.ADMIN})

# Statuses an author may pick when creating an article
INITIAL_STATUSES: FrozenSet[ArticleStatus] = frozenset(
    {ArticleStatus.DRAFT, ArticleStatus.PENDING}
)

# (from, to) -> who may perform the move. Same-state entries are content edits.
VALID_TRANSITIONS: Dict[Tuple[ArticleStatus, ArticleStatus], str] = {
    (ArticleStatus.DRAFT, ArticleStatus.DRAFT): AUTHOR,
    (ArticleStatus.DRAFT, ArticleStatus.PENDING): AUTHOR,
    (ArticleStatus.PENDING, ArticleStatus.PENDING): AUTHOR,
    (ArticleStatus.REJECTED, ArticleStatus.PENDING): AUTHOR,
    (ArticleStatus.REJECTED, ArticleStatus.DRAFT): AUTHOR,
    (ArticleStatus.PENDING, ArticleStatus.PUBLISHED): REVIEWER,
    (ArticleStatus.PENDING, ArticleStatus.REJECTED): REVIEWER,
}


def validate_article_content(title: Optional[str], content: Optional[str]) -> None:
    """Check title and content lengths.

    Args:
        title: Article title.
        content: Article body.

    Raises:
        ValidationError: Listing every violated rule, not just the first.
    """
    title = title or ""
    content = content or ""
    violations: List[str] = []
    if len(title) < TITLE_MIN_LENGTH:
        violations.append(f"Title must be at least {TITLE_MIN_LENGTH} characters")
    if len(title) > TITLE_MAX_LENGTH:
        violations.append(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    if len(content) < CONTENT_MIN_LENGTH:
        violations.append(
            f"Content must be at least {CONTENT_MIN_LENGTH} characters"
        )
    if len(content) > CONTENT_MAX_LENGTH:
        violations.append(f"Content cannot exceed {CONTENT_MAX_LENGTH} characters")
    if violations:
        raise ValidationError(violations)


def validate_comment_content(content: Optional[str]) -> str:
    """Return the comment text, or raise if it is blank or too long."""
    content = content or ""
    violations: List[str] = []
    if not content.strip():
        violations.append("Comment cannot be empty")
    if len(content) > COMMENT_MAX_LENGTH:
        violations.append(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")
    if violations:
        raise ValidationError(violations)
    return content


def validate_rejection_reason(reason: Optional[str]) -> str:
    """Return the reason verbatim, or raise if it is blank."""
    if reason is None or not reason.strip():
        raise ValidationError(["A rejection reason is required"])
    return reason


def check_initial_status(status: Any) -> ArticleStatus:
    """Validate the status an author picked for a new article.

    Raises:
        ForbiddenTransitionError: If the status is not draft or pending.
    """
    status = ArticleStatus(status)
    if status not in INITIAL_STATUSES:
        raise ForbiddenTransitionError(
            f"New articles must start as draft or pending, not {status.value}"
        )
    return status


def check_transition(
    current: Any,
    target: Any,
    actor_role: Any,
    actor_id: int,
    author_id: int,
) -> None:
    """Check that an actor may move an article from one status to another.

    Args:
        current: Current article status.
        target: Requested status.
        actor_role: Role of the user performing the move.
        actor_id: Id of the user performing the move.
        author_id: Id of the article's author.

    Raises:
        ForbiddenTransitionError: If the move is not in VALID_TRANSITIONS or
            the actor is not allowed to perform it.
    """
    current = ArticleStatus(current)
    target = ArticleStatus(target)
    role = UserRole(actor_role)

    required = VALID_TRANSITIONS.get((current, target))
    if required is None:
        raise ForbiddenTransitionError(
            f"Invalid transition from {current.value} to {target.value}"
        )
    if required == AUTHOR and actor_id != author_id:
        raise ForbiddenTransitionError(
            f"Only the original author can move an article from "
            f"{current.value} to {target.value}"
        )
    if required == REVIEWER and role not in REVIEWER_ROLES:
        raise ForbiddenTransitionError(
            "Only teachers and administrators can review articles"
        )


def check_can_delete(actor_role: Any) -> None:
    """Only administrators may delete articles."""
    if UserRole(actor_role) != UserRole.ADMIN:
        raise ForbiddenTransitionError(
            "Not authorized. Only administrators can delete articles."
        )


def apply_transition(
    article: Any,
    target: Any,
    rejection_reason: Optional[str] = None,
) -> Any:
    """Move an article to a new status and fix up dependent fields.

    Works on any object exposing ``status``, ``published_at``,
    ``rejection_reason`` and ``updated_at`` (schema or ORM article).

    Args:
        article: Article to mutate in place.
        target: Status to enter.
        rejection_reason: Required when entering rejected.

    Returns:
        The same article.
    """
    target = ArticleStatus(target)
    now = datetime.now(pytz.utc).isoformat()
    previous = ArticleStatus(article.status)

    if target == ArticleStatus.REJECTED:
        article.rejection_reason = validate_rejection_reason(rejection_reason)
    else:
        article.rejection_reason = None

    if target == ArticleStatus.PUBLISHED:
        if previous != ArticleStatus.PUBLISHED or not article.published_at:
            article.published_at = now
    else:
        article.published_at = None

    article.status = target
    article.updated_at = now
    if previous != target:
        logger.info(
            "Article %s transitioned: %s → %s",
            getattr(article, "id", None),
            previous.value,
            target.value,
        )
    return article


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if not value:
        return None
    try:
        stamp = datetime.fromisoformat(value)
    except ValueError:
        return None
    if stamp.tzinfo is None:
        stamp = pytz.utc.localize(stamp)
    return stamp


def _created_key(article: Any) -> Tuple[datetime, int]:
    stamp = parse_timestamp(getattr(article, "created_at", None))
    if stamp is None:
        stamp = datetime.min.replace(tzinfo=pytz.utc)
    return stamp, getattr(article, "id", 0) or 0


def is_visible_to(article: Any, viewer_role: Any, viewer_id: Optional[int]) -> bool:
    """Apply the implicit role restriction to a single article."""
    role = UserRole(viewer_role)
    if role == UserRole.STUDENT:
        return article.author_id == viewer_id
    if role == UserRole.PARENT:
        return ArticleStatus(article.status) == ArticleStatus.PUBLISHED
    return True


def filter_articles(
    articles: Iterable[Any],
    viewer_role: Any,
    viewer_id: Optional[int],
    status: Optional[Any] = None,
    category: Optional[Any] = None,
    chapter: Optional[Any] = None,
    author_id: Optional[int] = None,
) -> List[Any]:
    """Filter articles for a viewer, most recently created first.

    Students only ever see their own articles and parents only published
    ones, whatever filters are requested. Teachers and administrators have no
    implicit restriction.
    """
    result = []
    for article in articles:
        if not is_visible_to(article, viewer_role, viewer_id):
            continue
        if status is not None and article.status != status:
            continue
        if category is not None and article.category != category:
            continue
        if chapter is not None and article.chapter != chapter:
            continue
        if author_id is not None and article.author_id != author_id:
            continue
        result.append(article)
    return sorted(result, key=_created_key, reverse=True)
