"""Article Workflow Engine.

Owns the article lifecycle on the client: every operation checks the shared
rules in core.workflow before anything is sent, runs the change through the
Sync Coordinator, and only then dispatches the notifications the change
calls for.

States:
    draft ──→ pending ──→ published
      ↑          │
      └─ rejected ←┘

Usage:
    engine = ArticleWorkflowEngine(coordinator, dispatcher)
    result = engine.create_article(student, "Science fair", "technological",
                                   "experiences", body, status="pending")
    engine.approve(teacher, result.value.id)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Optional

import pytz

from client.notification_dispatcher import NotificationDispatcher
from client.state import ARTICLES, USERS
from client.sync import Operation, OperationKind, SyncCoordinator, SyncResult
from config import ARTICLE_DETAIL_LINK, ARTICLES_PAGE_LINK, URGENT_REVIEW_DAYS
from core import workflow
from core.exceptions import ForbiddenTransitionError, NotFoundError
from schemas.article import Article, ArticleStatus, Chapter, Comment
from schemas.notification import NotificationType
from schemas.user import TalentCategory, User, UserRole

logger = logging.getLogger(__name__)


@dataclass
class PendingReviewSummary:
    total: int
    this_week: int
    urgent: int
    # Pending articles, oldest first; urgent ones are those waiting longest
    articles: List[Article] = field(default_factory=list)


class ArticleWorkflowEngine:
    """Article state machine with remote-first persistence."""

    def __init__(self, sync: SyncCoordinator, dispatcher: NotificationDispatcher):
        self.sync = sync
        self.dispatcher = dispatcher
        self.state = sync.state
        self.remote = sync.remote

    # --- Helpers ---

    def _require_article(self, article_id: int) -> Article:
        article = self.state.find(ARTICLES, article_id)
        if article is None:
            raise NotFoundError("Article", article_id)
        return article

    def _author_name(self, user_id: int) -> Optional[str]:
        user = self.state.find(USERS, user_id)
        if user is not None:
            return user.name
        current = self.state.current_user
        if current is not None and current.id == user_id:
            return current.name
        return None

    def _store(self, article: Article) -> Article:
        return self.state.upsert(ARTICLES, article)

    def _change_status(
        self,
        actor: User,
        article: Article,
        target: ArticleStatus,
        rejection_reason: Optional[str] = None,
    ) -> SyncResult:
        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=ARTICLES,
                payload={"id": article.id, "status": target.value},
                remote_call=lambda: self.remote.update_article_status(
                    article.id, target, actor.role, actor.id, rejection_reason
                ),
                apply_remote=self._store,
                apply_local=lambda: workflow.apply_transition(
                    article, target, rejection_reason
                ),
            )
        )

    # --- Authoring ---

    def create_article(
        self,
        actor: User,
        title: str,
        category: Any,
        chapter: Any,
        content: str,
        status: Any = ArticleStatus.DRAFT,
        image_base64: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> SyncResult:
        """Create an article as a draft or submit it straight for review.

        Raises:
            ValidationError: If title or content lengths are out of range.
            ForbiddenTransitionError: If status is not draft or pending.
        """
        workflow.validate_article_content(title, content)
        status = workflow.check_initial_status(status)
        category = TalentCategory(category)
        chapter = Chapter(chapter)

        payload = {
            "title": title,
            "category": category.value,
            "chapter": chapter.value,
            "content": content,
            "author_id": actor.id,
            "status": status.value,
            "image_base64": image_base64,
            "image_url": image_url,
        }

        def apply_local() -> Article:
            now = datetime.now(pytz.utc).isoformat()
            article = Article(
                id=self.state.next_id(ARTICLES),
                title=title,
                category=category,
                chapter=chapter,
                content=content,
                author_id=actor.id,
                author_name=actor.name,
                # Offline the data URI itself is the only image reference
                image_url=image_base64 or image_url,
                status=status,
                created_at=now,
                updated_at=now,
            )
            self.state.articles.insert(0, article)
            return article

        result = self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=ARTICLES,
                payload=payload,
                remote_call=lambda: self.remote.create_article(payload),
                apply_remote=lambda created: self._store(created[0]),
                apply_local=apply_local,
            )
        )
        logger.info(
            "Article %s created as %s (%s)",
            result.value.id,
            status.value,
            result.outcome.value,
        )
        return result

    def edit_article(
        self,
        actor: User,
        article_id: int,
        title: str,
        category: Any,
        chapter: Any,
        content: str,
        status: Any,
        image_base64: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> SyncResult:
        """Change an article's content and move it to ``status``.

        Only the author may edit, and only while the article is a draft,
        pending, or rejected. Editing a rejected article back to pending is
        a resubmission.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor or move is not allowed.
            ValidationError: If the new content is invalid.
        """
        article = self._require_article(article_id)
        status = ArticleStatus(status)
        workflow.check_transition(
            article.status, status, actor.role, actor.id, article.author_id
        )
        workflow.validate_article_content(title, content)
        category = TalentCategory(category)
        chapter = Chapter(chapter)

        payload = {
            "title": title,
            "category": category.value,
            "chapter": chapter.value,
            "content": content,
            "status": status.value,
            "image_base64": image_base64,
            "image_url": image_url,
        }

        def apply_local() -> Article:
            article.title = title
            article.category = category
            article.chapter = chapter
            article.content = content
            if image_base64 or image_url:
                article.image_url = image_base64 or image_url
            return workflow.apply_transition(article, status)

        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=ARTICLES,
                payload=payload,
                remote_call=lambda: self.remote.update_article(
                    article_id, payload, actor.role, actor.id
                ),
                apply_remote=self._store,
                apply_local=apply_local,
            )
        )

    def submit_for_review(self, actor: User, article_id: int) -> SyncResult:
        """Move a draft or rejected article to pending.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor is not the author or the
                article cannot be submitted from its current status.
            ValidationError: If the content does not pass validation.
        """
        article = self._require_article(article_id)
        workflow.check_transition(
            article.status, ArticleStatus.PENDING, actor.role, actor.id, article.author_id
        )
        workflow.validate_article_content(article.title, article.content)
        return self._change_status(actor, article, ArticleStatus.PENDING)

    # --- Review ---

    def approve(self, actor: User, article_id: int) -> SyncResult:
        """Publish a pending article and tell its author.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor is not a reviewer or the
                article is not pending.
        """
        article = self._require_article(article_id)
        workflow.check_transition(
            article.status, ArticleStatus.PUBLISHED, actor.role, actor.id, article.author_id
        )
        result = self._change_status(actor, article, ArticleStatus.PUBLISHED)
        published = result.value
        self.dispatcher.notify(
            published.author_id,
            "Article approved",
            f'Your article "{published.title}" has been published in the magazine',
            NotificationType.SUCCESS,
            ARTICLES_PAGE_LINK,
        )
        return result

    def reject(self, actor: User, article_id: int, reason: Optional[str]) -> SyncResult:
        """Send a pending article back to its author with a reason.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor is not a reviewer or the
                article is not pending.
            ValidationError: If the reason is blank.
        """
        article = self._require_article(article_id)
        workflow.check_transition(
            article.status, ArticleStatus.REJECTED, actor.role, actor.id, article.author_id
        )
        reason = workflow.validate_rejection_reason(reason)
        result = self._change_status(actor, article, ArticleStatus.REJECTED, reason)
        rejected = result.value
        self.dispatcher.notify(
            rejected.author_id,
            "Article needs changes",
            f'Your article "{rejected.title}" was rejected. Reason: {reason}',
            NotificationType.DANGER,
            ARTICLES_PAGE_LINK,
        )
        return result

    def delete_article(self, actor: User, article_id: int) -> SyncResult:
        """Delete an article and its comments. Administrators only.

        Raises:
            ForbiddenTransitionError: If the actor is not an administrator.
            NotFoundError: If the article does not exist.
        """
        workflow.check_can_delete(actor.role)
        article = self._require_article(article_id)

        def apply_remote(deleted: Article) -> Article:
            self.state.remove(ARTICLES, article_id)
            return deleted

        def apply_local() -> Article:
            removed = self.state.remove(ARTICLES, article_id)
            removed.comments.clear()
            return removed

        result = self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=ARTICLES,
                payload={"id": article_id},
                remote_call=lambda: self.remote.delete_article(article_id, actor.role),
                apply_remote=apply_remote,
                apply_local=apply_local,
            )
        )
        logger.info("Article %s deleted: %s", article_id, article.title)
        return result

    # --- Comments ---

    def add_comment(self, actor: User, article_id: int, content: str) -> SyncResult:
        """Comment on an article.

        The author of a published article is notified unless they wrote the
        comment themselves.

        Raises:
            ValidationError: If the content is blank or too long.
            NotFoundError: If the article does not exist or is hidden from
                the actor.
            ForbiddenTransitionError: If the article is not published.
        """
        content = workflow.validate_comment_content(content)
        article = self.get_article(actor, article_id)
        if article.status != ArticleStatus.PUBLISHED:
            raise ForbiddenTransitionError("Only published articles accept comments")

        def apply_local() -> Comment:
            comment = Comment(
                id=self.state.next_comment_id(),
                article_id=article_id,
                author_id=actor.id,
                author_name=actor.name,
                content=content,
                created_at=datetime.now(pytz.utc).isoformat(),
            )
            return self.state.add_comment(article, comment)

        result = self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=ARTICLES,
                payload={"article_id": article_id, "author_id": actor.id},
                remote_call=lambda: self.remote.add_comment(article_id, actor.id, content),
                apply_remote=lambda comment: self.state.add_comment(article, comment),
                apply_local=apply_local,
            )
        )

        if article.status == ArticleStatus.PUBLISHED and article.author_id != actor.id:
            self.dispatcher.notify(
                article.author_id,
                "New comment",
                f'Your article "{article.title}" has a new comment',
                NotificationType.INFO,
                ARTICLE_DETAIL_LINK,
            )
        return result

    def list_comments(self, article_id: int) -> SyncResult:
        """Comments on an article, newest first.

        Raises:
            NotFoundError: If the article does not exist.
        """
        article = self._require_article(article_id)

        def newest_first() -> List[Comment]:
            return sorted(
                article.comments, key=lambda c: (c.created_at, c.id), reverse=True
            )

        def apply_remote(comments: List[Comment]) -> List[Comment]:
            article.comments = sorted(comments, key=lambda c: (c.created_at, c.id))
            return newest_first()

        return self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=ARTICLES,
                payload={"article_id": article_id},
                remote_call=lambda: self.remote.list_comments(article_id),
                apply_remote=apply_remote,
                apply_local=newest_first,
            )
        )

    # --- Reading ---

    def list_articles(
        self,
        actor: User,
        status: Optional[Any] = None,
        category: Optional[Any] = None,
        chapter: Optional[Any] = None,
        author_id: Optional[int] = None,
    ) -> SyncResult:
        """Articles the actor may see, newest first.

        Students only see their own articles and parents only published ones,
        whatever filters are passed.
        """
        status = ArticleStatus(status) if status is not None else None
        category = TalentCategory(category) if category is not None else None
        chapter = Chapter(chapter) if chapter is not None else None

        def visible() -> List[Article]:
            return workflow.filter_articles(
                self.state.articles,
                actor.role,
                actor.id,
                status=status,
                category=category,
                chapter=chapter,
                author_id=author_id,
            )

        def apply_remote(articles: List[Article]) -> List[Article]:
            self.state.replace(ARTICLES, articles)
            return visible()

        return self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=ARTICLES,
                remote_call=self.remote.list_articles,
                apply_remote=apply_remote,
                apply_local=visible,
            )
        )

    def get_article(self, actor: User, article_id: int) -> Article:
        """Read one article from the current state.

        Raises:
            NotFoundError: If the article does not exist or the actor's role
                does not allow seeing it.
        """
        article = self._require_article(article_id)
        if not workflow.is_visible_to(article, actor.role, actor.id):
            raise NotFoundError("Article", article_id)
        return article

    def list_published(self, chapter: Optional[Any] = None) -> List[Article]:
        """Public magazine view: published articles, newest first."""
        result = self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=ARTICLES,
                payload={"status": ArticleStatus.PUBLISHED.value},
                remote_call=self.remote.list_articles,
                apply_remote=lambda articles: self.state.replace(ARTICLES, articles),
            )
        )
        logger.debug("Public view served from %s state", result.outcome.value)
        return workflow.filter_articles(
            self.state.articles,
            UserRole.PARENT,
            None,
            chapter=Chapter(chapter) if chapter is not None else None,
        )

    def search_published(self, term: str, chapter: Optional[Any] = None) -> List[Article]:
        """Published articles whose title, content or author contain ``term``."""
        needle = (term or "").strip().lower()
        articles = self.list_published(chapter)
        if not needle:
            return articles
        return [
            a
            for a in articles
            if needle in a.title.lower()
            or needle in a.content.lower()
            or needle in (a.author_name or self._author_name(a.author_id) or "").lower()
        ]

    def pending_review_summary(self, now: Optional[datetime] = None) -> PendingReviewSummary:
        """Counters for the review queue.

        ``this_week`` counts articles created in the last seven days and
        ``urgent`` those waiting URGENT_REVIEW_DAYS or longer.
        """
        now = now or datetime.now(pytz.utc)
        if now.tzinfo is None:
            now = pytz.utc.localize(now)
        week_ago = now - timedelta(days=7)
        urgent_before = now - timedelta(days=URGENT_REVIEW_DAYS)

        pending = [a for a in self.state.articles if a.status == ArticleStatus.PENDING]
        pending.sort(key=lambda a: (a.created_at, a.id))
        this_week = 0
        urgent = 0
        for article in pending:
            created = workflow.parse_timestamp(article.created_at)
            if created is None:
                continue
            if created >= week_ago:
                this_week += 1
            if created <= urgent_before:
                urgent += 1
        return PendingReviewSummary(
            total=len(pending), this_week=this_week, urgent=urgent, articles=pending
        )
