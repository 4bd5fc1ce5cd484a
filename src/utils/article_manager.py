"""Article management module.

This module handles persistence of articles and their comments for the API
server. Every status change goes through the shared rules in core.workflow.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session, joinedload

from core import workflow
from core.exceptions import NotFoundError
from models.article import ArticleModel
from models.comment import CommentModel
from models.user import UserModel
from schemas.article import (
    Article,
    ArticleStatus,
    Comment,
    CreateArticleRequest,
    UpdateArticleRequest,
)
from utils.converters import model_to_article, model_to_comment
from utils.image_store import save_base64_image

logger = logging.getLogger(__name__)


class ArticleManager:
    """Manages article and comment operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize ArticleManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, article_id: int) -> ArticleModel:
        """Helper to get ORM model."""
        model = (
            self.db.query(ArticleModel)
            .options(
                joinedload(ArticleModel.author),
                joinedload(ArticleModel.comments).joinedload(CommentModel.author),
            )
            .filter(ArticleModel.id == article_id)
            .first()
        )
        if not model:
            raise NotFoundError("Article", article_id)
        return model

    def _require_user(self, user_id: int) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if not model:
            raise NotFoundError("User", user_id)
        return model

    def _resolve_image(
        self, title: str, image_base64: Optional[str], image_url: Optional[str]
    ) -> Optional[str]:
        # image_base64 takes priority over image_url
        if image_base64:
            return save_base64_image(image_base64, title)
        return image_url

    def list_articles(
        self,
        status: Optional[ArticleStatus] = None,
        category: Optional[str] = None,
        chapter: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> List[Article]:
        """List articles matching the given filters, newest first."""
        query = self.db.query(ArticleModel).options(
            joinedload(ArticleModel.author),
            joinedload(ArticleModel.comments).joinedload(CommentModel.author),
        )
        if status:
            query = query.filter(ArticleModel.status == status)
        if category:
            query = query.filter(ArticleModel.category == category)
        if chapter:
            query = query.filter(ArticleModel.chapter == chapter)
        if user_id is not None:
            query = query.filter(ArticleModel.author_id == user_id)
        models = query.order_by(ArticleModel.created_at.desc(), ArticleModel.id.desc()).all()
        return [model_to_article(m) for m in models]

    def get_article(self, article_id: int) -> Article:
        """Read an article with its comments.

        Raises:
            NotFoundError: If the article does not exist.
        """
        return model_to_article(self._get_model(article_id))

    def create_article(self, req: CreateArticleRequest) -> Tuple[Article, Optional[str]]:
        """Create an article in draft or pending status.

        Returns:
            The created article and the resolved image URL.

        Raises:
            ValidationError: If title or content lengths are out of range.
            ForbiddenTransitionError: If the initial status is not allowed.
            NotFoundError: If the author does not exist.
        """
        workflow.validate_article_content(req.title, req.content)
        status = workflow.check_initial_status(req.status)
        self._require_user(req.author_id)

        image_url = self._resolve_image(req.title, req.image_base64, req.image_url)
        now = datetime.now(pytz.utc).isoformat()
        model = ArticleModel(
            title=req.title,
            category=req.category,
            chapter=req.chapter,
            content=req.content,
            author_id=req.author_id,
            image_url=image_url,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        logger.info("Created article %s (%s)", model.id, status.value)
        return self.get_article(model.id), image_url

    def update_article(
        self,
        article_id: int,
        req: UpdateArticleRequest,
        actor_role: str,
        actor_id: int,
    ) -> Article:
        """Apply an author's edit and the status it moves the article to.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor or move is not allowed.
            ValidationError: If the new content is invalid.
        """
        model = self._get_model(article_id)
        workflow.check_transition(
            model.status, req.status, actor_role, actor_id, model.author_id
        )
        workflow.validate_article_content(req.title, req.content)

        model.title = req.title
        model.category = req.category
        model.chapter = req.chapter
        model.content = req.content
        if req.image_base64 or req.image_url:
            model.image_url = self._resolve_image(req.title, req.image_base64, req.image_url)
        workflow.apply_transition(model, req.status)
        self.db.commit()
        return self.get_article(article_id)

    def update_status(
        self,
        article_id: int,
        status: ArticleStatus,
        actor_role: str,
        actor_id: int,
        rejection_reason: Optional[str] = None,
    ) -> Article:
        """Move an article to a new status without editing its content.

        Raises:
            NotFoundError: If the article does not exist.
            ForbiddenTransitionError: If the actor or move is not allowed.
            ValidationError: If a rejection has no reason or a submission
                has invalid content.
        """
        model = self._get_model(article_id)
        workflow.check_transition(model.status, status, actor_role, actor_id, model.author_id)
        if status == ArticleStatus.PENDING:
            workflow.validate_article_content(model.title, model.content)
        workflow.apply_transition(model, status, rejection_reason)
        self.db.commit()
        return self.get_article(article_id)

    def delete_article(self, article_id: int, actor_role: str) -> Article:
        """Delete an article and its comments.

        Returns:
            The article as it was before deletion.

        Raises:
            ForbiddenTransitionError: If the actor is not an administrator.
            NotFoundError: If the article does not exist.
        """
        workflow.check_can_delete(actor_role)
        model = self._get_model(article_id)
        deleted = model_to_article(model, with_comments=False)

        # The comments cascade is flushed before the article row itself
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted article %s: %s", article_id, deleted.title)
        return deleted

    def add_comment(self, article_id: int, author_id: int, content: str) -> Comment:
        """Add a comment to an existing article.

        Raises:
            NotFoundError: If the article or author does not exist.
            ValidationError: If the content is blank or too long.
        """
        content = workflow.validate_comment_content(content)
        self._get_model(article_id)
        self._require_user(author_id)
        model = CommentModel(
            article_id=article_id,
            author_id=author_id,
            content=content,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        return model_to_comment(model)

    def list_comments(self, article_id: int) -> List[Comment]:
        """List an article's comments, newest first.

        Raises:
            NotFoundError: If the article does not exist.
        """
        self._get_model(article_id)
        models = (
            self.db.query(CommentModel)
            .options(joinedload(CommentModel.author))
            .filter(CommentModel.article_id == article_id)
            .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
            .all()
        )
        return [model_to_comment(m) for m in models]
