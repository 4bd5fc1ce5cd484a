"""Article and comment routes.

This module handles HTTP endpoints for listing, writing, reviewing and
deleting magazine articles, and for the comment thread under each article.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from core.dependencies import ActorIdDep, ActorRoleDep, ArticleManagerDep
from core.exceptions import ForbiddenTransitionError, NotFoundError, ValidationError
from schemas.article import (
    ArticleListResponse,
    ArticleResponse,
    ArticleStatus,
    ArticleStatusUpdateRequest,
    Chapter,
    CommentListResponse,
    CommentResponse,
    CreateArticleRequest,
    CreateCommentRequest,
    DeleteArticleResponse,
    UpdateArticleRequest,
)
from schemas.user import TalentCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/articles", tags=["Articles"])


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ForbiddenTransitionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _require_actor_id(actor_id: Optional[int]) -> int:
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. A user-id header is required.",
        )
    return actor_id


@router.get("", summary="List articles")
def list_articles(
    article_manager: ArticleManagerDep,
    status_filter: Optional[ArticleStatus] = Query(default=None, alias="status"),
    category: Optional[TalentCategory] = None,
    chapter: Optional[Chapter] = None,
    user_id: Optional[int] = None,
) -> ArticleListResponse:
    """List articles, newest first, with optional filters."""
    articles = article_manager.list_articles(
        status=status_filter, category=category, chapter=chapter, user_id=user_id
    )
    return ArticleListResponse(articles=articles)


@router.get("/{article_id}", summary="Get article")
def get_article(article_id: int, article_manager: ArticleManagerDep) -> ArticleResponse:
    try:
        article = article_manager.get_article(article_id)
    except NotFoundError as e:
        raise _to_http_error(e)
    return ArticleResponse(article=article, image_url=article.image_url)


@router.post("", summary="Create article", status_code=status.HTTP_201_CREATED)
def create_article(
    req: CreateArticleRequest,
    article_manager: ArticleManagerDep,
) -> ArticleResponse:
    """Create a draft or pending article.

    Returns:
        ArticleResponse with the stored article and its image URL.

    Raises:
        HTTPException: 400 on invalid content, 403 on a disallowed initial
            status, 404 if the author does not exist.
    """
    try:
        article, image_url = article_manager.create_article(req)
    except (ValidationError, ForbiddenTransitionError, NotFoundError) as e:
        raise _to_http_error(e)
    return ArticleResponse(article=article, image_url=image_url)


@router.put("/{article_id}", summary="Edit article")
def update_article(
    article_id: int,
    req: UpdateArticleRequest,
    article_manager: ArticleManagerDep,
    actor_role: ActorRoleDep,
    actor_id: ActorIdDep,
) -> ArticleResponse:
    """Apply an author's edit. Only the author may edit, and only while the
    article is a draft, pending, or rejected."""
    try:
        article = article_manager.update_article(
            article_id, req, actor_role, _require_actor_id(actor_id)
        )
    except (ValidationError, ForbiddenTransitionError, NotFoundError) as e:
        raise _to_http_error(e)
    return ArticleResponse(article=article, image_url=article.image_url)


@router.put("/{article_id}/status", summary="Change article status")
def update_article_status(
    article_id: int,
    req: ArticleStatusUpdateRequest,
    article_manager: ArticleManagerDep,
    actor_role: ActorRoleDep,
    actor_id: ActorIdDep,
) -> ArticleResponse:
    """Submit, approve or reject an article.

    Raises:
        HTTPException: 400 when a rejection has no reason, 403 when the
            move or actor is not allowed, 404 for an unknown article.
    """
    try:
        article = article_manager.update_status(
            article_id,
            req.status,
            actor_role,
            _require_actor_id(actor_id),
            rejection_reason=req.rejection_reason,
        )
    except (ValidationError, ForbiddenTransitionError, NotFoundError) as e:
        raise _to_http_error(e)
    return ArticleResponse(article=article, image_url=article.image_url)


@router.delete("/{article_id}", summary="Delete article")
def delete_article(
    article_id: int,
    article_manager: ArticleManagerDep,
    actor_role: ActorRoleDep,
) -> DeleteArticleResponse:
    """Delete an article with its comments. Administrators only."""
    try:
        deleted = article_manager.delete_article(article_id, actor_role)
    except (ForbiddenTransitionError, NotFoundError) as e:
        raise _to_http_error(e)
    return DeleteArticleResponse(
        message="Article deleted successfully", deleted_article=deleted
    )


@router.get("/{article_id}/comments", summary="List comments")
def list_comments(
    article_id: int, article_manager: ArticleManagerDep
) -> CommentListResponse:
    try:
        comments = article_manager.list_comments(article_id)
    except NotFoundError as e:
        raise _to_http_error(e)
    return CommentListResponse(comments=comments)


@router.post(
    "/{article_id}/comments",
    summary="Add comment",
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    article_id: int,
    req: CreateCommentRequest,
    article_manager: ArticleManagerDep,
) -> CommentResponse:
    try:
        comment = article_manager.add_comment(article_id, req.author_id, req.content)
    except (ValidationError, NotFoundError) as e:
        raise _to_http_error(e)
    return CommentResponse(comment=comment)
