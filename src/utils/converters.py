"""Conversions between database models and API schemas."""

from models.article import ArticleModel
from models.comment import CommentModel
from models.notification import NotificationModel
from models.user import UserModel
from schemas.article import Article, Comment
from schemas.notification import Notification
from schemas.user import User


def model_to_user(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        name=model.name,
        role=model.role,
        talent=model.talent,
        active=model.active,
        last_login=model.last_login,
    )


def model_to_comment(model: CommentModel) -> Comment:
    return Comment(
        id=model.id,
        article_id=model.article_id,
        author_id=model.author_id,
        author_name=model.author.name if model.author else None,
        content=model.content,
        created_at=model.created_at,
    )


def model_to_article(model: ArticleModel, with_comments: bool = True) -> Article:
    comments = [model_to_comment(c) for c in model.comments] if with_comments else []
    return Article(
        id=model.id,
        title=model.title,
        category=model.category,
        chapter=model.chapter,
        content=model.content,
        author_id=model.author_id,
        author_name=model.author.name if model.author else None,
        image_url=model.image_url,
        status=model.status,
        rejection_reason=model.rejection_reason,
        created_at=model.created_at,
        updated_at=model.updated_at,
        published_at=model.published_at,
        comments=comments,
    )


def model_to_notification(model: NotificationModel) -> Notification:
    return Notification(
        id=model.id,
        user_id=model.user_id,
        title=model.title,
        content=model.content,
        type=model.type,
        read=model.read,
        link=model.link,
        created_at=model.created_at,
    )
