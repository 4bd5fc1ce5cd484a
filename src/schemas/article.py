"""Article and comment schema definitions.

This module defines the Article and Comment data models shared by the API
server and the offline client, plus the request/response bodies of the
article endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

import pytz
from pydantic import BaseModel, ConfigDict, Field

from schemas.user import TalentCategory


class Chapter(str, Enum):
    """Magazine section an article belongs to."""

    PORTFOLIOS = "portfolios"
    EXPERIENCES = "experiences"
    POSITIONING = "positioning"


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


class Comment(BaseModel):
    id: int
    article_id: int
    author_id: int
    author_name: Optional[str] = None
    content: str
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )


class Article(BaseModel):
    id: int
    title: str
    category: TalentCategory
    chapter: Chapter
    content: str
    author_id: int
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    status: ArticleStatus = ArticleStatus.DRAFT
    rejection_reason: Optional[str] = Field(
        default=None,
        description="Reviewer's reason. Present only while status is rejected.",
    )
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )
    updated_at: Optional[str] = None
    published_at: Optional[str] = Field(
        default=None,
        description="Publication time. Present only while status is published.",
    )
    comments: List[Comment] = Field(default_factory=list)


class CreateArticleRequest(BaseModel):
    title: str
    category: TalentCategory
    chapter: Chapter
    content: str
    author_id: int
    status: ArticleStatus = ArticleStatus.DRAFT
    image_base64: Optional[str] = None
    image_url: Optional[str] = None


class UpdateArticleRequest(BaseModel):
    title: str
    category: TalentCategory
    chapter: Chapter
    content: str
    status: ArticleStatus
    image_base64: Optional[str] = None
    image_url: Optional[str] = None


class ArticleStatusUpdateRequest(BaseModel):
    status: ArticleStatus
    rejection_reason: Optional[str] = None


class ArticleResponse(BaseModel):
    article: Article
    image_url: Optional[str] = None


class ArticleListResponse(BaseModel):
    articles: List[Article]


class DeleteArticleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    deleted_article: Article = Field(alias="deletedArticle")


class CreateCommentRequest(BaseModel):
    author_id: int
    content: str


class CommentResponse(BaseModel):
    comment: Comment


class CommentListResponse(BaseModel):
    comments: List[Comment]
