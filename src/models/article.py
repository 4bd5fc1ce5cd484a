"""Article database model."""

from sqlalchemy import CheckConstraint, Column, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from schemas.article import ArticleStatus, Chapter
from schemas.user import TalentCategory
from .base import Base
from .user import _enum_values


class ArticleModel(Base):
    __tablename__ = "articles"
    __table_args__ = (
        CheckConstraint(
            "published_at IS NULL OR status = 'published'",
            name="valid_publication_date",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    category = Column(
        Enum(TalentCategory, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
    )
    chapter = Column(
        Enum(Chapter, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    author_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    image_url = Column(String(500), nullable=True)
    status = Column(
        Enum(ArticleStatus, values_callable=_enum_values, native_enum=False, length=20),
        index=True,
        nullable=False,
        default=ArticleStatus.DRAFT,
    )
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=True)
    published_at = Column(String, nullable=True)

    author = relationship("UserModel")
    comments = relationship(
        "CommentModel",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="CommentModel.created_at",
    )
