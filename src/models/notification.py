from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, String, Text

from schemas.notification import NotificationType
from .base import Base
from .user import _enum_values


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(
        Enum(NotificationType, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=NotificationType.INFO,
    )
    read = Column(Boolean, nullable=False, default=False)
    link = Column(String(255), nullable=True)
    created_at = Column(String, nullable=False)
