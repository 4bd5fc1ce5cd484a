"""Database connection and session management.

This module handles the server database connection using SQLAlchemy.
"""

import logging
from datetime import datetime, timedelta

import pytz
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATA_DIR, DATABASE_URL
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401
from models.article import ArticleModel
from models.user import UserModel
from schemas.article import ArticleStatus, Chapter
from schemas.user import TalentCategory, UserRole

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = DATABASE_URL


def create_db_engine(url: str = SQLALCHEMY_DATABASE_URL):
    """Create an engine, sharing one connection for in-memory SQLite."""
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        # Ensure data directory exists
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = create_db_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def db_healthcheck(bind=None):
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except Exception as e:
        return False, str(e)


SAMPLE_USERS = [
    ("admin", "admin", "Administrador Principal", UserRole.ADMIN, None),
    ("docente1", "123", "María González", UserRole.TEACHER, None),
    ("estudiante1", "123", "Juan Pérez", UserRole.STUDENT, TalentCategory.ARTISTIC),
    ("estudiante2", "123", "Ana López", UserRole.STUDENT, TalentCategory.MUSICAL),
    ("padre1", "123", "Carlos Rodríguez", UserRole.PARENT, None),
]

# (title, category, chapter, content, author username, days since publication)
SAMPLE_ARTICLES = [
    (
        "Our football team wins the regional tournament",
        TalentCategory.SPORTING,
        Chapter.PORTFOLIOS,
        "The school football team achieved a historic victory in the "
        "regional tournament after a season of hard work.",
        "estudiante1",
        5,
    ),
    (
        "Spring concert of the student choir",
        TalentCategory.MUSICAL,
        Chapter.PORTFOLIOS,
        "The student choir presented a moving spring concert with "
        "traditional songs from the region.",
        "estudiante2",
        3,
    ),
    (
        "Educational robotics workshop",
        TalentCategory.TECHNOLOGICAL,
        Chapter.EXPERIENCES,
        "The talent programme ran a robotics workshop where students "
        "learned the basics of programming.",
        "docente1",
        2,
    ),
]


def seed_sample_data(db: Session) -> bool:
    """Insert the sample users and articles into an empty database.

    Returns:
        True if data was inserted, False if users already existed.
    """
    if db.query(UserModel).first() is not None:
        return False

    now = datetime.now(pytz.utc)
    users = {}
    for username, password, name, role, talent in SAMPLE_USERS:
        user = UserModel(
            username=username,
            password=password,
            name=name,
            role=role,
            talent=talent,
            active=True,
            created_at=now.isoformat(),
        )
        db.add(user)
        users[username] = user
    db.flush()

    for title, category, chapter, content, author, days_ago in SAMPLE_ARTICLES:
        published = (now - timedelta(days=days_ago)).isoformat()
        db.add(
            ArticleModel(
                title=title,
                category=category,
                chapter=chapter,
                content=content,
                author_id=users[author].id,
                status=ArticleStatus.PUBLISHED,
                created_at=published,
                updated_at=published,
                published_at=published,
            )
        )
    db.commit()
    logger.info(
        "Inserted %d sample users and %d sample articles",
        len(SAMPLE_USERS),
        len(SAMPLE_ARTICLES),
    )
    return True
