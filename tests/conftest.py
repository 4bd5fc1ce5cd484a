import os
import tempfile

# Settings are read at import time, so they must be in place before any
# project module is imported.
_DATA_DIR = tempfile.mkdtemp(prefix="magazine-tests-")
os.environ["MAGAZINE_DATA_DIR"] = _DATA_DIR
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_SAMPLE_DATA"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import app  # noqa: E402
from client.cache_store import LocalCacheStore  # noqa: E402
from client.portal import MagazinePortal  # noqa: E402
from client.remote import RemoteContentService  # noqa: E402
from core.database import SessionLocal, engine, seed_sample_data  # noqa: E402
from models.base import Base  # noqa: E402
from schemas.article import Article, ArticleStatus, Chapter  # noqa: E402
from schemas.user import TalentCategory, User, UserRole  # noqa: E402

VALID_TITLE = "A valid title"
VALID_CONTENT = "This content is long enough to pass validation."

# Ids assigned by seed_sample_data
ADMIN_ID = 1
TEACHER_ID = 2
STUDENT_ID = 3
STUDENT2_ID = 4
PARENT_ID = 5


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def make_user(user_id: int, role: UserRole, **kwargs) -> User:
    defaults = {
        "username": f"user{user_id}",
        "password": "123",
        "name": f"User {user_id}",
    }
    defaults.update(kwargs)
    return User(id=user_id, role=role, **defaults)


def make_article(article_id: int, author_id: int, status=ArticleStatus.DRAFT, **kwargs) -> Article:
    defaults = {
        "title": VALID_TITLE,
        "category": TalentCategory.ARTISTIC,
        "chapter": Chapter.PORTFOLIOS,
        "content": VALID_CONTENT,
        "created_at": f"2024-01-{article_id:02d}T10:00:00+00:00",
    }
    defaults.update(kwargs)
    article = Article(id=article_id, author_id=author_id, status=status, **defaults)
    if status == ArticleStatus.PUBLISHED and not article.published_at:
        article.published_at = article.created_at
    return article


@pytest.fixture
def db():
    """Fresh server tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_db(db):
    session = SessionLocal()
    try:
        seed_sample_data(session)
    finally:
        session.close()


@pytest.fixture
def api_client(seeded_db):
    client = TestClient(app)
    yield client
    client.close()


@pytest.fixture
def online_remote(seeded_db):
    client = TestClient(app, base_url="http://testserver/api")
    yield RemoteContentService(client=client)
    client.close()


@pytest.fixture
def offline_remote():
    client = httpx.Client(
        transport=httpx.MockTransport(_refuse), base_url="http://offline/api"
    )
    yield RemoteContentService(client=client)
    client.close()


@pytest.fixture
def cache(tmp_path):
    return LocalCacheStore(tmp_path / "cache.db")


@pytest.fixture
def online_portal(online_remote, cache):
    portal = MagazinePortal(remote=online_remote, cache=cache)
    portal.start()
    return portal


@pytest.fixture
def offline_portal(offline_remote, cache):
    return MagazinePortal(remote=offline_remote, cache=cache)


@pytest.fixture
def admin():
    return make_user(ADMIN_ID, UserRole.ADMIN, username="admin", password="admin")


@pytest.fixture
def teacher():
    return make_user(TEACHER_ID, UserRole.TEACHER, username="docente1")


@pytest.fixture
def student():
    return make_user(
        STUDENT_ID, UserRole.STUDENT, username="estudiante1", talent=TalentCategory.ARTISTIC
    )


@pytest.fixture
def other_student():
    return make_user(STUDENT2_ID, UserRole.STUDENT, username="estudiante2")


@pytest.fixture
def parent():
    return make_user(PARENT_ID, UserRole.PARENT, username="padre1")
