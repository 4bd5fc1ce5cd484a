import base64

import pytest

from conftest import (
    ADMIN_ID,
    PARENT_ID,
    STUDENT2_ID,
    STUDENT_ID,
    TEACHER_ID,
    VALID_CONTENT,
    VALID_TITLE,
)
from config import IMAGES_DIR

TEACHER_HEADERS = {"user-role": "teacher", "user-id": str(TEACHER_ID)}
STUDENT_HEADERS = {"user-role": "student", "user-id": str(STUDENT_ID)}
ADMIN_HEADERS = {"user-role": "admin", "user-id": str(ADMIN_ID)}


def create_article(client, status="pending", author_id=STUDENT_ID, **kwargs):
    body = {
        "title": VALID_TITLE,
        "category": "artistic",
        "chapter": "portfolios",
        "content": VALID_CONTENT,
        "author_id": author_id,
        "status": status,
    }
    body.update(kwargs)
    return client.post("/api/articles", json=body)


class TestHealthAndLogin:
    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "timestamp" in body

    def test_unknown_route_uses_error_body(self, api_client):
        response = api_client.get("/api/missing")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_login_success_omits_password(self, api_client):
        response = api_client.post(
            "/api/login", json={"username": "admin", "password": "admin", "role": "admin"}
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["username"] == "admin"
        assert user["password"] is None
        assert user["last_login"] is not None

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "admin", "password": "wrong", "role": "admin"},
            {"username": "admin", "password": "admin", "role": "teacher"},
            {"username": "nobody", "password": "123", "role": "student"},
        ],
    )
    def test_login_failure_returns_401_error_body(self, api_client, body):
        response = api_client.post("/api/login", json=body)
        assert response.status_code == 401
        assert "error" in response.json()

    def test_inactive_user_cannot_log_in(self, api_client):
        api_client.put(f"/api/users/{STUDENT_ID}/status", json={"active": False})
        response = api_client.post(
            "/api/login",
            json={"username": "estudiante1", "password": "123", "role": "student"},
        )
        assert response.status_code == 401


class TestArticles:
    def test_list_seeded_articles(self, api_client):
        articles = api_client.get("/api/articles").json()["articles"]
        assert len(articles) == 3
        assert all(a["status"] == "published" for a in articles)
        assert all(a["published_at"] for a in articles)

    def test_list_filters(self, api_client):
        create_article(api_client, status="draft")
        drafts = api_client.get("/api/articles", params={"status": "draft"}).json()["articles"]
        assert len(drafts) == 1
        mine = api_client.get("/api/articles", params={"user_id": STUDENT2_ID}).json()["articles"]
        assert [a["author_id"] for a in mine] == [STUDENT2_ID]
        musical = api_client.get("/api/articles", params={"category": "musical"}).json()["articles"]
        assert len(musical) == 1

    def test_create_returns_article_and_image_url(self, api_client):
        response = create_article(api_client, image_url="https://example.com/a.png")
        assert response.status_code == 201
        body = response.json()
        assert body["article"]["status"] == "pending"
        assert body["article"]["author_name"] == "Juan Pérez"
        assert body["image_url"] == "https://example.com/a.png"

    def test_create_with_base64_image_stores_file(self, api_client):
        data = base64.b64encode(b"\x89PNG fake image").decode()
        response = create_article(api_client, image_base64=f"data:image/png;base64,{data}")
        image_url = response.json()["image_url"]
        assert image_url.startswith("/images/article_")
        assert (IMAGES_DIR / image_url.rsplit("/", 1)[1]).exists()

    def test_create_lists_every_violation(self, api_client):
        response = create_article(api_client, title="abc", content="short")
        assert response.status_code == 400
        error = response.json()["error"]
        assert "Title" in error and "Content" in error

    def test_create_as_published_is_forbidden(self, api_client):
        response = create_article(api_client, status="published")
        assert response.status_code == 403

    def test_create_for_unknown_author_is_404(self, api_client):
        assert create_article(api_client, author_id=999).status_code == 404

    def test_get_unknown_article_is_404(self, api_client):
        response = api_client.get("/api/articles/999")
        assert response.status_code == 404
        assert response.json() == {"error": "Article '999' not found"}

    def test_review_cycle(self, api_client):
        article_id = create_article(api_client, status="draft").json()["article"]["id"]

        response = api_client.put(
            f"/api/articles/{article_id}/status",
            json={"status": "published"},
            headers=TEACHER_HEADERS,
        )
        assert response.status_code == 403

        response = api_client.put(
            f"/api/articles/{article_id}/status",
            json={"status": "pending"},
            headers=STUDENT_HEADERS,
        )
        assert response.status_code == 200

        response = api_client.put(
            f"/api/articles/{article_id}/status",
            json={"status": "rejected"},
            headers=TEACHER_HEADERS,
        )
        assert response.status_code == 400

        response = api_client.put(
            f"/api/articles/{article_id}/status",
            json={"status": "rejected", "rejection_reason": "needs sources"},
            headers=TEACHER_HEADERS,
        )
        article = response.json()["article"]
        assert article["status"] == "rejected"
        assert article["rejection_reason"] == "needs sources"
        assert article["published_at"] is None

        update = {
            "title": "A better title",
            "category": "artistic",
            "chapter": "portfolios",
            "content": VALID_CONTENT + " With sources.",
            "status": "pending",
        }
        response = api_client.put(
            f"/api/articles/{article_id}",
            json=update,
            headers={"user-role": "student", "user-id": str(STUDENT2_ID)},
        )
        assert response.status_code == 403
        response = api_client.put(
            f"/api/articles/{article_id}", json=update, headers=STUDENT_HEADERS
        )
        article = response.json()["article"]
        assert article["status"] == "pending"
        assert article["title"] == "A better title"
        assert article["rejection_reason"] is None

        response = api_client.put(
            f"/api/articles/{article_id}/status",
            json={"status": "published"},
            headers=ADMIN_HEADERS,
        )
        article = response.json()["article"]
        assert article["status"] == "published"
        assert article["published_at"] is not None

    def test_status_change_requires_headers(self, api_client):
        article_id = create_article(api_client).json()["article"]["id"]
        response = api_client.put(
            f"/api/articles/{article_id}/status", json={"status": "published"}
        )
        assert response.status_code == 403

    def test_delete_requires_admin(self, api_client):
        response = api_client.delete("/api/articles/1", headers=TEACHER_HEADERS)
        assert response.status_code == 403
        assert api_client.get("/api/articles/1").status_code == 200

    def test_delete_unknown_article_is_404(self, api_client):
        assert api_client.delete("/api/articles/999", headers=ADMIN_HEADERS).status_code == 404

    def test_delete_removes_comments(self, api_client):
        api_client.post(
            "/api/articles/1/comments", json={"author_id": PARENT_ID, "content": "Great!"}
        )
        response = api_client.delete("/api/articles/1", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Article deleted successfully"
        assert body["deletedArticle"]["id"] == 1
        assert api_client.get("/api/articles/1").status_code == 404
        assert api_client.get("/api/articles/1/comments").status_code == 404


class TestComments:
    def test_add_and_list_comments(self, api_client):
        first = api_client.post(
            "/api/articles/1/comments", json={"author_id": PARENT_ID, "content": "First"}
        )
        assert first.status_code == 201
        assert first.json()["comment"]["author_name"] == "Carlos Rodríguez"
        api_client.post(
            "/api/articles/1/comments", json={"author_id": TEACHER_ID, "content": "Second"}
        )
        comments = api_client.get("/api/articles/1/comments").json()["comments"]
        assert [c["content"] for c in comments] == ["Second", "First"]
        article = api_client.get("/api/articles/1").json()["article"]
        assert len(article["comments"]) == 2

    @pytest.mark.parametrize("content", ["   ", "x" * 501])
    def test_invalid_comment_is_400(self, api_client, content):
        response = api_client.post(
            "/api/articles/1/comments", json={"author_id": PARENT_ID, "content": content}
        )
        assert response.status_code == 400

    def test_comment_on_unknown_article_is_404(self, api_client):
        response = api_client.post(
            "/api/articles/999/comments", json={"author_id": PARENT_ID, "content": "Hi"}
        )
        assert response.status_code == 404


class TestUsers:
    def test_list_users(self, api_client):
        users = api_client.get("/api/users").json()["users"]
        assert [u["username"] for u in users] == [
            "admin",
            "docente1",
            "estudiante1",
            "estudiante2",
            "padre1",
        ]
        assert all(u["password"] is None for u in users)

    def test_create_user_drops_talent_for_non_students(self, api_client):
        response = api_client.post(
            "/api/users",
            json={
                "username": "docente2",
                "password": "secret",
                "name": "Laura",
                "role": "teacher",
                "talent": "musical",
            },
        )
        assert response.status_code == 201
        assert response.json()["user"]["talent"] is None

    def test_duplicate_username_is_409(self, api_client):
        response = api_client.post(
            "/api/users",
            json={"username": "admin", "password": "123", "name": "Other", "role": "admin"},
        )
        assert response.status_code == 409

    def test_short_fields_are_400(self, api_client):
        response = api_client.post(
            "/api/users",
            json={"username": "ab", "password": "1", "name": "A", "role": "student"},
        )
        assert response.status_code == 400
        assert response.json()["error"].count(";") == 2

    def test_admin_header_required_when_enabled(self, api_client, monkeypatch):
        monkeypatch.setattr("api.routes.users.REQUIRE_ADMIN_FOR_USER_CREATION", True)
        body = {"username": "nuevo", "password": "123", "name": "Nuevo", "role": "parent"}
        assert api_client.post("/api/users", json=body).status_code == 403
        response = api_client.post("/api/users", json=body, headers={"user-role": "admin"})
        assert response.status_code == 201

    def test_toggle_status_and_reset_password(self, api_client):
        response = api_client.put(f"/api/users/{STUDENT_ID}/status", json={"active": False})
        assert response.json()["user"]["active"] is False
        response = api_client.put(f"/api/users/{STUDENT_ID}/password", json={"password": "nueva"})
        assert response.status_code == 200
        api_client.put(f"/api/users/{STUDENT_ID}/status", json={"active": True})
        response = api_client.post(
            "/api/login",
            json={"username": "estudiante1", "password": "nueva", "role": "student"},
        )
        assert response.status_code == 200

    def test_unknown_user_is_404(self, api_client):
        assert api_client.put("/api/users/999/status", json={"active": False}).status_code == 404


class TestNotifications:
    def create(self, client, user_id=STUDENT_ID, title="Hello"):
        return client.post(
            "/api/notifications",
            json={"user_id": user_id, "title": title, "content": "Body", "type": "success"},
        )

    def test_create_and_list_for_user(self, api_client):
        assert self.create(api_client, title="First").status_code == 201
        self.create(api_client, title="Second")
        self.create(api_client, user_id=TEACHER_ID)
        notifications = api_client.get(
            "/api/notifications", params={"user_id": STUDENT_ID}
        ).json()["notifications"]
        assert [n["title"] for n in notifications] == ["Second", "First"]
        assert all(n["read"] is False for n in notifications)

    def test_notification_for_unknown_user_is_404(self, api_client):
        assert self.create(api_client, user_id=999).status_code == 404

    def test_mark_read_is_idempotent(self, api_client):
        notification_id = self.create(api_client).json()["notification"]["id"]
        first = api_client.put(f"/api/notifications/{notification_id}/read").json()
        second = api_client.put(f"/api/notifications/{notification_id}/read").json()
        assert first == second
        assert first["notification"]["read"] is True

    def test_delete(self, api_client):
        notification_id = self.create(api_client).json()["notification"]["id"]
        assert api_client.delete(f"/api/notifications/{notification_id}").status_code == 200
        assert api_client.delete(f"/api/notifications/{notification_id}").status_code == 404
