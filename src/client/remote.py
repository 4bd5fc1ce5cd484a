"""Remote Content Service client.

Thin HTTP wrapper over the magazine API. Every failure, whether the server is
unreachable, times out or answers with a non-2xx status, is raised as
RemoteUnavailableError so the Sync Coordinator can fall back to local state.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from config import API_BASE_URL, REMOTE_TIMEOUT
from core.exceptions import RemoteUnavailableError
from schemas.article import Article, ArticleStatus, Comment
from schemas.notification import Notification
from schemas.user import User, UserRole

logger = logging.getLogger(__name__)


def _actor_headers(role: Any, user_id: Optional[int] = None) -> Dict[str, str]:
    headers = {"user-role": UserRole(role).value}
    if user_id is not None:
        headers["user-id"] = str(user_id)
    return headers


class RemoteContentService:
    """HTTP client for the Remote Content Service."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = REMOTE_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root including the ``/api`` prefix.
            timeout: Seconds before a call counts as unavailable.
            client: Pre-built client to use instead of creating one. Its own
                base URL is used.
        """
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise RemoteUnavailableError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            try:
                detail = response.json().get("error", response.text)
            except ValueError:
                detail = response.text
            raise RemoteUnavailableError(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteUnavailableError(
                f"{method} {path} returned a non-JSON body"
            ) from exc

    # --- Health and authentication ---

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def login(self, username: str, password: str, role: Any) -> User:
        data = self._request(
            "POST",
            "/login",
            json={"username": username, "password": password, "role": UserRole(role).value},
        )
        return User.model_validate(data["user"])

    # --- Articles ---

    def list_articles(self, **filters: Any) -> List[Article]:
        data = self._request("GET", "/articles", params=filters)
        return [Article.model_validate(a) for a in data.get("articles", [])]

    def create_article(self, payload: Dict[str, Any]) -> Tuple[Article, Optional[str]]:
        data = self._request("POST", "/articles", json=payload)
        return Article.model_validate(data["article"]), data.get("image_url")

    def update_article(
        self, article_id: int, payload: Dict[str, Any], role: Any, user_id: int
    ) -> Article:
        data = self._request(
            "PUT",
            f"/articles/{article_id}",
            json=payload,
            headers=_actor_headers(role, user_id),
        )
        return Article.model_validate(data["article"])

    def update_article_status(
        self,
        article_id: int,
        status: ArticleStatus,
        role: Any,
        user_id: int,
        rejection_reason: Optional[str] = None,
    ) -> Article:
        data = self._request(
            "PUT",
            f"/articles/{article_id}/status",
            json={"status": ArticleStatus(status).value, "rejection_reason": rejection_reason},
            headers=_actor_headers(role, user_id),
        )
        return Article.model_validate(data["article"])

    def delete_article(self, article_id: int, role: Any) -> Article:
        data = self._request(
            "DELETE", f"/articles/{article_id}", headers=_actor_headers(role)
        )
        return Article.model_validate(data["deletedArticle"])

    def add_comment(self, article_id: int, author_id: int, content: str) -> Comment:
        data = self._request(
            "POST",
            f"/articles/{article_id}/comments",
            json={"author_id": author_id, "content": content},
        )
        return Comment.model_validate(data["comment"])

    def list_comments(self, article_id: int) -> List[Comment]:
        data = self._request("GET", f"/articles/{article_id}/comments")
        return [Comment.model_validate(c) for c in data.get("comments", [])]

    # --- Users ---

    def list_users(self) -> List[User]:
        data = self._request("GET", "/users")
        return [User.model_validate(u) for u in data.get("users", [])]

    def create_user(self, payload: Dict[str, Any], role: Any = None) -> User:
        headers = _actor_headers(role) if role is not None else None
        data = self._request("POST", "/users", json=payload, headers=headers)
        return User.model_validate(data["user"])

    def update_user_status(self, user_id: int, active: bool) -> User:
        data = self._request(
            "PUT", f"/users/{user_id}/status", json={"active": active}
        )
        return User.model_validate(data["user"])

    def update_user_password(self, user_id: int, password: str) -> User:
        data = self._request(
            "PUT", f"/users/{user_id}/password", json={"password": password}
        )
        return User.model_validate(data["user"])

    # --- Notifications ---

    def list_notifications(self, user_id: Optional[int] = None) -> List[Notification]:
        data = self._request("GET", "/notifications", params={"user_id": user_id})
        return [Notification.model_validate(n) for n in data.get("notifications", [])]

    def create_notification(self, payload: Dict[str, Any]) -> Notification:
        data = self._request("POST", "/notifications", json=payload)
        return Notification.model_validate(data["notification"])

    def mark_notification_read(self, notification_id: int) -> Notification:
        data = self._request("PUT", f"/notifications/{notification_id}/read")
        return Notification.model_validate(data["notification"])

    def delete_notification(self, notification_id: int) -> Notification:
        data = self._request("DELETE", f"/notifications/{notification_id}")
        return Notification.model_validate(data["notification"])
