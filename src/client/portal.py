"""Magazine portal facade.

Entry point for a Presentation Layer. It wires the Local Cache Store, the
Remote Content Service client, the Sync Coordinator, the Article Workflow
Engine and the Notification Dispatcher around one AppState, and adds the
session, user administration, statistics and game features of the portal.

Usage:
    portal = MagazinePortal()
    portal.start()
    user = portal.login("docente1", "123", "teacher").value
    pending = portal.engine.pending_review_summary()
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz

from client.cache_store import LocalCacheStore
from client.notification_dispatcher import NotificationDispatcher
from client.remote import RemoteContentService
from client.state import USERS, AppState
from client.sync import Operation, OperationKind, SyncCoordinator, SyncResult
from client.workflow_engine import ArticleWorkflowEngine
from config import (
    DEFAULT_RESET_PASSWORD,
    NAME_MIN_LENGTH,
    PASSWORD_MIN_LENGTH,
    USERNAME_MIN_LENGTH,
)
from core.exceptions import (
    AuthenticationError,
    ForbiddenTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from schemas.article import ArticleStatus
from schemas.game_stat import GameStat, GameType
from schemas.notification import NotificationType
from schemas.user import TalentCategory, User, UserRole

logger = logging.getLogger(__name__)

EXPORT_SYSTEM_NAME = "School Magazine Portal"
EXPORT_VERSION = "2.0"
MASKED_PASSWORD = "***"


@dataclass
class DashboardStats:
    published: int
    pending: int
    comments: int
    active_users: int
    unread_notifications: int


class MagazinePortal:
    """Owns the application state and every client-side component."""

    def __init__(
        self,
        remote: Optional[RemoteContentService] = None,
        cache: Optional[LocalCacheStore] = None,
        state: Optional[AppState] = None,
    ):
        self.state = state or AppState()
        self.cache = cache or LocalCacheStore()
        self.remote = remote or RemoteContentService()
        self.sync = SyncCoordinator(self.state, self.remote, self.cache)
        self.notifications = NotificationDispatcher(self.sync)
        self.engine = ArticleWorkflowEngine(self.sync, self.notifications)

    @property
    def current_user(self) -> Optional[User]:
        return self.state.current_user

    def _require_login(self) -> User:
        if self.state.current_user is None:
            raise AuthenticationError("No user is logged in")
        return self.state.current_user

    def _require_admin(self, action: str) -> User:
        user = self._require_login()
        if user.role != UserRole.ADMIN:
            raise ForbiddenTransitionError(f"Only administrators can {action}")
        return user

    def _require_user(self, user_id: int) -> User:
        user = self.state.find(USERS, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def _keep_password(self, user: User, password: Optional[str] = None) -> User:
        """Carry the cached credential over to a user returned by the server."""
        if password is None:
            known = self.state.find(USERS, user.id)
            password = known.password if known is not None else None
        return self.state.upsert(USERS, user.model_copy(update={"password": password}), front=False)

    # --- Session ---

    def start(self) -> bool:
        """Run the session health check. Returns True when online."""
        return self.sync.bootstrap()

    def login(self, username: str, password: str, role: Any) -> SyncResult:
        """Log in remotely, or against the cached users when that fails.

        Credentials are compared in plaintext, and the password is kept in
        the local cache so the same account can log in offline later.

        Raises:
            AuthenticationError: If neither the server nor the cache accepts
                the credentials.
        """
        role = UserRole(role)

        def apply_remote(user: User) -> User:
            stored = self._keep_password(user, password)
            self.state.current_user = stored
            return stored

        def apply_local() -> User:
            for user in self.state.users:
                if (
                    user.username == username
                    and user.password == password
                    and user.role == role
                    and user.active
                ):
                    user.last_login = datetime.now(pytz.utc).isoformat()
                    self.state.current_user = user
                    return user
            raise AuthenticationError("Invalid credentials or inactive user")

        result = self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=USERS,
                payload={"username": username, "role": role.value},
                remote_call=lambda: self.remote.login(username, password, role),
                apply_remote=apply_remote,
                apply_local=apply_local,
            )
        )
        if result.applied_locally:
            self.sync.persist()
            logger.warning("User %s logged in offline", username)
        else:
            logger.info("User %s logged in", username)
        return result

    def close(self) -> None:
        self.remote.close()

    def logout(self) -> None:
        user = self.state.current_user
        self.state.current_user = None
        if user is not None:
            logger.info("User %s logged out", user.username)

    # --- User administration ---

    def load_users(self) -> SyncResult:
        """Refresh the user list."""

        def apply_remote(users: List[User]) -> List[User]:
            known = {u.id: u.password for u in self.state.users}
            self.state.replace(
                USERS,
                [u.model_copy(update={"password": known.get(u.id, u.password)}) for u in users],
            )
            return list(self.state.users)

        return self.sync.execute(
            Operation(
                kind=OperationKind.READ,
                target=USERS,
                remote_call=self.remote.list_users,
                apply_remote=apply_remote,
                apply_local=lambda: list(self.state.users),
            )
        )

    def create_user(
        self,
        username: str,
        password: str,
        name: str,
        role: Any,
        talent: Optional[Any] = None,
    ) -> SyncResult:
        """Create an account. Administrators only.

        Raises:
            ForbiddenTransitionError: If the current user is not an admin.
            ValidationError: Listing every invalid field.
        """
        actor = self._require_admin("create users")
        username = (username or "").strip()
        name = (name or "").strip()
        password = password or ""
        role = UserRole(role)
        talent = TalentCategory(talent) if talent and role == UserRole.STUDENT else None

        violations = []
        if len(name) < NAME_MIN_LENGTH:
            violations.append(f"Name must be at least {NAME_MIN_LENGTH} characters")
        if len(username) < USERNAME_MIN_LENGTH:
            violations.append(
                f"Username must be at least {USERNAME_MIN_LENGTH} characters"
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            violations.append(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        if any(u.username == username for u in self.state.users):
            violations.append(f"Username '{username}' is already taken")
        if violations:
            raise ValidationError(violations)

        payload = {
            "username": username,
            "password": password,
            "name": name,
            "role": role.value,
            "talent": talent.value if talent else None,
        }

        def apply_local() -> User:
            user = User(
                id=self.state.next_id(USERS),
                username=username,
                password=password,
                name=name,
                role=role,
                talent=talent,
                active=True,
            )
            self.state.users.append(user)
            return user

        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=USERS,
                payload={k: v for k, v in payload.items() if k != "password"},
                remote_call=lambda: self.remote.create_user(payload, actor.role),
                apply_remote=lambda user: self._keep_password(user, password),
                apply_local=apply_local,
            )
        )

    def toggle_user_status(self, user_id: int) -> SyncResult:
        """Activate an inactive account or deactivate an active one.

        Raises:
            ForbiddenTransitionError: If the current user is not an admin.
            NotFoundError: If the user is unknown.
        """
        self._require_admin("change account status")
        user = self._require_user(user_id)
        active = not user.active

        def apply_local() -> User:
            user.active = active
            return user

        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=USERS,
                payload={"id": user_id, "active": active},
                remote_call=lambda: self.remote.update_user_status(user_id, active),
                apply_remote=self._keep_password,
                apply_local=apply_local,
            )
        )

    def reset_user_password(self, user_id: int) -> SyncResult:
        """Reset a user's password to DEFAULT_RESET_PASSWORD.

        Raises:
            ForbiddenTransitionError: If the current user is not an admin.
            NotFoundError: If the user is unknown.
        """
        self._require_admin("reset passwords")
        return self._set_password(self._require_user(user_id), DEFAULT_RESET_PASSWORD)

    def change_password(self, current: str, new: str, confirm: str) -> SyncResult:
        """Change the logged-in user's own password.

        Raises:
            AuthenticationError: If nobody is logged in.
            ValidationError: Listing every failed check.
        """
        user = self._require_login()
        violations = []
        if current != user.password:
            violations.append("Current password is incorrect")
        if new != confirm:
            violations.append("New passwords do not match")
        if len(new or "") < PASSWORD_MIN_LENGTH:
            violations.append(
                f"New password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        if violations:
            raise ValidationError(violations)
        result = self._set_password(user, new)
        self.state.current_user = result.value
        return result

    def _set_password(self, user: User, password: str) -> SyncResult:
        def apply_local() -> User:
            stored = self.state.find(USERS, user.id)
            if stored is None:
                stored = self.state.upsert(USERS, user, front=False)
            stored.password = password
            return stored

        return self.sync.execute(
            Operation(
                kind=OperationKind.WRITE,
                target=USERS,
                payload={"id": user.id},
                remote_call=lambda: self.remote.update_user_password(user.id, password),
                apply_remote=lambda updated: self._keep_password(updated, password),
                apply_local=apply_local,
            )
        )

    # --- Statistics ---

    def dashboard(self) -> DashboardStats:
        user = self._require_login()
        articles = self.state.articles
        return DashboardStats(
            published=sum(1 for a in articles if a.status == ArticleStatus.PUBLISHED),
            pending=sum(1 for a in articles if a.status == ArticleStatus.PENDING),
            comments=sum(len(a.comments) for a in articles),
            active_users=sum(1 for u in self.state.users if u.active),
            unread_notifications=self.notifications.unread_count(user.id),
        )

    def advanced_stats(self) -> Dict[str, Any]:
        """Counts per status, category, chapter and role."""
        articles = self.state.articles
        users = self.state.users
        stats: Dict[str, Any] = {
            "total_articles": len(articles),
            "articles_by_status": {s.value: 0 for s in ArticleStatus},
            "articles_by_category": {},
            "articles_by_chapter": {},
            "active_users": sum(1 for u in users if u.active),
            "total_users": len(users),
            "users_by_role": {},
            "total_comments": sum(len(a.comments) for a in articles),
            "generated_at": datetime.now(pytz.utc).isoformat(),
        }
        for article in articles:
            stats["articles_by_status"][article.status.value] += 1
            by_category = stats["articles_by_category"]
            by_category[article.category.value] = by_category.get(article.category.value, 0) + 1
            by_chapter = stats["articles_by_chapter"]
            by_chapter[article.chapter.value] = by_chapter.get(article.chapter.value, 0) + 1
        for user in users:
            by_role = stats["users_by_role"]
            by_role[user.role.value] = by_role.get(user.role.value, 0) + 1
        return stats

    def export_data(self) -> Dict[str, Any]:
        """Full JSON-ready export with passwords masked. Administrators only.

        Raises:
            ForbiddenTransitionError: If the current user is not an admin.
        """
        self._require_admin("export data")
        return {
            "exported_at": datetime.now(pytz.utc).isoformat(),
            "system": EXPORT_SYSTEM_NAME,
            "version": EXPORT_VERSION,
            "data": {
                "articles": [a.model_dump(mode="json") for a in self.state.articles],
                "users": [
                    u.model_copy(update={"password": MASKED_PASSWORD}).model_dump(mode="json")
                    for u in self.state.users
                ],
                "notifications": [
                    n.model_dump(mode="json") for n in self.state.notifications
                ],
                "statistics": self.advanced_stats(),
            },
        }

    # --- Games ---

    def _game_stats_key(self, user: User) -> str:
        return f"game_stats_{user.id}"

    def game_stats(self) -> Dict[GameType, GameStat]:
        """The logged-in user's per-game counters."""
        user = self._require_login()
        try:
            raw = self.cache.get(self._game_stats_key(user), default={}) or {}
        except PersistenceError as e:
            logger.error("Failed to read game stats for user %s: %s", user.id, e)
            raw = {}
        return {
            GameType(game): GameStat.model_validate({**values, "game_type": game})
            for game, values in raw.items()
        }

    def record_game_result(
        self,
        game: Any,
        completed: bool,
        score: int = 0,
        time: Optional[int] = None,
    ) -> GameStat:
        """Count one play of a game and keep the best score and time.

        A completed game also sends the player an achievement notification.
        """
        user = self._require_login()
        game = GameType(game)
        stats = self.game_stats()
        current = stats.get(game) or GameStat(game_type=game)

        updates: Dict[str, Any] = {"played": current.played + 1}
        if completed:
            updates["completed"] = current.completed + 1
            if score > current.best_score:
                updates["best_score"] = score
            if time and (current.best_time is None or time < current.best_time):
                updates["best_time"] = time
        updated = GameStat.model_validate({**current.model_dump(), **updates})
        stats[game] = updated

        try:
            self.cache.set(
                self._game_stats_key(user),
                {g.value: s.model_dump(mode="json", exclude={"game_type"}) for g, s in stats.items()},
            )
        except PersistenceError as e:
            logger.error("Failed to save game stats for user %s: %s", user.id, e)

        if completed:
            self.notifications.notify(
                user.id,
                "Achievement unlocked",
                f"You completed {game.value} with {score} points",
                NotificationType.SUCCESS,
            )
        return updated
