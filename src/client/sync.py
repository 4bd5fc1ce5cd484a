"""Sync Coordinator.

Runs every read and write against the Remote Content Service first and falls
back to local state when the service is unavailable. Both paths write through
the single AppState; after each write the mirrored collections are
snapshot-written to the Local Cache Store.

Offline writes are not queued or replayed. The caller only learns that an
operation was applied locally through ``SyncResult.applied_locally``.

Usage:
    result = coordinator.execute(Operation(
        kind=OperationKind.WRITE,
        target=ARTICLES,
        remote_call=lambda: remote.create_article(payload),
        apply_remote=store_article,
        apply_local=create_article_locally,
    ))
    if result.applied_locally:
        warn_user_offline()
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from client.cache_store import LocalCacheStore
from client.remote import RemoteContentService
from client.state import ARTICLES, AppState
from config import SNAPSHOT_KEYS
from core.exceptions import PersistenceError, RemoteUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationKind(str, Enum):
    READ = "read"
    WRITE = "write"


class SyncOutcome(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


@dataclass
class Operation:
    """Descriptor of one read or write.

    Attributes:
        kind: Read or write.
        target: Collection the operation touches (users, articles or
            notifications).
        remote_call: Performs the remote request and returns its result.
        apply_remote: Applies the remote result to AppState and returns the
            value handed to the caller.
        apply_local: Computes the value from (and for writes, applies it to)
            AppState when the remote call failed.
        payload: Request data, kept for logging.
    """

    kind: OperationKind
    target: str
    remote_call: Callable[[], Any]
    apply_remote: Callable[[Any], Any]
    apply_local: Optional[Callable[[], Any]] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncResult(Generic[T]):
    value: T
    outcome: SyncOutcome
    error: Optional[RemoteUnavailableError] = None

    @property
    def applied_locally(self) -> bool:
        return self.outcome == SyncOutcome.LOCAL


class SyncCoordinator:
    """Remote-first executor with local fallback."""

    def __init__(
        self,
        state: AppState,
        remote: RemoteContentService,
        cache: LocalCacheStore,
    ):
        self.state = state
        self.remote = remote
        self.cache = cache
        self.bootstrapped = False
        self.online: Optional[bool] = None

    def bootstrap(self) -> bool:
        """Probe the service once and build the session's initial state.

        On success the article collection is loaded remotely. On failure the
        last snapshot is loaded instead. Either way later operations still try
        the remote service first.

        Returns:
            True if the health check succeeded.
        """
        self.bootstrapped = True
        try:
            self.remote.health()
            articles = self.remote.list_articles()
        except RemoteUnavailableError as e:
            logger.warning("Remote service unavailable at startup, using local cache: %s", e)
            self.online = False
            self.load_cached(only_if_empty=False)
            return False

        self.online = True
        self.state.replace(ARTICLES, articles)
        self.load_cached(only_if_empty=True)
        self.persist()
        logger.info("Session started online with %d articles", len(articles))
        return True

    def execute(self, operation: Operation) -> SyncResult:
        """Run an operation remotely, falling back to local state.

        Validation and permission errors raised by the callables propagate to
        the caller unchanged; only RemoteUnavailableError is recovered.
        """
        if not self.bootstrapped:
            self.bootstrap()

        try:
            raw = operation.remote_call()
        except RemoteUnavailableError as e:
            self.online = False
            return self._fallback(operation, e)

        self.online = True
        value = operation.apply_remote(raw)
        self.persist()
        return SyncResult(value=value, outcome=SyncOutcome.REMOTE)

    def _fallback(self, operation: Operation, error: RemoteUnavailableError) -> SyncResult:
        logger.warning(
            "Remote %s on %s failed, applying locally: %s",
            operation.kind.value,
            operation.target,
            error,
        )
        if operation.kind == OperationKind.READ:
            self.load_cached(only_if_empty=True, keys=(operation.target,))
            value = operation.apply_local() if operation.apply_local else None
            return SyncResult(value=value, outcome=SyncOutcome.LOCAL, error=error)

        if operation.apply_local is None:
            raise error
        value = operation.apply_local()
        self.persist()
        return SyncResult(value=value, outcome=SyncOutcome.LOCAL, error=error)

    def persist(self) -> bool:
        """Snapshot-write the mirrored collections.

        A failed write is logged and otherwise ignored; the in-memory state
        stays authoritative for the rest of the session.
        """
        try:
            self.cache.write_snapshot(self.state.to_snapshot())
        except PersistenceError as e:
            logger.error("Failed to write local snapshot: %s", e)
            return False
        return True

    def load_cached(
        self, only_if_empty: bool = True, keys: Tuple[str, ...] = SNAPSHOT_KEYS
    ) -> None:
        try:
            snapshot = self.cache.load_snapshot(keys)
        except PersistenceError as e:
            logger.error("Failed to read local snapshot: %s", e)
            return
        self.state.load_snapshot(snapshot, only_if_empty=only_if_empty)
