from __future__ import annotations
import enum
import logging
import threading
from typing import Callable, Optional

from .base import Collection, Store
from .config import StoreConfig, get_config
from .database import LocalStore
from .errors import ConnectionFailedError, NotConnectedError
from .progress import ProgressCallback
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class SelectorState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED_REMOTE = "connected-remote"
    CONNECTED_LOCAL = "connected-local"


def _default_remote(cfg: StoreConfig) -> RemoteStore:
    return RemoteStore(
        cfg.mongodb_uri or "",
        cfg.database_name,
        app_name=cfg.app_name,
        timeout_ms=cfg.connect_timeout_ms,
    )


class StoreSelector:
    """
    Chooses the store for the lifetime of the process.

    connect() tries the remote database once, bounded by the configured
    timeout; on any connection failure it opens the local JSON store instead.
    The choice is final: there is no reconnect to the remote store after a
    fallback, a restart is the only way back.
    """
    def __init__(
        self,
        config: StoreConfig,
        *,
        remote_factory: Optional[Callable[[StoreConfig], RemoteStore]] = None,
        local_factory: Optional[Callable[[StoreConfig], LocalStore]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = config
        self._remote_factory = remote_factory or _default_remote
        self._local_factory = local_factory or (lambda c: LocalStore(c.data_dir, on_progress=on_progress))
        self._state = SelectorState.DISCONNECTED
        self._store: Optional[Store] = None
        self._lock = threading.Lock()
        self.fallback_reason: Optional[str] = None

    @classmethod
    def from_env(cls, **kwargs) -> "StoreSelector":
        return cls(get_config(), **kwargs)

    @property
    def state(self) -> SelectorState:
        return self._state

    def connect(self) -> Store:
        with self._lock:
            if self._store is not None:
                return self._store

            if self.config.remote_enabled:
                try:
                    remote = self._remote_factory(self.config).connect()
                except ConnectionFailedError as e:
                    self.fallback_reason = str(e)
                    logger.warning("Remote database unavailable, using local JSON store: %s", e)
                else:
                    self._store = remote
                    self._state = SelectorState.CONNECTED_REMOTE
                    return remote
            elif self.config.force_local:
                self.fallback_reason = "local store forced by configuration"
            else:
                self.fallback_reason = "no remote database configured"

            logger.info("Using fallback JSON database in %s (%s)", self.config.data_dir, self.fallback_reason)
            self._store = self._local_factory(self.config)
            self._state = SelectorState.CONNECTED_LOCAL
            return self._store

    def get_active_store(self) -> Store:
        store = self._store
        if store is None:
            raise NotConnectedError("Database not connected - call connect() first")
        return store

    def collection(self, name: str) -> Collection:
        return self.get_active_store().collection(name)

    def close(self) -> None:
        with self._lock:
            if self._store is not None:
                self._store.close()
