from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_DATABASE = "akoko"
DEFAULT_APP_NAME = "Akoko"
DEFAULT_DATA_DIR = "data"
DEFAULT_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class StoreConfig:
    # Remote store; with no URI only the local store is used
    mongodb_uri: Optional[str] = None
    database_name: str = DEFAULT_DATABASE
    app_name: Optional[str] = DEFAULT_APP_NAME
    connect_timeout_ms: int = DEFAULT_TIMEOUT_MS

    # Local fallback store
    data_dir: str = DEFAULT_DATA_DIR

    # Skip the remote attempt entirely
    force_local: bool = False

    @property
    def remote_enabled(self) -> bool:
        return bool(self.mongodb_uri) and not self.force_local


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getbool(name: str, default: bool) -> bool:
    v = _getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


def _getint(name: str, default: int) -> int:
    v = _getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}") from None


def get_config() -> StoreConfig:
    """
    Centralized config: this is the ONLY place env vars are read.
    Loads `.env` from the working directory (or a parent) if present,
    without overriding the real environment.
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)

    return StoreConfig(
        mongodb_uri=_getenv("MONGODB_URI"),
        database_name=_getenv("MONGODB_DATABASE", DEFAULT_DATABASE) or DEFAULT_DATABASE,
        app_name=_getenv("MONGODB_APP_NAME", DEFAULT_APP_NAME),
        connect_timeout_ms=_getint("MONGODB_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        data_dir=_getenv("DOCDB_DATA_DIR", DEFAULT_DATA_DIR) or DEFAULT_DATA_DIR,
        force_local=_getbool("USE_LOCAL_DB", False),
    )
