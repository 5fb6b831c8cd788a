from .base import (
    Collection,
    Cursor,
    DeleteResult,
    InsertManyResult,
    InsertOneResult,
    Store,
    UpdateResult,
)
from .config import StoreConfig, get_config
from .database import LocalCollection, LocalStore
from .errors import (
    ConnectionFailedError,
    DocStoreError,
    InvalidNameError,
    InvalidUpdateError,
    NotConnectedError,
    RemoteOperationError,
    StoreIOError,
)
from .operators import apply_update, matches
from .remote import RemoteCollection, RemoteStore
from .selector import SelectorState, StoreSelector

__all__ = [
    "Collection",
    "Cursor",
    "DeleteResult",
    "InsertManyResult",
    "InsertOneResult",
    "Store",
    "UpdateResult",
    "StoreConfig",
    "get_config",
    "LocalCollection",
    "LocalStore",
    "ConnectionFailedError",
    "DocStoreError",
    "InvalidNameError",
    "InvalidUpdateError",
    "NotConnectedError",
    "RemoteOperationError",
    "StoreIOError",
    "apply_update",
    "matches",
    "RemoteCollection",
    "RemoteStore",
    "SelectorState",
    "StoreSelector",
]
