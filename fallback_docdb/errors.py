from __future__ import annotations


class DocStoreError(Exception):
    """Base class for all document store errors."""


class ConnectionFailedError(DocStoreError):
    """Remote handshake failed or timed out."""


class NotConnectedError(DocStoreError):
    """A store was requested before connect() selected one."""


class StoreIOError(DocStoreError, OSError):
    """Reading or writing a table file failed."""


class RemoteOperationError(DocStoreError):
    """The remote database rejected or failed an operation."""


class InvalidUpdateError(DocStoreError, ValueError):
    pass


class InvalidNameError(DocStoreError, ValueError):
    pass
