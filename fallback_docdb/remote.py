from __future__ import annotations
import copy
import logging
from typing import Any, List, Mapping, Optional, Sequence

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .base import (
    Collection,
    Cursor,
    DeleteResult,
    Document,
    InsertManyResult,
    InsertOneResult,
    Query,
    Store,
    UpdateResult,
)
from .errors import ConnectionFailedError, NotConnectedError, RemoteOperationError
from .operators import SET, has_operators, validate_update

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000


class RemoteCollection(Collection):
    """Pass-through to a pymongo collection, wrapping results in the shared result types."""

    def __init__(self, coll) -> None:
        self._coll = coll
        self.name = coll.name

    def __repr__(self) -> str:
        return f"RemoteCollection({self.name!r})"

    def _call(self, op: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PyMongoError as e:
            logger.error("Remote %s on %s failed: %s", op, self.name, e)
            raise RemoteOperationError(f"{op} on {self.name} failed: {e}") from e

    def find_one(self, query: Optional[Query] = None) -> Optional[Document]:
        return self._call("find_one", self._coll.find_one, dict(query or {}))

    def find(self, query: Optional[Query] = None) -> Cursor:
        q = dict(query or {})
        return Cursor(lambda: self._call("find", lambda: list(self._coll.find(q))))

    def distinct(self, field: str) -> List[Any]:
        return [v for v in self._call("distinct", self._coll.distinct, field) if v is not None]

    def count_documents(self, query: Optional[Query] = None) -> int:
        return self._call("count_documents", self._coll.count_documents, dict(query or {}))

    def insert_one(self, document: Mapping[str, Any]) -> InsertOneResult:
        # pymongo adds _id to the dict it is given; keep the caller's copy clean
        res = self._call("insert_one", self._coll.insert_one, copy.deepcopy(dict(document)))
        return InsertOneResult(inserted_id=str(res.inserted_id))

    def insert_many(self, documents: Sequence[Mapping[str, Any]]) -> InsertManyResult:
        docs = [copy.deepcopy(dict(d)) for d in documents]
        if not docs:
            return InsertManyResult(inserted_count=0)
        res = self._call("insert_many", self._coll.insert_many, docs)
        ids = [str(i) for i in res.inserted_ids]
        return InsertManyResult(inserted_count=len(ids), inserted_ids=ids)

    def update_one(self, query: Query, update: Mapping[str, Any], upsert: bool = False) -> UpdateResult:
        validate_update(update)
        # an operator-less update merges its fields, as on the local store
        doc = dict(update) if has_operators(update) else {SET: dict(update)}
        res = self._call("update_one", self._coll.update_one, dict(query), doc, upsert=upsert)
        upserted = res.upserted_id is not None
        return UpdateResult(
            matched_count=res.matched_count,
            modified_count=res.modified_count,
            upserted_count=1 if upserted else 0,
            upserted_id=str(res.upserted_id) if upserted else None,
        )

    def delete_one(self, query: Query) -> DeleteResult:
        res = self._call("delete_one", self._coll.delete_one, dict(query))
        return DeleteResult(deleted_count=res.deleted_count)


class RemoteStore(Store):
    """
    Managed MongoDB database. Construction does no I/O; connect() performs
    the handshake within `timeout_ms` and raises ConnectionFailedError.
    """
    name = "remote"

    def __init__(
        self,
        uri: str,
        database: str,
        app_name: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        client_factory=MongoClient,
    ) -> None:
        self.uri = uri
        self.database = database
        self.app_name = app_name
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client = None
        self._db = None

    def __repr__(self) -> str:
        return f"RemoteStore(database={self.database!r})"

    def connect(self) -> "RemoteStore":
        kwargs = {
            "serverSelectionTimeoutMS": self.timeout_ms,
            "connectTimeoutMS": self.timeout_ms,
            "retryWrites": True,
        }
        if self.app_name:
            kwargs["appname"] = self.app_name
        client = None
        try:
            client = self._client_factory(self.uri, **kwargs)
            client.admin.command("ping")
        except (PyMongoError, ValueError) as e:
            # ValueError covers malformed URIs and options
            if client is not None:
                client.close()
            raise ConnectionFailedError(f"cannot reach MongoDB: {e}") from e
        self._client = client
        self._db = client[self.database]
        logger.info("Connected to MongoDB database %s", self.database)
        return self

    @property
    def connected(self) -> bool:
        return self._db is not None

    def _require_db(self):
        if self._db is None:
            raise NotConnectedError("remote store is not connected; call connect() first")
        return self._db

    def collection(self, name: str) -> RemoteCollection:
        return RemoteCollection(self._require_db()[name])

    def list_collection_names(self) -> List[str]:
        db = self._require_db()
        try:
            return sorted(db.list_collection_names())
        except PyMongoError as e:
            raise RemoteOperationError(f"list_collection_names failed: {e}") from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("Closed MongoDB connection")
        self._client = None
        self._db = None
