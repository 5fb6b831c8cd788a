from __future__ import annotations
import copy
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

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
from .errors import StoreIOError
from .operators import apply_update, matches, seed_upsert, validate_update
from .progress import Progress, ProgressCallback
from .storage import FileStorage, check_table_name
from .utils import canonical_json, new_token

logger = logging.getLogger(__name__)


class _Table:
    __slots__ = ("name", "docs", "lock")

    def __init__(self, name: str, docs: List[Document]) -> None:
        self.name = name
        self.docs = docs
        # Held across each read-modify-persist cycle
        self.lock = threading.RLock()


def _doc_id(doc: Mapping[str, Any]) -> str:
    for key in ("_id", "id"):
        v = doc.get(key)
        if v is not None:
            return str(v)
    return new_token()


def _check_document(doc: Any) -> None:
    if not isinstance(doc, Mapping):
        raise TypeError(f"document must be a mapping, got {type(doc).__name__}")


class LocalCollection(Collection):
    """
    Collection backed by one in-memory table of a LocalStore. Every mutation
    rewrites the table file before returning.
    """
    def __init__(self, store: "LocalStore", table: _Table) -> None:
        self._store = store
        self._table = table
        self.name = table.name

    def __repr__(self) -> str:
        return f"LocalCollection({self.name!r})"

    # ----- Reads -----

    def find_one(self, query: Optional[Query] = None) -> Optional[Document]:
        with self._table.lock:
            for doc in self._table.docs:
                if matches(doc, query):
                    return copy.deepcopy(doc)
        return None

    def find(self, query: Optional[Query] = None) -> Cursor:
        with self._table.lock:
            snapshot = [copy.deepcopy(d) for d in self._table.docs if matches(d, query)]
        return Cursor(lambda: copy.deepcopy(snapshot))

    def distinct(self, field: str) -> List[Any]:
        seen: set[str] = set()
        out: List[Any] = []
        with self._table.lock:
            for doc in self._table.docs:
                v = doc.get(field)
                if v is None:
                    continue
                key = canonical_json(v)
                if key in seen:
                    continue
                seen.add(key)
                out.append(copy.deepcopy(v))
        return out

    def count_documents(self, query: Optional[Query] = None) -> int:
        with self._table.lock:
            return sum(1 for d in self._table.docs if matches(d, query))

    # ----- Writes -----

    def insert_one(self, document: Mapping[str, Any]) -> InsertOneResult:
        _check_document(document)
        doc = copy.deepcopy(dict(document))
        with self._table.lock:
            self._store._commit(self._table, self._table.docs + [doc])
        return InsertOneResult(inserted_id=_doc_id(doc))

    def insert_many(self, documents: Sequence[Mapping[str, Any]]) -> InsertManyResult:
        docs = []
        for d in documents:
            _check_document(d)
            docs.append(copy.deepcopy(dict(d)))
        if not docs:
            return InsertManyResult(inserted_count=0)
        with self._table.lock:
            self._store._commit(self._table, self._table.docs + docs)
        return InsertManyResult(inserted_count=len(docs), inserted_ids=[_doc_id(d) for d in docs])

    def update_one(self, query: Query, update: Mapping[str, Any], upsert: bool = False) -> UpdateResult:
        validate_update(update)
        with self._table.lock:
            docs = self._table.docs
            for i, doc in enumerate(docs):
                if not matches(doc, query):
                    continue
                new_doc = apply_update(doc, update)
                if canonical_json(new_doc) == canonical_json(doc):
                    return UpdateResult(matched_count=1, modified_count=0)
                new_docs = list(docs)
                new_docs[i] = new_doc
                self._store._commit(self._table, new_docs)
                return UpdateResult(matched_count=1, modified_count=1)

            if not upsert:
                return UpdateResult()
            seeded = seed_upsert(query, update)
            self._store._commit(self._table, docs + [seeded])
        return UpdateResult(upserted_count=1, upserted_id=_doc_id(seeded))

    def delete_one(self, query: Query) -> DeleteResult:
        with self._table.lock:
            docs = self._table.docs
            for i, doc in enumerate(docs):
                if matches(doc, query):
                    self._store._commit(self._table, docs[:i] + docs[i + 1:])
                    return DeleteResult(deleted_count=1)
        return DeleteResult(deleted_count=0)


class LocalStore(Store):
    """
    File-backed document store: all tables live in memory and each one is
    mirrored to `<data_dir>/<table>.json`.

    Tables are created on first reference. Existing table files are loaded
    on open; unreadable ones are set aside and start empty, so opening never
    fails because of the files it finds.
    """
    name = "local"

    def __init__(self, data_dir: str, on_progress: Optional[ProgressCallback] = None) -> None:
        self.data_dir = data_dir
        self._fs = FileStorage(data_dir)
        self._progress = Progress(on_progress)
        self._tables: Dict[str, _Table] = {}
        self._lock = threading.Lock()
        self._open()

    def __repr__(self) -> str:
        return f"LocalStore({self.data_dir!r})"

    def _open(self) -> None:
        self._progress.emit("open.start", 0, self.data_dir)
        try:
            self._fs.ensure_dir()
        except StoreIOError as e:
            logger.error("%s; starting with an empty store", e)
        names = self._fs.table_names()
        total = len(names)
        for i, name in enumerate(names, 1):
            self._tables[name] = _Table(name, self._fs.load_table(name))
            self._progress.emit("open.load", i * 100 / total, name)
        logger.info("Loaded collections from %s: %s", self.data_dir, names)
        self._progress.emit("open.done", 100, f"{total} tables")

    def _table(self, name: str) -> _Table:
        check_table_name(name)
        with self._lock:
            table = self._tables.get(name)
            if table is not None:
                return table
            table = self._tables[name] = _Table(name, [])
        # Persist the new empty table; a failure here must not break reads
        with table.lock:
            try:
                self._fs.write_table(name, table.docs)
            except StoreIOError as e:
                logger.error("Cannot create table file for %s: %s", name, e)
        return table

    def _commit(self, table: _Table, new_docs: List[Document]) -> None:
        """
        Write `new_docs` to the table file, then make them the in-memory
        table. Caller holds `table.lock`. On failure memory is left as is.
        """
        try:
            self._fs.write_table(table.name, new_docs)
        except StoreIOError as e:
            logger.error("Saving table %s failed: %s", table.name, e)
            raise
        table.docs = new_docs

    def collection(self, name: str) -> LocalCollection:
        return LocalCollection(self, self._table(name))

    def list_collection_names(self) -> List[str]:
        with self._lock:
            return sorted(self._tables)

    def close(self) -> None:
        # Write-through: nothing buffered to flush
        logger.debug("Closed local store at %s", self.data_dir)
