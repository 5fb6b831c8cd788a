from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

Document = Dict[str, Any]
Query = Mapping[str, Any]


@dataclass(frozen=True)
class InsertOneResult:
    inserted_id: str


@dataclass(frozen=True)
class InsertManyResult:
    inserted_count: int
    inserted_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int = 0
    modified_count: int = 0
    upserted_count: int = 0
    upserted_id: Optional[str] = None

    @property
    def modified(self) -> bool:
        return self.modified_count > 0

    @property
    def upserted(self) -> bool:
        return self.upserted_count > 0


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int


class Cursor:
    """
    Restartable result of find(): every iteration (and every to_array() call)
    asks `source` for a fresh sequence of documents.
    """
    def __init__(self, source: Callable[[], Iterable[Document]]) -> None:
        self._source = source

    def __iter__(self) -> Iterator[Document]:
        return iter(self._source())

    def to_array(self) -> List[Document]:
        return list(self._source())


class Collection(ABC):
    """Collection interface shared by the local and the remote store."""

    name: str

    @abstractmethod
    def find_one(self, query: Optional[Query] = None) -> Optional[Document]: ...

    @abstractmethod
    def find(self, query: Optional[Query] = None) -> Cursor: ...

    @abstractmethod
    def distinct(self, field: str) -> List[Any]: ...

    @abstractmethod
    def insert_one(self, document: Mapping[str, Any]) -> InsertOneResult: ...

    @abstractmethod
    def insert_many(self, documents: Sequence[Mapping[str, Any]]) -> InsertManyResult: ...

    @abstractmethod
    def update_one(self, query: Query, update: Mapping[str, Any], upsert: bool = False) -> UpdateResult: ...

    @abstractmethod
    def delete_one(self, query: Query) -> DeleteResult: ...

    @abstractmethod
    def count_documents(self, query: Optional[Query] = None) -> int: ...


class Store(ABC):
    """A named set of collections; `name` is "local" or "remote"."""

    name: str

    @abstractmethod
    def collection(self, name: str) -> Collection: ...

    @abstractmethod
    def list_collection_names(self) -> List[str]: ...

    @abstractmethod
    def close(self) -> None: ...

    def __getitem__(self, name: str) -> Collection:
        return self.collection(name)
