from unittest.mock import MagicMock

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from fallback_docdb import (
    ConnectionFailedError,
    InvalidUpdateError,
    NotConnectedError,
    RemoteOperationError,
    RemoteStore,
)


def make_store(client=None):
    client = client or MagicMock()
    factory = MagicMock(return_value=client)
    store = RemoteStore("mongodb://db.example:27017", "akoko", app_name="Akoko", timeout_ms=1500, client_factory=factory)
    return store, factory, client


def test_connect_pings_with_bounded_timeout():
    store, factory, client = make_store()
    assert store.connect() is store
    assert store.connected

    args, kwargs = factory.call_args
    assert args == ("mongodb://db.example:27017",)
    assert kwargs["serverSelectionTimeoutMS"] == 1500
    assert kwargs["connectTimeoutMS"] == 1500
    assert kwargs["appname"] == "Akoko"
    client.admin.command.assert_called_once_with("ping")
    client.__getitem__.assert_called_once_with("akoko")


def test_connect_failure_raises_connection_failed():
    client = MagicMock()
    client.admin.command.side_effect = ServerSelectionTimeoutError("timed out")
    store, _, _ = make_store(client)

    with pytest.raises(ConnectionFailedError):
        store.connect()
    assert not store.connected
    client.close.assert_called_once()


def test_collection_before_connect():
    store, _, _ = make_store()
    with pytest.raises(NotConnectedError):
        store.collection("staff")


def _connected_collection():
    store, _, client = make_store()
    store.connect()
    coll = MagicMock()
    coll.name = "staff"
    client.__getitem__.return_value.__getitem__.return_value = coll
    return store.collection("staff"), coll


def test_reads_are_forwarded():
    rc, coll = _connected_collection()
    coll.find_one.return_value = {"department": "math"}
    coll.find.return_value = iter([{"n": 1}, {"n": 2}])
    coll.distinct.return_value = ["science", None, "math"]
    coll.count_documents.return_value = 2

    assert rc.find_one({"department": "math"}) == {"department": "math"}
    coll.find_one.assert_called_once_with({"department": "math"})

    assert rc.find({"x": 1}).to_array() == [{"n": 1}, {"n": 2}]
    coll.find.assert_called_once_with({"x": 1})

    assert rc.distinct("department") == ["science", "math"]
    assert rc.count_documents() == 2
    coll.count_documents.assert_called_once_with({})


def test_insert_copies_caller_documents():
    rc, coll = _connected_collection()
    coll.insert_one.return_value = MagicMock(inserted_id="65f0c0ffee")
    coll.insert_many.return_value = MagicMock(inserted_ids=["a", "b"])

    doc = {"name": "A"}
    assert rc.insert_one(doc).inserted_id == "65f0c0ffee"
    sent = coll.insert_one.call_args[0][0]
    assert sent == doc and sent is not doc

    res = rc.insert_many([{"name": "A"}, {"name": "B"}])
    assert res.inserted_count == 2
    assert res.inserted_ids == ["a", "b"]


def test_update_and_delete_results():
    rc, coll = _connected_collection()
    coll.update_one.return_value = MagicMock(matched_count=0, modified_count=0, upserted_id="new-id")
    res = rc.update_one({"department": "default"}, {"$set": {"fees": {"term1": 150}}}, upsert=True)
    coll.update_one.assert_called_once_with(
        {"department": "default"}, {"$set": {"fees": {"term1": 150}}}, upsert=True
    )
    assert res.upserted and res.upserted_id == "new-id"
    assert not res.modified

    coll.update_one.return_value = MagicMock(matched_count=1, modified_count=1, upserted_id=None)
    res = rc.update_one({"department": "default"}, {"$push": {"history": 1}})
    assert res.modified and not res.upserted

    coll.delete_one.return_value = MagicMock(deleted_count=1)
    assert rc.delete_one({"department": "default"}).deleted_count == 1


def test_operation_errors_are_wrapped():
    rc, coll = _connected_collection()
    coll.find_one.side_effect = OperationFailure("not authorized")
    with pytest.raises(RemoteOperationError):
        rc.find_one({})


def test_close():
    store, _, client = make_store()
    store.connect()
    store.close()
    client.close.assert_called_once()
    assert not store.connected


def test_update_without_operators_is_sent_as_set():
    rc, coll = _connected_collection()
    coll.update_one.return_value = MagicMock(matched_count=1, modified_count=1, upserted_id=None)

    res = rc.update_one({"id": 1}, {"title": "new", "body": "b"})
    coll.update_one.assert_called_once_with({"id": 1}, {"$set": {"title": "new", "body": "b"}}, upsert=False)
    assert res.modified


def test_invalid_update_is_rejected_before_sending():
    rc, coll = _connected_collection()
    with pytest.raises(InvalidUpdateError):
        rc.update_one({"id": 1}, {"$set": {"a": 1}, "$inc": {"n": 1}})
    with pytest.raises(InvalidUpdateError):
        rc.update_one({"id": 1}, ["not", "a", "mapping"])
    coll.update_one.assert_not_called()
