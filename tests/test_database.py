from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from database import ORDERS, ConnectionState, Database
from errors import StoreFailure
from schemas import Lesson


def test_connect_pings_server():
    client = MagicMock()
    db = Database("mongodb://example", "afterschool", client=client)
    assert db.state is ConnectionState.DISCONNECTED

    db.connect()

    client.admin.command.assert_called_once_with("ping")
    assert db.connected


def test_connect_failure_propagates():
    client = MagicMock()
    client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
    db = Database("mongodb://example", "afterschool", client=client)

    with pytest.raises(ServerSelectionTimeoutError):
        db.connect()
    assert db.state is ConnectionState.DISCONNECTED


def test_close_releases_client():
    client = MagicMock()
    db = Database("mongodb://example", "afterschool", client=client)
    db.connect()

    db.close()

    client.close.assert_called_once()
    assert not db.connected
    with pytest.raises(StoreFailure):
        db.lessons


def test_create_document_accepts_models(db):
    doc_id = db.create_document("lessons", Lesson(subject="Art", location="York", price=70, spaces=4))
    stored = db.get_document("lessons", ObjectId(doc_id))
    assert stored["subject"] == "Art"
    assert stored["image"] is None


def test_create_document_does_not_mutate_input(db):
    data = {"name": "Jane"}
    db.create_document(ORDERS, data)
    assert "_id" not in data


def test_update_document_sets_fields(db, lesson_id):
    result = db.update_document("lessons", ObjectId(lesson_id), {"location": "Leeds"})
    assert result.matched_count == 1
    assert db.get_document("lessons", ObjectId(lesson_id))["location"] == "Leeds"
