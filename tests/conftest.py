"""Shared fixtures: the app wired to an in-memory MongoDB."""

from dataclasses import replace

import mongomock
import pytest
from httpx import ASGITransport, AsyncClient

from config import get_settings
from database import ConnectionState, Database, get_database
from main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def db():
    database = Database("mongodb://test", "afterschool_test", client=mongomock.MongoClient())
    database.state = ConnectionState.CONNECTED
    return database


@pytest.fixture
def lesson_id(db):
    result = db.lessons.insert_one(
        {"subject": "Math", "location": "London", "price": 100, "spaces": 5, "image": "math.png"}
    )
    return str(result.inserted_id)


@pytest.fixture
def images_dir(tmp_path):
    directory = tmp_path / "images"
    directory.mkdir()
    (directory / "math.png").write_bytes(PNG_BYTES)
    return directory


@pytest.fixture
async def client(db, images_dir):
    settings = replace(get_settings(), images_dir=images_dir)
    app.state.database = db
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    del app.state.database
