from unittest.mock import patch

import pytest
from fastapi import FastAPI
from pymongo.errors import ServerSelectionTimeoutError

from database import Database
from main import lifespan


async def test_lifespan_connects_and_closes():
    app = FastAPI()
    with patch.object(Database, "connect") as connect, patch.object(Database, "close") as close:
        async with lifespan(app):
            connect.assert_called_once()
            assert isinstance(app.state.database, Database)
        close.assert_called_once()


async def test_lifespan_connection_failure_is_fatal():
    app = FastAPI()
    failure = ServerSelectionTimeoutError("no servers")
    with patch.object(Database, "connect", side_effect=failure), patch.object(Database, "close"):
        with pytest.raises(ServerSelectionTimeoutError):
            async with lifespan(app):
                pytest.fail("lifespan should not yield without a database")
