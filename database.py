"""
Database Client

MongoDB access for the API. A single ``Database`` object owns the
``MongoClient`` for the whole process: it is created and connected in the
application lifespan, handed to request handlers through the
``get_database`` dependency and closed on shutdown.
"""

import enum
import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from config import Settings
from errors import StoreFailure

logger = logging.getLogger(__name__)

LESSONS = "lessons"
ORDERS = "orders"


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Database:
    """Owns one MongoClient and exposes the collections the API uses."""

    def __init__(self, url: str, name: str, timeout_ms: int = 5000, client: Optional[MongoClient] = None):
        self.url = url
        self.name = name
        self.timeout_ms = timeout_ms
        self._client = client
        self.state = ConnectionState.DISCONNECTED

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, settings.database_name, settings.database_timeout_ms)

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def connect(self) -> None:
        """Open the client and ping the server. Errors propagate to the caller."""
        self.state = ConnectionState.CONNECTING
        logger.info("Connecting to MongoDB database %r", self.name)
        try:
            if self._client is None:
                self._client = MongoClient(self.url, serverSelectionTimeoutMS=self.timeout_ms)
            self._client.admin.command("ping")
        except Exception:
            self.state = ConnectionState.DISCONNECTED
            raise
        self.state = ConnectionState.CONNECTED
        logger.info("Connected to MongoDB database %r", self.name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self.state = ConnectionState.DISCONNECTED
        logger.info("MongoDB connection closed")

    def collection(self, name: str) -> Collection:
        if self._client is None:
            raise StoreFailure("Database is not connected")
        return self._client[self.name][name]

    @property
    def lessons(self) -> Collection:
        return self.collection(LESSONS)

    @property
    def orders(self) -> Collection:
        return self.collection(ORDERS)

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        """Insert a document and return its new id as a string."""
        if isinstance(data, BaseModel):
            doc = data.model_dump()
        else:
            doc = dict(data)
        try:
            result = self.collection(collection_name).insert_one(doc)
        except PyMongoError as exc:
            raise StoreFailure(str(exc)) from exc
        return str(result.inserted_id)

    def get_documents(self, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return list(self.collection(collection_name).find(filter_dict or {}))
        except PyMongoError as exc:
            raise StoreFailure(str(exc)) from exc

    def get_document(self, collection_name: str, doc_id: ObjectId) -> Optional[Dict[str, Any]]:
        try:
            return self.collection(collection_name).find_one({"_id": doc_id})
        except PyMongoError as exc:
            raise StoreFailure(str(exc)) from exc

    def update_document(self, collection_name: str, doc_id: ObjectId, fields: Dict[str, Any]):
        """Apply a ``$set`` of ``fields`` to one document. Returns the UpdateResult."""
        try:
            return self.collection(collection_name).update_one({"_id": doc_id}, {"$set": fields})
        except PyMongoError as exc:
            raise StoreFailure(str(exc)) from exc


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the process-wide Database."""
    db = getattr(request.app.state, "database", None)
    if db is None or not db.connected:
        raise StoreFailure("Database is not connected")
    return db
