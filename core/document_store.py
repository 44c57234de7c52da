"""
Document Store for TodoBook API
===============================

Thin async access layer over a document database.

Architecture Pattern: Protocol-based Service
--------------------------------------------
Callers depend on `DocumentStoreProtocol`; two implementations exist:

- MongoDocumentStore: MongoDB through Motor, for deployments
- InMemoryDocumentStore: in-process collections, for development and tests

Every lookup that mutates or returns a single document takes a full filter
(for owned records: id AND creator). Matching and mutating happen in one
store call, so a record can never be acted on between "found by id" and
"ownership checked".
"""

import copy
import logging
from typing import Any, Optional, Protocol

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError, PyMongoError

from config import Settings, get_settings
from exceptions import DuplicateKeyError, StoreUnavailableError


# Set up module logger
logger = logging.getLogger(__name__)

Document = dict[str, Any]


class DocumentStoreProtocol(Protocol):
    """
    Protocol defining the interface for document stores.

    Filters are equality matches on top-level keys. Documents are plain
    dicts keyed by their stored field names; `_id` is an ObjectId.
    """

    async def connect(self) -> None:
        """Open connections and ensure indexes exist."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...

    async def ping(self) -> bool:
        """Return True when the backend answers."""
        ...

    async def ensure_unique_index(self, collection: str, field: str) -> None:
        """Declare `field` unique within `collection`."""
        ...

    async def insert_one(self, collection: str, document: Document) -> Document:
        """Insert a document, assigning `_id`, and return the stored copy."""
        ...

    async def find(self, collection: str, filter: Document) -> list[Document]:
        """Return every document matching `filter`."""
        ...

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        """Return the first document matching `filter`, or None."""
        ...

    async def find_one_and_update(
        self,
        collection: str,
        filter: Document,
        changes: Document
    ) -> Optional[Document]:
        """Set `changes` on the matching document and return it updated."""
        ...

    async def find_one_and_delete(self, collection: str, filter: Document) -> Optional[Document]:
        """Delete the matching document and return it."""
        ...


class MongoDocumentStore:
    """
    Document store backed by MongoDB via Motor.

    find_one_and_update / find_one_and_delete map directly onto MongoDB's
    atomic single-document operations.
    """

    backend_name = "mongo"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncIOMotorClient] = None
    ):
        """
        Args:
            settings: Application settings (uses defaults if not provided)
            client: Pre-built Motor client (created from mongo_uri if not provided)
        """
        self.settings = settings or get_settings()
        self.client = client or AsyncIOMotorClient(
            self.settings.mongo_uri,
            serverSelectionTimeoutMS=5000
        )
        self.db = self.client[self.settings.mongo_db_name]
        self._unique_fields: dict[str, set[str]] = {}

    async def connect(self) -> None:
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise StoreUnavailableError(self.backend_name, str(e))
        logger.info(f"Connected to MongoDB database '{self.settings.mongo_db_name}'")

    async def close(self) -> None:
        self.client.close()  # Motor client's close() is not async

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    async def ensure_unique_index(self, collection: str, field: str) -> None:
        await self.db[collection].create_index(field, unique=True)
        self._unique_fields.setdefault(collection, set()).add(field)

    async def insert_one(self, collection: str, document: Document) -> Document:
        doc = dict(document)
        doc.setdefault("_id", ObjectId())
        try:
            await self.db[collection].insert_one(doc)
        except MongoDuplicateKeyError as e:
            field = self._duplicate_field(collection, e)
            raise DuplicateKeyError(collection, field)
        return doc

    async def find(self, collection: str, filter: Document) -> list[Document]:
        return await self.db[collection].find(filter).to_list(None)

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        return await self.db[collection].find_one(filter)

    async def find_one_and_update(
        self,
        collection: str,
        filter: Document,
        changes: Document
    ) -> Optional[Document]:
        return await self.db[collection].find_one_and_update(
            filter,
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )

    async def find_one_and_delete(self, collection: str, filter: Document) -> Optional[Document]:
        return await self.db[collection].find_one_and_delete(filter)

    def _duplicate_field(self, collection: str, error: MongoDuplicateKeyError) -> str:
        key_value = (error.details or {}).get("keyValue") or {}
        if key_value:
            return next(iter(key_value))
        fields = self._unique_fields.get(collection) or {"_id"}
        return next(iter(fields))


class InMemoryDocumentStore:
    """
    Document store keeping collections in process memory.

    None of the methods await while reading or mutating a collection, so
    each call completes atomically on the event loop. Documents are copied
    in and out so callers never share state with the store.
    """

    backend_name = "memory"

    def __init__(self):
        self._collections: dict[str, dict[ObjectId, Document]] = {}
        self._unique_fields: dict[str, set[str]] = {}

    async def connect(self) -> None:
        logger.info("Using in-memory document store (data is not persisted)")

    async def close(self) -> None:
        self._collections.clear()

    async def ping(self) -> bool:
        return True

    async def ensure_unique_index(self, collection: str, field: str) -> None:
        self._unique_fields.setdefault(collection, set()).add(field)

    async def insert_one(self, collection: str, document: Document) -> Document:
        docs = self._collections.setdefault(collection, {})
        doc = copy.deepcopy(document)
        doc.setdefault("_id", ObjectId())

        if doc["_id"] in docs:
            raise DuplicateKeyError(collection, "_id")
        for field in self._unique_fields.get(collection, ()):
            if field in doc and any(other.get(field) == doc[field] for other in docs.values()):
                raise DuplicateKeyError(collection, field)

        docs[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def find(self, collection: str, filter: Document) -> list[Document]:
        return [
            copy.deepcopy(doc)
            for doc in self._collections.get(collection, {}).values()
            if _matches(doc, filter)
        ]

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        doc = self._first_match(collection, filter)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_one_and_update(
        self,
        collection: str,
        filter: Document,
        changes: Document
    ) -> Optional[Document]:
        doc = self._first_match(collection, filter)
        if doc is None:
            return None
        doc.update(copy.deepcopy(changes))
        return copy.deepcopy(doc)

    async def find_one_and_delete(self, collection: str, filter: Document) -> Optional[Document]:
        doc = self._first_match(collection, filter)
        if doc is None:
            return None
        del self._collections[collection][doc["_id"]]
        return doc

    def _first_match(self, collection: str, filter: Document) -> Optional[Document]:
        docs = self._collections.get(collection, {})
        if "_id" in filter:
            doc = docs.get(filter["_id"])
            return doc if doc is not None and _matches(doc, filter) else None
        for doc in docs.values():
            if _matches(doc, filter):
                return doc
        return None


def _matches(doc: Document, filter: Document) -> bool:
    return all(key in doc and doc[key] == value for key, value in filter.items())


def create_document_store(settings: Optional[Settings] = None) -> DocumentStoreProtocol:
    """
    Factory function to create the configured document store.

    Args:
        settings: Application settings

    Returns:
        DocumentStoreProtocol implementation selected by `store_backend`
    """
    settings = settings or get_settings()

    if settings.store_backend == "memory":
        return InMemoryDocumentStore()

    return MongoDocumentStore(settings)
