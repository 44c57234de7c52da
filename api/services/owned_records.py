"""
Owner-Scoped Record Stores
==========================

Generic create/list/get/update/remove over a document collection where
every record belongs to the user who created it.

Access rule: every lookup goes through `owner_filter`, which matches on the
record id AND the creator. A malformed id, a missing record and a record
owned by someone else all surface as the same `RecordNotFoundError`, so a
caller can never learn that another user's record exists.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ValidationError

from api.utils.security import now_ms
from config import Settings, get_settings
from core.document_store import DocumentStoreProtocol
from exceptions import RecordNotFoundError, RecordValidationError
from models import (
    Contact,
    ContactCreate,
    ContactUpdate,
    Identity,
    OwnedRecord,
    Todo,
    TodoCreate,
    TodoUpdate,
)


# Set up module logger
logger = logging.getLogger(__name__)

CREATOR_FIELD = "_creator"

R = TypeVar("R", bound=OwnedRecord)


def owner_filter(identity: Identity, record_id: Optional[str] = None) -> dict[str, Any]:
    """
    Build the store filter restricting a query to the caller's records.

    Args:
        identity: The authenticated caller
        record_id: Optional record id; when given the filter matches only
            that record, and only if the caller created it

    Returns:
        dict: Equality filter for the document store

    Raises:
        RecordNotFoundError: If record_id is not a valid ObjectId
    """
    query: dict[str, Any] = {CREATOR_FIELD: ObjectId(identity.user_id)}
    if record_id is not None:
        if not ObjectId.is_valid(record_id):
            raise RecordNotFoundError("record")
        query["_id"] = ObjectId(record_id)
    return query


class OwnedRecordStore(Generic[R]):
    """
    CRUD over one collection of owner-scoped records.

    Subclasses declare the collection, the record model, the create/update
    schemas and the fields a PATCH may touch.
    """

    collection: str
    resource: str
    record_model: Type[R]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    editable_fields: frozenset[str] = frozenset()

    def __init__(self, store: DocumentStoreProtocol, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    async def create(self, identity: Identity, fields: dict[str, Any]) -> R:
        """
        Create a record owned by the caller.

        Raises:
            RecordValidationError: If required fields are missing or invalid
        """
        values = self._validate(self.create_schema, fields)
        document = self.prepare_create(values)
        document[CREATOR_FIELD] = ObjectId(identity.user_id)

        stored = await self.store.insert_one(self.collection, document)
        logger.info(f"Created {self.resource} {stored['_id']} for user {identity.user_id}")
        return self.record_model.model_validate(stored)

    async def list(self, identity: Identity) -> list[R]:
        """Return every record the caller created, in no particular order."""
        docs = await self.store.find(self.collection, owner_filter(identity))
        return [self.record_model.model_validate(doc) for doc in docs]

    async def get(self, identity: Identity, record_id: str) -> R:
        """
        Return one of the caller's records.

        Raises:
            RecordNotFoundError: Bad id, no such record, or not the caller's
        """
        doc = await self.store.find_one(self.collection, self._scoped(identity, record_id))
        return self._found(doc)

    async def update(self, identity: Identity, record_id: str, fields: dict[str, Any]) -> R:
        """
        Apply a whitelisted subset of `fields` to one of the caller's records.

        Raises:
            RecordNotFoundError: Bad id, no such record, or not the caller's
            RecordValidationError: If a provided field is invalid
        """
        query = self._scoped(identity, record_id)
        picked = {key: value for key, value in fields.items() if key in self.editable_fields}
        changes = self.prepare_update(self._validate(self.update_schema, picked))

        if changes:
            doc = await self.store.find_one_and_update(self.collection, query, changes)
        else:
            doc = await self.store.find_one(self.collection, query)
        record = self._found(doc)
        logger.info(f"Updated {self.resource} {record.id} ({', '.join(sorted(changes)) or 'no fields'})")
        return record

    async def remove(self, identity: Identity, record_id: str) -> R:
        """
        Permanently delete one of the caller's records and return it.

        Raises:
            RecordNotFoundError: Bad id, no such record, or not the caller's
        """
        doc = await self.store.find_one_and_delete(self.collection, self._scoped(identity, record_id))
        record = self._found(doc)
        logger.info(f"Removed {self.resource} {record.id}")
        return record

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        """Turn validated create values into the stored document."""
        return values

    def prepare_update(self, changes: dict[str, Any]) -> dict[str, Any]:
        """Turn validated update values into the `$set` document."""
        return changes

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _scoped(self, identity: Identity, record_id: str) -> dict[str, Any]:
        try:
            return owner_filter(identity, record_id)
        except RecordNotFoundError:
            raise RecordNotFoundError(self.resource)

    def _found(self, doc: Optional[dict[str, Any]]) -> R:
        if doc is None:
            raise RecordNotFoundError(self.resource)
        return self.record_model.model_validate(doc)

    def _validate(self, schema: Type[BaseModel], fields: dict[str, Any]) -> dict[str, Any]:
        try:
            model = schema.model_validate(fields)
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            raise RecordValidationError(self.resource, errors)
        return model.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class TodoStore(OwnedRecordStore[Todo]):
    """Owner-scoped todos."""

    collection = "todos"
    resource = "Todo"
    record_model = Todo
    create_schema = TodoCreate
    update_schema = TodoUpdate
    editable_fields = frozenset({"text", "completed"})

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        return {"text": values["text"], "completed": False, "completedAt": None}

    def prepare_update(self, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Derive completedAt from completed.

        A boolean true stamps completedAt with the current time. Anything
        else, including truthy non-booleans such as "yes" or 1, resets
        completed/completedAt. With
        `derive_completion_on_every_update` off, a request that does not
        send completed leaves both fields untouched.
        """
        if not self.settings.derive_completion_on_every_update and "completed" not in changes:
            return changes

        if changes.get("completed") is True:
            changes["completedAt"] = now_ms()
        else:
            changes["completed"] = False
            changes["completedAt"] = None
        return changes


class ContactStore(OwnedRecordStore[Contact]):
    """Owner-scoped contacts."""

    collection = "contacts"
    resource = "Contact"
    record_model = Contact
    create_schema = ContactCreate
    update_schema = ContactUpdate
    editable_fields = frozenset({"name", "details", "photo"})

    def prepare_create(self, values: dict[str, Any]) -> dict[str, Any]:
        document = dict(values)
        if not document.get("photo"):
            document["photo"] = self.settings.default_contact_photo
        return document
