import pytest
from bson import ObjectId

from config import get_settings_for_testing
from core.document_store import InMemoryDocumentStore, MongoDocumentStore, create_document_store
from exceptions import DuplicateKeyError


@pytest.mark.asyncio
async def test_insert_assigns_object_id(backend_store):
    doc = await backend_store.insert_one("things", {"name": "a"})
    assert isinstance(doc["_id"], ObjectId)
    assert await backend_store.find_one("things", {"_id": doc["_id"]}) == doc


@pytest.mark.asyncio
async def test_unique_index_rejects_duplicates(backend_store):
    await backend_store.ensure_unique_index("users", "email")
    await backend_store.insert_one("users", {"email": "a@x.com"})
    with pytest.raises(DuplicateKeyError) as excinfo:
        await backend_store.insert_one("users", {"email": "a@x.com"})
    assert excinfo.value.details == {"collection": "users", "field": "email"}
    assert len(await backend_store.find("users", {})) == 1


@pytest.mark.asyncio
async def test_find_matches_every_filter_key(backend_store):
    owner, other = ObjectId(), ObjectId()
    await backend_store.insert_one("things", {"name": "a", "owner": owner})
    await backend_store.insert_one("things", {"name": "b", "owner": owner})
    await backend_store.insert_one("things", {"name": "a", "owner": other})

    assert len(await backend_store.find("things", {"owner": owner})) == 2
    assert len(await backend_store.find("things", {"owner": owner, "name": "a"})) == 1
    assert await backend_store.find("things", {"owner": ObjectId()}) == []
    assert await backend_store.find("missing", {}) == []


@pytest.mark.asyncio
async def test_find_one_and_update_requires_full_filter_match(backend_store):
    owner = ObjectId()
    doc = await backend_store.insert_one("things", {"name": "a", "owner": owner})

    assert await backend_store.find_one_and_update("things", {"_id": doc["_id"], "owner": ObjectId()}, {"name": "b"}) is None
    assert (await backend_store.find_one("things", {"_id": doc["_id"]}))["name"] == "a"

    updated = await backend_store.find_one_and_update("things", {"_id": doc["_id"], "owner": owner}, {"name": "b"})
    assert updated["name"] == "b"
    assert updated["owner"] == owner


@pytest.mark.asyncio
async def test_find_one_and_delete_returns_removed_document(backend_store):
    owner = ObjectId()
    doc = await backend_store.insert_one("things", {"name": "a", "owner": owner})

    assert await backend_store.find_one_and_delete("things", {"_id": doc["_id"], "owner": ObjectId()}) is None
    removed = await backend_store.find_one_and_delete("things", {"_id": doc["_id"], "owner": owner})
    assert removed == doc
    assert await backend_store.find_one("things", {"_id": doc["_id"]}) is None


@pytest.mark.asyncio
async def test_returned_documents_are_copies(backend_store):
    doc = await backend_store.insert_one("things", {"tags": ["a"]})
    doc["tags"].append("b")
    fetched = await backend_store.find_one("things", {"_id": doc["_id"]})
    fetched["tags"].append("c")
    assert (await backend_store.find_one("things", {"_id": doc["_id"]}))["tags"] == ["a"]


@pytest.mark.asyncio
async def test_in_memory_store_always_answers_ping(store):
    assert await store.ping() is True


@pytest.mark.asyncio
async def test_factory_selects_backend():
    memory = create_document_store(get_settings_for_testing(store_backend="memory"))
    mongo = create_document_store(get_settings_for_testing(store_backend="mongo"))
    assert isinstance(memory, InMemoryDocumentStore)
    assert isinstance(mongo, MongoDocumentStore)
    mongo.client.close()
