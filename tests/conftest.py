import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from api.main import create_app
from api.services.owned_records import ContactStore, TodoStore
from api.services.user_service import UserService
from api.utils.security import PasswordHasher, TokenService
from config import get_settings_for_testing
from core.document_store import InMemoryDocumentStore, MongoDocumentStore
from models import Identity

TEST_SECRET = "test-secret"

# Set to a MongoDB URI to also run the store tests against a real server
MONGO_URI_ENV = "TODOBOOK_TEST_MONGO_URI"
TEST_DB = "todobook_test"


@pytest.fixture(scope="function")
def settings(tmp_path):
    """Settings for an app running on the in-memory store."""
    return get_settings_for_testing(
        store_backend="memory",
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        upload_dir=str(tmp_path / "contact" / "images"),
        max_photo_size_mb=1,
        log_level="WARNING",
    )


@pytest.fixture(scope="function")
def store():
    return InMemoryDocumentStore()


@pytest_asyncio.fixture(scope="function", params=[
    "memory",
    "mongomock",
    pytest.param("mongodb", marks=pytest.mark.integration),
])
async def backend_store(request):
    """Each document store backend, for tests of the shared store contract."""
    if request.param == "memory":
        yield InMemoryDocumentStore()
        return

    if request.param == "mongomock":
        settings = get_settings_for_testing(store_backend="mongo", mongo_db_name=TEST_DB)
        yield MongoDocumentStore(settings, client=AsyncMongoMockClient())
        return

    uri = os.environ.get(MONGO_URI_ENV)
    if not uri:
        pytest.skip(f"{MONGO_URI_ENV} is not set")
    settings = get_settings_for_testing(store_backend="mongo", mongo_uri=uri, mongo_db_name=TEST_DB)
    mongo_store = MongoDocumentStore(settings)
    await mongo_store.connect()
    try:
        yield mongo_store
    finally:
        await mongo_store.client.drop_database(TEST_DB)
        await mongo_store.close()


@pytest.fixture(scope="function")
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture(scope="function")
def user_service(store, token_service):
    return UserService(store, token_service, PasswordHasher(rounds=4))


@pytest.fixture(scope="function")
def todo_store(store, settings):
    return TodoStore(store, settings)


@pytest.fixture(scope="function")
def contact_store(store, settings):
    return ContactStore(store, settings)


@pytest.fixture(scope="function")
def alice():
    return Identity(user_id="5f0c1e2a9b1d4c3e8a7b6c5d", email="alice@example.com")


@pytest.fixture(scope="function")
def bob():
    return Identity(user_id="5f0c1e2a9b1d4c3e8a7b6c5e", email="bob@example.com")


@pytest.fixture(scope="function")
def client(settings, store):
    """TestClient with the app lifespan running."""
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def users(client):
    """Two signed-up users with their tokens and ids."""
    seeded = []
    for email, password in (("flavio@example.com", "userOnePass"), ("johndoe@example.com", "userTwoPass")):
        response = client.post("/signup", json={"email": email, "password": password})
        assert response.status_code == 200
        token = response.json()["token"]
        seeded.append({
            "email": email,
            "password": password,
            "token": token,
            "id": client.app.state.token_service.verify(token),
        })
    return seeded


@pytest.fixture(scope="function")
def todos(client, users):
    """One todo for each user; the second one completed."""
    first = client.post(
        "/todos", json={"text": "First test todo"}, headers={"authorization": users[0]["token"]}
    ).json()
    second = client.post(
        "/todos", json={"text": "Second test todo"}, headers={"authorization": users[1]["token"]}
    ).json()
    second = client.patch(
        f"/todos/{second['_id']}", json={"completed": True}, headers={"authorization": users[1]["token"]}
    ).json()["todo"]
    return [first, second]


@pytest.fixture(scope="function")
def contacts(client, users):
    """One contact for each user, created from JSON bodies."""
    first = client.post(
        "/contact",
        json={"name": "First contact", "details": "first details"},
        headers={"authorization": users[0]["token"]},
    ).json()
    second = client.post(
        "/contact",
        json={"name": "Second contact", "details": "second details"},
        headers={"authorization": users[1]["token"]},
    ).json()
    return [first, second]
