import pytest
from fastapi.testclient import TestClient

from rigmarket.accounts import UserService
from rigmarket.catalog import CatalogService
from rigmarket.config import Settings
from rigmarket.db import MemoryDocumentStore
from rigmarket.main import create_app
from rigmarket.seed import seed_demo_data
from rigmarket.service import BuildService


@pytest.fixture
def store():
    store = MemoryDocumentStore()
    seed_demo_data(store)
    return store


@pytest.fixture
def users(store):
    return UserService(store)


@pytest.fixture
def catalog(store):
    return CatalogService(store)


@pytest.fixture
def builds(store, catalog, users):
    return BuildService(store, catalog, users)


@pytest.fixture
def actors(users):
    return {role: users.get_user(f"u-{role}") for role in ("admin", "user", "assembler", "supplier")}


@pytest.fixture
def client():
    app = create_app(Settings(seed_demo_data=True), store=MemoryDocumentStore())
    return TestClient(app)
