import os

import pytest
from fastapi.testclient import TestClient

from app.api.main import create_app
from app.core.observability.metrics import reset_metrics
from app.core.settings import Settings
from app.core.storage import MemoryItemStore


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("FIELDPATH_ENV", "dev")
    os.environ.setdefault("FIELDPATH_STORE", "memory")


@pytest.fixture(autouse=True)
def _reset_counters():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def settings():
    return Settings(max_depth=2, key_name="id")


@pytest.fixture()
def store(settings):
    return MemoryItemStore(key_name=settings.key_name)


@pytest.fixture()
def client(settings, store):
    return TestClient(create_app(settings=settings, store=store))


@pytest.fixture()
def user_item():
    return {
        "name": "Taro",
        "bio": "hello",
        "age": 30,
        "tags": ["a", "b"],
        "preferences": {
            "theme": "dark",
            "notifications": {"email": True, "push": False},
        },
    }


@pytest.fixture()
def seeded(store, user_item):
    store.put_item("user-1", user_item)
    return store
