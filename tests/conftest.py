import pytest
from fastapi.testclient import TestClient

from salesdesk.core import config
from salesdesk.core.database import Store
from salesdesk.core.metrics import request_metrics
from salesdesk.main import create_app
from tests.fixtures_data import ALICE_LOGIN, ALICE_REGISTRATION
from tests.support import build_store


@pytest.fixture(autouse=True)
def _fast_hashing(monkeypatch):
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(config, "DEV_USER_PASSWORD", "")
    request_metrics.reset()


@pytest.fixture
def store() -> Store:
    return build_store(pool_size=5, queue_limit=5)


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


@pytest.fixture
def token(client) -> str:
    assert client.post("/api/v1/users", json=ALICE_REGISTRATION).status_code == 200
    response = client.post("/api/v1/users/login", json=ALICE_LOGIN)
    assert response.json()["auth"] is True
    return response.json()["msg"]


@pytest.fixture
def auth_headers(token) -> dict:
    return {"Authorization": f"Bearer {token}"}
