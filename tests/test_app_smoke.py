import json
import logging

import pytest
from fastapi.testclient import TestClient

from salesdesk.core import config
from salesdesk.core.logging_setup import JsonFormatter
from salesdesk.core.metrics import request_metrics
from salesdesk.core.request_context import clear_request_context, set_request_context
from salesdesk.core.startup_checks import validate_environment
from salesdesk.main import app as module_app
from salesdesk.main import create_app
from tests.support import build_store


def test_root_and_health(client):
    assert client.get("/").json() == {"status": "ok"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    generated = client.get("/health")

    assert echoed.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]


def test_expected_routes_are_registered():
    paths = set(module_app.openapi()["paths"])

    for path in (
        "/api/v1/users",
        "/api/v1/users/login",
        "/api/v1/users/token",
        "/api/v1/customers",
        "/api/v1/customers/{customer_id}",
        "/api/v1/products",
        "/api/v1/products/{code}",
        "/internal/metrics",
        "/ui/login",
        "/ui/customers",
        "/ui/products",
    ):
        assert path in paths


@pytest.mark.parametrize(
    "path, marker",
    [
        ("/ui/login", "Login"),
        ("/ui/customers", "Customers"),
        ("/ui/products", "Products"),
    ],
)
def test_pages_render(client, path, marker):
    response = client.get(path)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert marker in response.text


def test_metrics_require_auth_and_count_requests(client, auth_headers):
    assert client.get("/internal/metrics").status_code == 401

    client.get("/api/v1/customers")
    response = client.get("/internal/metrics", headers=auth_headers)

    assert response.status_code == 200
    endpoints = response.json()["endpoints"]
    assert endpoints["GET /api/v1/customers"]["total_requests"] == 1
    assert endpoints["GET /internal/metrics"]["error_count"] == 1


def test_metrics_key_uses_full_path_template(client):
    client.get("/api/v1/customers/7")
    client.get("/api/v1/customers/8")

    endpoints = request_metrics.snapshot()

    assert endpoints["GET /api/v1/customers/{customer_id}"]["total_requests"] == 2
    assert endpoints["GET /api/v1/customers/{customer_id}"]["error_count"] == 2


def test_unrouted_requests_share_one_metric_key(client):
    for index in range(20):
        assert client.get(f"/nope/{index}").status_code == 404

    endpoints = request_metrics.snapshot()

    assert endpoints["GET <unmatched>"]["total_requests"] == 20
    assert not any(key.startswith("GET /nope") for key in endpoints)


def test_grid_page_ships_paging_loading_and_relogin(client):
    html = client.get("/ui/customers").text

    assert "const PAGE_SIZE = 5;" in html
    assert 'id="pager"' in html
    assert 'id="loading"' in html
    assert "localStorage.removeItem('token')" in html


def test_bootstrap_user_is_created_on_startup(monkeypatch):
    monkeypatch.setattr(config, "DEV_USER_USERNAME", "admin")
    monkeypatch.setattr(config, "DEV_USER_PASSWORD", "admin-pass")

    with TestClient(create_app(build_store(pool_size=2, queue_limit=2))) as client:
        response = client.post("/api/v1/users/login", json={"username": "admin", "password": "admin-pass"})

    assert response.json()["auth"] is True


def test_production_refuses_sqlite(monkeypatch):
    monkeypatch.setattr(config, "IS_PROD", True)

    with pytest.raises(RuntimeError):
        validate_environment("sqlite:///./salesdesk.db")


def test_json_formatter_masks_secrets_and_adds_context():
    set_request_context(request_id="rid-1", username="alice")
    record = logging.LogRecord(
        name="salesdesk.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="login password=hunter2 token: abc.def",
        args=(),
        exc_info=None,
    )
    try:
        payload = json.loads(JsonFormatter("%(message)s").format(record))
    finally:
        clear_request_context()

    assert payload["request_id"] == "rid-1"
    assert payload["username"] == "alice"
    assert "hunter2" not in payload["message"]
    assert "abc.def" not in payload["message"]
