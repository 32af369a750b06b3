import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from salesdesk.core.errors import ConflictError, PoolExhaustedError, StoreError, store_failure_message
from salesdesk.services import queries
from tests.support import build_store


def test_store_rejects_sessions_past_capacity():
    store = build_store(pool_size=1, queue_limit=1)

    with store.session(), store.session():
        assert store.admitted == 2
        with pytest.raises(PoolExhaustedError):
            with store.session():
                pass

    assert store.admitted == 0


def test_store_releases_slot_when_block_raises():
    store = build_store(pool_size=1, queue_limit=0)

    with pytest.raises(RuntimeError):
        with store.session():
            raise RuntimeError("boom")

    assert store.admitted == 0
    with store.session() as db:
        assert queries.select_all_customers(db) == []


def test_pool_exhaustion_maps_to_503(client, store):
    store.pool_size = 0
    store.queue_limit = 0

    response = client.get("/api/v1/customers")

    assert response.status_code == 503
    assert response.json() == {"error": "Server busy. Please try again later."}


def test_insert_product_conflict_is_translated():
    store = build_store(pool_size=2, queue_limit=0)
    fields = {"code": "A1", "description": "Anvil", "unit_price": 10}

    with store.session() as db:
        queries.insert_product(db, fields)
    with store.session() as db:
        with pytest.raises(ConflictError) as excinfo:
            queries.insert_product(db, fields)

    assert excinfo.value.message == "Product code already exists"


def test_missing_tables_surface_as_store_error():
    store = build_store(with_schema=False, pool_size=2, queue_limit=0)

    with store.session() as db:
        with pytest.raises(StoreError) as excinfo:
            queries.select_all_products(db)

    assert excinfo.value.status_code == 500


def test_pool_timeout_is_translated(monkeypatch):
    store = build_store(pool_size=2, queue_limit=0)

    def _timeout(self, *args, **kwargs):
        raise sa_exc.TimeoutError("QueuePool limit reached")

    monkeypatch.setattr(Session, "scalars", _timeout)

    with store.session() as db:
        with pytest.raises(PoolExhaustedError):
            queries.select_all_users(db)


def test_update_and_delete_report_matched_rows():
    store = build_store(pool_size=2, queue_limit=0)

    with store.session() as db:
        customer = queries.insert_customer(
            db,
            {
                "firstname": "Ann",
                "lastname": "Lee",
                "address": "5 Oak",
                "city": "Town",
                "zip": "111",
                "email": "ann@example.com",
                "phone": "555",
            },
        )
        assert queries.update_customer(db, customer.id, {"city": "City"}) == 1
        assert queries.update_customer(db, customer.id + 1, {"city": "City"}) == 0
        assert queries.delete_customer(db, customer.id) == 1
        assert queries.delete_customer(db, customer.id) == 0


def test_store_failure_message_keeps_busy_errors():
    with pytest.raises(PoolExhaustedError):
        with store_failure_message("Unable to retrieve customers."):
            raise PoolExhaustedError()

    with pytest.raises(StoreError) as excinfo:
        with store_failure_message("Unable to retrieve customers."):
            raise StoreError()

    assert excinfo.value.message == "Unable to retrieve customers."
