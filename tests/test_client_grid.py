import httpx
import pytest

from salesdesk.client import ApiClient, CustomerGrid, NetworkError, ProductGrid, RowMode, TokenStore
from tests.fixtures_data import CUSTOMER_BOB, CUSTOMER_CAROL

BASE_URL = "http://testserver/api/v1"


@pytest.fixture
def api(client, token) -> ApiClient:
    token_store = TokenStore()
    token_store.set(token)
    return ApiClient(BASE_URL, token_store=token_store, http=client)


def _offline_api() -> ApiClient:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return ApiClient(BASE_URL, http=httpx.Client(transport=httpx.MockTransport(handler)))


def _fill(grid, row_id, values):
    for field, value in values.items():
        grid.edit_field(row_id, field, value)


def test_new_customer_row_is_created_on_save(api):
    grid = CustomerGrid(api)
    assert grid.load() is True
    assert grid.rows == []

    temp_id = grid.add_row()
    assert grid.mode_of(temp_id) is RowMode.EDIT
    _fill(grid, temp_id, CUSTOMER_BOB)

    result = grid.save_row(temp_id)

    assert result.ok is True
    saved_id = result.row["id"]
    assert isinstance(saved_id, int)
    assert grid.mode_of(saved_id) is RowMode.VIEW
    assert grid.notification.message == "Customer successfully saved"
    assert grid.notification.severity == "success"

    reloaded = CustomerGrid(api)
    reloaded.load()
    assert reloaded.rows == [{"id": saved_id, **CUSTOMER_BOB}]


def test_edit_existing_customer_row(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, CUSTOMER_BOB)
    saved_id = grid.save_row(temp_id).row["id"]

    grid.start_edit(saved_id)
    result = grid.save_row(saved_id, CUSTOMER_CAROL)

    assert result.ok is True
    assert api.list("customers") == [{"id": saved_id, **CUSTOMER_CAROL}]
    assert grid.rows == [{"id": saved_id, **CUSTOMER_CAROL}]


def test_rejected_save_keeps_row_in_edit_mode(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, {**CUSTOMER_BOB, "email": "not-an-email"})

    result = grid.save_row(temp_id)

    assert result.ok is False
    assert result.error == "Invalid input"
    assert grid.mode_of(temp_id) is RowMode.EDIT
    assert grid.drafts[temp_id]["email"] == "not-an-email"
    assert grid.notification.severity == "error"
    assert api.list("customers") == []


def test_save_without_token_reports_server_message(client):
    grid = CustomerGrid(ApiClient(BASE_URL, http=client))
    temp_id = grid.add_row()
    _fill(grid, temp_id, CUSTOMER_BOB)

    result = grid.save_row(temp_id)

    assert result.ok is False
    assert grid.notification.message == "Missing bearer token"
    assert [row["id"] for row in grid.rows] == [temp_id]


def test_edit_field_guards(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, CUSTOMER_BOB)
    saved_id = grid.save_row(temp_id).row["id"]

    with pytest.raises(ValueError):
        grid.edit_field(saved_id, "firstname", "Nope")

    grid.start_edit(saved_id)
    with pytest.raises(ValueError):
        grid.edit_field(saved_id, "id", 99)


def test_cancel_new_row_removes_it(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()

    grid.cancel_edit(temp_id)

    assert grid.rows == []
    assert temp_id not in grid.new_rows


def test_delete_row_after_server_confirms(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, CUSTOMER_BOB)
    saved_id = grid.save_row(temp_id).row["id"]

    assert grid.delete_row(saved_id) is True
    assert grid.rows == []
    assert api.list("customers") == []


def test_product_row_uses_typed_code_as_key(api):
    grid = ProductGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, {"code": "P-1", "description": "Pencil", "unit_price": "1.50"})

    result = grid.save_row(temp_id)

    assert result.ok is True
    assert result.row["code"] == "P-1"
    assert api.list("products") == [{"code": "P-1", "description": "Pencil", "unit_price": 1.5}]


def test_load_failure_keeps_previous_rows():
    grid = CustomerGrid(_offline_api())
    grid.rows = [{"id": 1, "firstname": "Kept"}]

    assert grid.load() is False
    assert grid.rows == [{"id": 1, "firstname": "Kept"}]
    assert grid.notification.severity == "error"
    assert grid.is_loading is False


def test_delete_failure_keeps_row():
    grid = CustomerGrid(_offline_api())
    grid.rows = [{"id": 1, "firstname": "Kept"}]

    assert grid.delete_row(1) is False
    assert grid.rows == [{"id": 1, "firstname": "Kept"}]


def test_api_client_raises_network_error_with_status(client):
    api = ApiClient(BASE_URL, http=client)

    with pytest.raises(NetworkError) as excinfo:
        api.update("customers", 5, {"firstname": "Bob"})

    assert excinfo.value.status_code == 401


def test_login_stores_token(client):
    client.post(
        "/api/v1/users",
        json={
            "username": "dana",
            "firstname": "Dana",
            "lastname": "D",
            "email_add": "d@x.com",
            "password": "secret123",
        },
    )
    api = ApiClient(BASE_URL, http=client)

    assert api.login("dana", "wrong-pass") == {"auth": False, "msg": "Invalid password"}
    assert api.token_store.get() is None

    assert api.login("dana", "secret123")["auth"] is True
    assert api.token_store.get()

    api.logout()
    assert api.token_store.get() is None


def test_token_store_persists_to_file(tmp_path):
    path = tmp_path / "session.json"
    TokenStore(path).set("abc")

    assert TokenStore(path).get() == "abc"

    TokenStore(path).clear()
    assert not path.exists()


def _grid_with_rows(count: int) -> CustomerGrid:
    grid = CustomerGrid(_offline_api())
    grid.rows = [{"id": index, "firstname": f"C{index}"} for index in range(1, count + 1)]
    return grid


def test_rows_are_paged_five_at_a_time():
    grid = _grid_with_rows(12)

    assert grid.page_count == 3
    assert [row["id"] for row in grid.visible_rows] == [1, 2, 3, 4, 5]

    grid.next_page()
    grid.next_page()
    assert [row["id"] for row in grid.visible_rows] == [11, 12]

    grid.next_page()
    assert grid.page == 2

    grid.previous_page()
    grid.set_page(-4)
    assert grid.page == 0


def test_empty_grid_has_one_page():
    grid = _grid_with_rows(0)

    assert grid.page_count == 1
    assert grid.visible_rows == []


def test_add_row_jumps_to_first_page(api):
    grid = CustomerGrid(api)
    grid.rows = [{"id": index, "firstname": f"C{index}"} for index in range(1, 11)]
    grid.set_page(1)

    temp_id = grid.add_row()

    assert grid.page == 0
    assert grid.visible_rows[0]["id"] == temp_id


def test_delete_of_last_row_on_page_steps_back(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, CUSTOMER_BOB)
    saved_id = grid.save_row(temp_id).row["id"]
    grid.rows = [{"id": index} for index in range(100, 105)] + grid.rows
    grid.set_page(1)

    assert grid.delete_row(saved_id) is True
    assert grid.page == 0


def test_saved_row_shows_server_values(api):
    grid = CustomerGrid(api)
    temp_id = grid.add_row()
    _fill(grid, temp_id, {**CUSTOMER_BOB, "city": "  Springfield  "})
    saved_id = grid.save_row(temp_id).row["id"]

    grid.start_edit(saved_id)
    result = grid.save_row(saved_id, {**CUSTOMER_CAROL, "firstname": "  Carol "})

    assert result.row["firstname"] == "Carol"
    assert grid.rows == api.list("customers")
