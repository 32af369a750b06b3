"""
Editable data grid state.

Rows live in local state, each with a display mode. Nothing is written to
the local rows until the server accepts the change: a failed save leaves the
row in edit mode with its draft, a failed delete leaves the row in place.
Rows are shown a page at a time, five per page.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from salesdesk.client.api import ApiClient, NetworkError

logger = logging.getLogger(__name__)


class RowMode(str, Enum):
    VIEW = "view"
    EDIT = "edit"


@dataclass(frozen=True)
class Column:
    field: str
    header: str
    editable: bool = False
    width: int = 120


@dataclass
class Notification:
    message: str
    severity: str  # "success" | "error"


@dataclass
class SaveResult:
    ok: bool
    row: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class DataGridView:
    resource: str = ""
    key: str = "id"
    label: str = "Record"
    columns: Tuple[Column, ...] = ()
    page_size: int = 5

    _temp_ids = itertools.count(1)

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.rows: List[Dict[str, Any]] = []
        self.row_modes: Dict[Any, RowMode] = {}
        self.drafts: Dict[Any, Dict[str, Any]] = {}
        self.new_rows: set = set()
        self.notification: Optional[Notification] = None
        self.is_loading = False
        self.page = 0

    # helpers

    @property
    def editable_fields(self) -> List[str]:
        return [column.field for column in self.columns if column.editable]

    def _find(self, row_id: Any) -> Optional[Dict[str, Any]]:
        return next((row for row in self.rows if row[self.key] == row_id), None)

    def _require(self, row_id: Any) -> Dict[str, Any]:
        row = self._find(row_id)
        if row is None:
            raise KeyError(row_id)
        return row

    def _notify(self, message: str, severity: str) -> None:
        self.notification = Notification(message, severity)

    def from_api(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {column.field: record.get(column.field) for column in self.columns}

    def to_payload(self, values: Dict[str, Any], *, include_key: bool = False) -> Dict[str, Any]:
        payload = {field: values.get(field) for field in self.editable_fields}
        if include_key:
            payload[self.key] = values.get(self.key)
        return payload

    def mode_of(self, row_id: Any) -> RowMode:
        return self.row_modes.get(row_id, RowMode.VIEW)

    def dismiss_notification(self) -> None:
        self.notification = None

    # paging

    @property
    def page_count(self) -> int:
        return max(1, -(-len(self.rows) // self.page_size))

    @property
    def visible_rows(self) -> List[Dict[str, Any]]:
        start = self.page * self.page_size
        return self.rows[start:start + self.page_size]

    def set_page(self, page: int) -> None:
        self.page = min(max(page, 0), self.page_count - 1)

    def next_page(self) -> None:
        self.set_page(self.page + 1)

    def previous_page(self) -> None:
        self.set_page(self.page - 1)

    # protocol

    def load(self) -> bool:
        self.is_loading = True
        try:
            records = self.client.list(self.resource)
        except NetworkError as exc:
            self._notify(exc.message, "error")
            return False
        finally:
            self.is_loading = False

        self.rows = [self.from_api(record) for record in records]
        self.row_modes = {}
        self.drafts = {}
        self.new_rows = set()
        self.set_page(self.page)
        return True

    def start_edit(self, row_id: Any) -> None:
        row = self._require(row_id)
        self.drafts[row_id] = dict(row)
        self.row_modes[row_id] = RowMode.EDIT

    def edit_field(self, row_id: Any, field: str, value: Any) -> None:
        if self.mode_of(row_id) is not RowMode.EDIT:
            raise ValueError(f"Row {row_id!r} is not in edit mode")
        key_is_writable = row_id in self.new_rows and field == self.key
        if field not in self.editable_fields and not key_is_writable:
            raise ValueError(f"Field {field!r} is not editable")
        self.drafts[row_id][field] = value

    def add_row(self) -> Any:
        temp_id = f"new-{next(self._temp_ids)}"
        row = {column.field: None for column in self.columns}
        row[self.key] = temp_id
        self.rows.insert(0, row)
        self.new_rows.add(temp_id)
        self.drafts[temp_id] = dict(row)
        if self.key != "id":
            # Natural keys are typed in by the user.
            self.drafts[temp_id][self.key] = None
        self.row_modes[temp_id] = RowMode.EDIT
        self.page = 0
        return temp_id

    def cancel_edit(self, row_id: Any) -> None:
        self.drafts.pop(row_id, None)
        self.row_modes[row_id] = RowMode.VIEW
        if row_id in self.new_rows:
            self.new_rows.discard(row_id)
            self.row_modes.pop(row_id, None)
            self.rows = [row for row in self.rows if row[self.key] != row_id]
            self.set_page(self.page)

    def save_row(self, row_id: Any, values: Optional[Dict[str, Any]] = None) -> SaveResult:
        self._require(row_id)
        if self.mode_of(row_id) is not RowMode.EDIT:
            self.start_edit(row_id)
        draft = self.drafts[row_id]
        if values:
            for field, value in values.items():
                self.edit_field(row_id, field, value)

        is_new = row_id in self.new_rows
        try:
            if is_new:
                include_key = self.key != "id"
                result = self.client.create(self.resource, self.to_payload(draft, include_key=include_key))
                saved_id = result.get("id", draft.get(self.key))
            else:
                result = self.client.update(self.resource, row_id, self.to_payload(draft))
                saved_id = row_id
        except NetworkError as exc:
            logger.info("row save failed resource=%s row=%s status=%s", self.resource, row_id, exc.status_code)
            self.row_modes[row_id] = RowMode.EDIT
            self._notify(exc.message, "error")
            return SaveResult(ok=False, error=exc.message)

        # The server's copy reflects trimming and e-mail normalization.
        record = result.get("record")
        if record:
            saved = self.from_api(record)
            saved_id = saved[self.key]
        else:
            saved = {column.field: draft.get(column.field) for column in self.columns}
            saved[self.key] = saved_id
        self.rows = [saved if row[self.key] == row_id else row for row in self.rows]
        self.drafts.pop(row_id, None)
        self.row_modes.pop(row_id, None)
        self.new_rows.discard(row_id)
        self.row_modes[saved_id] = RowMode.VIEW
        self._notify(f"{self.label} successfully saved", "success")
        return SaveResult(ok=True, row=saved)

    def delete_row(self, row_id: Any) -> bool:
        self._require(row_id)
        if row_id in self.new_rows:
            self.cancel_edit(row_id)
            return True

        try:
            self.client.delete(self.resource, row_id)
        except NetworkError as exc:
            self._notify(exc.message, "error")
            return False

        self.rows = [row for row in self.rows if row[self.key] != row_id]
        self.row_modes.pop(row_id, None)
        self.drafts.pop(row_id, None)
        self.set_page(self.page)
        self._notify(f"{self.label} deleted", "success")
        return True


class CustomerGrid(DataGridView):
    resource = "customers"
    key = "id"
    label = "Customer"
    columns = (
        Column("id", "ID", width=70),
        Column("firstname", "First name", editable=True),
        Column("lastname", "Last name", editable=True),
        Column("address", "Address", editable=True),
        Column("zip", "Zip", editable=True),
        Column("city", "City", editable=True),
        Column("email", "Email", editable=True),
        Column("phone", "Phone", editable=True),
    )


class ProductGrid(DataGridView):
    resource = "products"
    key = "code"
    label = "Product"
    columns = (
        Column("code", "Code", width=100),
        Column("description", "Description", editable=True, width=240),
        Column("unit_price", "Price", editable=True),
    )
