from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from salesdesk.client.api import ApiClient, NetworkError
from salesdesk.client.grid import Notification

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    kind: str = "text"  # text | number | email
    required: bool = True

    def clean(self, raw: Any) -> Tuple[Any, Optional[str]]:
        text = "" if raw is None else str(raw).strip()
        if not text:
            return None, "Required" if self.required else None

        if self.kind == "number":
            try:
                value = Decimal(text)
            except InvalidOperation:
                return None, "Must be a number"
            if not value.is_finite() or value < 0:
                return None, "Must be a non-negative number"
            if value.as_tuple().exponent < -2:
                return None, "At most two decimal places"
            # Sent as a string so the amount is not rounded through float.
            return str(value.quantize(CENTS)), None

        if self.kind == "email" and not EMAIL_RE.match(text):
            return None, "Invalid e-mail address"

        return text, None


class RecordForm:
    """Modal create-record form: collect, validate, POST, report."""

    resource: str = ""
    fields: Tuple[FormField, ...] = ()

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.is_open = False
        self.values: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.notification: Optional[Notification] = None

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.values = {}
        self.errors = {}

    def set_value(self, name: str, value: Any) -> None:
        if name not in {field.name for field in self.fields}:
            raise KeyError(name)
        self.values[name] = value

    def validate(self) -> Dict[str, Any]:
        cleaned: Dict[str, Any] = {}
        self.errors = {}
        for field in self.fields:
            value, error = field.clean(self.values.get(field.name))
            if error:
                self.errors[field.name] = error
            else:
                cleaned[field.name] = value
        return cleaned

    def dismiss_notification(self) -> None:
        self.notification = None

    def submit(self, values: Optional[Dict[str, Any]] = None) -> bool:
        for name, value in (values or {}).items():
            self.set_value(name, value)

        cleaned = self.validate()
        if self.errors:
            self.notification = Notification("Please correct the highlighted fields", "error")
            return False

        try:
            result = self.client.create(self.resource, cleaned)
        except NetworkError as exc:
            logger.info("form submit failed resource=%s status=%s", self.resource, exc.status_code)
            self.notification = Notification(exc.message, "error")
            return False

        self.notification = Notification(result.get("msg", "Saved"), "success")
        self.close()
        return True


class ProductForm(RecordForm):
    resource = "products"
    fields = (
        FormField("code", "Product Code"),
        FormField("description", "Description"),
        FormField("unit_price", "Price", kind="number"),
    )


class CustomerForm(RecordForm):
    resource = "customers"
    fields = (
        FormField("firstname", "First name"),
        FormField("lastname", "Last name"),
        FormField("address", "Address"),
        FormField("city", "City"),
        FormField("zip", "Zip"),
        FormField("email", "Email", kind="email"),
        FormField("phone", "Phone"),
    )
