from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from salesdesk.core.database import get_db
from salesdesk.core.errors import NotFoundError, ValidationError, store_failure_message
from salesdesk.deps import get_current_username
from salesdesk.models.customer import Customer
from salesdesk.services import queries

router = APIRouter(prefix="/customers", tags=["customers"])

PHONE_PATTERN = r"^[0-9+()\-. ]{3,30}$"
TEXT_FIELDS = ("firstname", "lastname", "address", "city", "zip", "phone")


def _strip_required(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Must not be blank")
    return value


class CustomerRead(BaseModel):
    id: int
    firstname: str
    lastname: str
    address: str
    city: str
    zip: str
    email: str
    phone: str


class CustomerCreate(BaseModel):
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    zip: str = Field(..., min_length=1, max_length=20)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)

    @field_validator(*TEXT_FIELDS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _strip_required(value)


class CustomerUpdate(BaseModel):
    # Optional so a missing id answers 404 before the body is checked for completeness.
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    lastname: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    zip: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    @field_validator(*TEXT_FIELDS)
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _strip_required(value)


def _serialize(customer: Customer) -> dict:
    return {
        "id": customer.id,
        "firstname": customer.firstname,
        "lastname": customer.lastname,
        "address": customer.address,
        "city": customer.city,
        "zip": customer.zip,
        "email": customer.email,
        "phone": customer.phone,
    }


@router.get("", response_model=List[CustomerRead])
def list_customers(db: Session = Depends(get_db)):
    with store_failure_message("Unable to retrieve customers. Please try again later."):
        customers = queries.select_all_customers(db)
    return [_serialize(customer) for customer in customers]


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = queries.select_customer(db, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return _serialize(customer)


@router.post("")
def create_customer(
    payload: CustomerCreate,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    with store_failure_message("Unable to create new customer. Please try again later."):
        customer = queries.insert_customer(db, payload.model_dump())
    return {
        "msg": f"Successfully created new customer with ID {customer.id}",
        "id": customer.id,
        "record": _serialize(customer),
    }


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    if queries.select_customer(db, customer_id) is None:
        raise NotFoundError(f"Customer {customer_id} not found")

    fields = payload.model_dump()
    missing = {name: "Field required" for name in Customer.EDITABLE_FIELDS if fields.get(name) is None}
    if missing:
        raise ValidationError("Customer updates must include every editable field", fields=missing)

    with store_failure_message("Unable to update customer. Please try again later."):
        matched = queries.update_customer(db, customer_id, fields)
    if not matched:
        raise NotFoundError(f"Customer {customer_id} not found")
    # Validated values are exactly what the store now holds.
    return {
        "msg": f"Successfully updated customer with ID {customer_id}",
        "record": {"id": customer_id, **fields},
    }


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    with store_failure_message("Unable to delete customer. Please try again later."):
        queries.delete_customer(db, customer_id)
    return {"msg": f"Customer with ID {customer_id} deleted"}
