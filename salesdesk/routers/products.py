from __future__ import annotations

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from salesdesk.core.database import get_db
from salesdesk.core.errors import NotFoundError, store_failure_message
from salesdesk.deps import get_current_username
from salesdesk.models.product import Product
from salesdesk.services import queries

router = APIRouter(prefix="/products", tags=["products"])


class ProductRead(BaseModel):
    code: str
    description: str
    unit_price: float


class ProductUpdate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Description must not be blank")
        return value


class ProductCreate(ProductUpdate):
    code: str = Field(..., min_length=1, max_length=50)

    @field_validator("code")
    @classmethod
    def _strip_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Product code must not be blank")
        return value


def _serialize(product: Product) -> dict:
    return {
        "code": product.code,
        "description": product.description,
        "unit_price": float(product.unit_price),
    }


@router.get("", response_model=List[ProductRead])
def list_products(db: Session = Depends(get_db)):
    with store_failure_message("Unable to retrieve products. Please try again later."):
        products = queries.select_all_products(db)
    return [_serialize(product) for product in products]


@router.get("/{code}", response_model=ProductRead)
def get_product(code: str, db: Session = Depends(get_db)):
    product = queries.select_product(db, code)
    if product is None:
        raise NotFoundError(f"Product {code} not found")
    return _serialize(product)


@router.post("")
def create_product(
    payload: ProductCreate,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    with store_failure_message("Unable to create new product. Please try again later."):
        product = queries.insert_product(db, payload.model_dump())
    return {
        "msg": f"Successfully created new product with code {product.code}",
        "id": product.code,
        "record": _serialize(product),
    }


@router.put("/{code}")
def update_product(
    code: str,
    payload: ProductUpdate,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump()
    with store_failure_message("Unable to update product. Please try again later."):
        matched = queries.update_product(db, code, fields)
    if not matched:
        raise NotFoundError(f"Product {code} not found")
    return {
        "msg": f"Successfully updated product {code}",
        "record": {"code": code, "description": fields["description"], "unit_price": float(fields["unit_price"])},
    }


@router.delete("/{code}")
def delete_product(
    code: str,
    _username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
):
    with store_failure_message("Unable to delete product. Please try again later."):
        queries.delete_product(db, code)
    return {"msg": f"Product {code} deleted"}
