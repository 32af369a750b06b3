"""
Named queries shared by the request handlers.

Every function takes the request session, runs one statement and commits
when it writes. SQLAlchemy failures are translated here, so handlers only
ever see ``StoreError``, ``PoolExhaustedError`` or ``ConflictError``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, exc as sa_exc, select, update
from sqlalchemy.orm import Session

from salesdesk.core.errors import ConflictError, PoolExhaustedError, StoreError
from salesdesk.models.customer import Customer
from salesdesk.models.product import Product
from salesdesk.models.user import User

logger = logging.getLogger(__name__)


@contextmanager
def _guard(db: Session, action: str, *, conflict_message: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except sa_exc.TimeoutError as exc:
        db.rollback()
        logger.error("db.query: pool timeout action=%s", action)
        raise PoolExhaustedError() from exc
    except sa_exc.IntegrityError as exc:
        db.rollback()
        logger.warning("db.query: integrity violation action=%s", action)
        raise ConflictError(conflict_message) from exc
    except sa_exc.SQLAlchemyError as exc:
        db.rollback()
        logger.exception("db.query: failed action=%s", action)
        raise StoreError() from exc


# users

def select_all_users(db: Session) -> List[User]:
    with _guard(db, "select_all_users"):
        return list(db.scalars(select(User).order_by(User.id)))


def select_user_by_username(db: Session, username: str) -> Optional[User]:
    with _guard(db, "select_user_by_username"):
        return db.scalars(select(User).where(User.username == username)).first()


def insert_user(
    db: Session,
    *,
    username: str,
    firstname: str,
    lastname: str,
    email: str,
    password_hash: str,
) -> User:
    user = User(
        username=username,
        firstname=firstname,
        lastname=lastname,
        email=email,
        password_hash=password_hash,
    )
    with _guard(db, "insert_user", conflict_message="Username already taken"):
        db.add(user)
        db.commit()
    return user


# customers

def select_all_customers(db: Session) -> List[Customer]:
    with _guard(db, "select_all_customers"):
        return list(db.scalars(select(Customer).order_by(Customer.id)))


def select_customer(db: Session, customer_id: int) -> Optional[Customer]:
    with _guard(db, "select_customer"):
        return db.get(Customer, customer_id)


def insert_customer(db: Session, fields: Dict[str, Any]) -> Customer:
    customer = Customer(**fields)
    with _guard(db, "insert_customer"):
        db.add(customer)
        db.commit()
    return customer


def update_customer(db: Session, customer_id: int, fields: Dict[str, Any]) -> int:
    """Overwrites the editable columns in one statement; returns matched rows."""
    statement = update(Customer).where(Customer.id == customer_id).values(**fields)
    with _guard(db, "update_customer"):
        result = db.execute(statement, execution_options={"synchronize_session": False})
        db.commit()
    return result.rowcount


def delete_customer(db: Session, customer_id: int) -> int:
    with _guard(db, "delete_customer"):
        result = db.execute(
            delete(Customer).where(Customer.id == customer_id),
            execution_options={"synchronize_session": False},
        )
        db.commit()
    return result.rowcount


# products

def select_all_products(db: Session) -> List[Product]:
    with _guard(db, "select_all_products"):
        return list(db.scalars(select(Product).order_by(Product.code)))


def select_product(db: Session, code: str) -> Optional[Product]:
    with _guard(db, "select_product"):
        return db.get(Product, code)


def insert_product(db: Session, fields: Dict[str, Any]) -> Product:
    product = Product(**fields)
    with _guard(db, "insert_product", conflict_message="Product code already exists"):
        db.add(product)
        db.commit()
    return product


def update_product(db: Session, code: str, fields: Dict[str, Any]) -> int:
    statement = update(Product).where(Product.code == code).values(**fields)
    with _guard(db, "update_product"):
        result = db.execute(statement, execution_options={"synchronize_session": False})
        db.commit()
    return result.rowcount


def delete_product(db: Session, code: str) -> int:
    with _guard(db, "delete_product"):
        result = db.execute(
            delete(Product).where(Product.code == code),
            execution_options={"synchronize_session": False},
        )
        db.commit()
    return result.rowcount
