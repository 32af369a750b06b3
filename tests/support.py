from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from salesdesk.core.database import Store

MEMORY_URL = "sqlite+pysqlite:///:memory:"


def memory_engine():
    return create_engine(
        MEMORY_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def build_store(*, with_schema: bool = True, **kwargs) -> Store:
    store = Store(MEMORY_URL, engine=memory_engine(), **kwargs)
    if with_schema:
        store.create_schema()
    return store
