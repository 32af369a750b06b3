from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from salesdesk.core.config import (
    DATABASE_URL,
    DB_POOL_SIZE,
    DB_QUEUE_LIMIT,
    DB_QUEUE_TIMEOUT,
    ECHO_SQL,
)
from salesdesk.core.errors import PoolExhaustedError

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(
    url: str,
    *,
    pool_size: int = DB_POOL_SIZE,
    queue_timeout: float = DB_QUEUE_TIMEOUT,
    echo: bool = ECHO_SQL,
) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    # Fixed capacity: no overflow connections, waiters give up after queue_timeout.
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=queue_timeout,
    )


class Store:
    """Owns the engine, its connection pool and the session factory.

    Built once by the application factory and handed to request handlers
    through ``get_db``. At most ``pool_size + queue_limit`` sessions may be
    active or waiting at the same time; anything past that is rejected with
    ``PoolExhaustedError`` instead of queueing forever.
    """

    def __init__(
        self,
        url: str = DATABASE_URL,
        *,
        engine: Optional[Engine] = None,
        pool_size: int = DB_POOL_SIZE,
        queue_limit: int = DB_QUEUE_LIMIT,
        queue_timeout: float = DB_QUEUE_TIMEOUT,
    ) -> None:
        self.url = url
        self.engine = engine or build_engine(url, pool_size=pool_size, queue_timeout=queue_timeout)
        self.pool_size = pool_size
        self.queue_limit = queue_limit
        self.queue_timeout = queue_timeout
        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        self._admitted = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self.pool_size + self.queue_limit

    @property
    def admitted(self) -> int:
        with self._lock:
            return self._admitted

    def _admit(self) -> None:
        with self._lock:
            if self._admitted >= self.capacity:
                logger.warning(
                    "db.store: admission rejected admitted=%s capacity=%s",
                    self._admitted,
                    self.capacity,
                )
                raise PoolExhaustedError()
            self._admitted += 1

    def _release(self) -> None:
        with self._lock:
            self._admitted -= 1

    @contextmanager
    def session(self) -> Iterator[Session]:
        self._admit()
        try:
            db = self._session_factory()
            try:
                yield db
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()
        finally:
            self._release()

    def create_schema(self) -> None:
        # Registers every model on Base.metadata before create_all.
        import salesdesk.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("db.store: schema ensured")

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("db.store: engine disposed")


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(store: Store = Depends(get_store)) -> Iterator[Session]:
    with store.session() as db:
        yield db
