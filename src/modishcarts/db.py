import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

from flask import current_app
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

EXTENSION_KEY = "modishcarts.db"


def new_id() -> str:
    """Primary keys are UUID4 strings; the API exposes ids as strings."""
    return str(uuid.uuid4())


def enum_check(column: str, values) -> str:
    """SQL for a CHECK constraint limiting a string column to `values`."""
    return f"{column} IN (" + ",".join(f"'{v}'" for v in values) + ")"


class Database:
    """
    Owns the engine and session factory for one application instance.

    In-memory SQLite URLs get a StaticPool so every session sees the same
    database (the test suite relies on this).
    """

    def __init__(self, url: str, echo: bool = False, pool_size: int = 10,
                 max_overflow: int = 20, pool_recycle: int = 3600):
        engine_kwargs = {"echo": echo, "future": True}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        # Importing the models registers them on Base.metadata.
        from modishcarts import models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("Database schema ensured")

    def drop_all(self) -> None:
        from modishcarts import models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transactional scope: commit on success, roll back on any error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        return True

    def dispose(self) -> None:
        self.engine.dispose()


def get_database() -> Database:
    return current_app.extensions[EXTENSION_KEY]


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session bound to the current application's database."""
    with get_database().session_scope() as session:
        yield session
