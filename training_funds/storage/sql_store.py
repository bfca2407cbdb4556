"""
SQL Key-Value Store Module

SQLAlchemy-backed KeyValueStore. Every write is conditional: inserts rely on
the primary key and updates are guarded by the row version, so concurrent
writers on the same key serialize through the database.
"""

import logging
import os
from typing import Any

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..exceptions import StoreUnavailable
from .kv_store import VersionedValue

logger = logging.getLogger(__name__)

metadata = MetaData()

kv_entries = Table(
    "kv_entries",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
    Column("version", Integer, nullable=False, default=1),
)


def default_database_url() -> str:
    """Build the database URL from environment variables."""
    return os.getenv(
        "DATABASE_URL",
        f"postgresql://{os.getenv('POSTGRES_USER', 'training')}:"
        f"{os.getenv('POSTGRES_PASSWORD', 'password')}@"
        f"{os.getenv('POSTGRES_HOST', 'localhost')}:"
        f"{os.getenv('POSTGRES_PORT', '5432')}/"
        f"{os.getenv('POSTGRES_DB', 'training_funds')}"
    )


class SqlKeyValueStore:
    """KeyValueStore on a single SQL table."""

    # Conflicts on increment are retried; each retry means another writer won
    MAX_INCREMENT_ATTEMPTS = 20

    def __init__(self, database_url: str | None = None, engine: Engine | None = None, **engine_kwargs: Any):
        """Initialize the store.

        Args:
            database_url: SQLAlchemy database URL (defaults to environment)
            engine: Existing engine to reuse instead of creating one
            engine_kwargs: Extra arguments for create_engine
        """
        if engine is None:
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine = create_engine(database_url or default_database_url(), **engine_kwargs)
        self.engine = engine

    def create_schema(self) -> None:
        """Create the kv_entries table if it does not exist."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to create store schema: {e}") from e

    def get(self, key: str) -> VersionedValue | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(kv_entries.c.value, kv_entries.c.version).where(kv_entries.c.key == key)
                ).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read key {key}: {e}")
            raise StoreUnavailable(f"Failed to read {key}") from e

        if row is None:
            return None
        return VersionedValue(row.value, row.version)

    def put_if_absent(self, key: str, value: str) -> bool:
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(kv_entries).values(key=key, value=value, version=1))
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert key {key}: {e}")
            raise StoreUnavailable(f"Failed to write {key}") from e
        return True

    def compare_and_set(self, key: str, expected_version: int, value: str) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(kv_entries)
                    .where(kv_entries.c.key == key)
                    .where(kv_entries.c.version == expected_version)
                    .values(value=value, version=expected_version + 1)
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to update key {key}: {e}")
            raise StoreUnavailable(f"Failed to write {key}") from e
        return result.rowcount == 1

    def increment(self, key: str) -> int:
        """Atomically increment a counter and return the new count."""
        for _ in range(self.MAX_INCREMENT_ATTEMPTS):
            current = self.get(key)
            if current is None:
                if self.put_if_absent(key, "1"):
                    return 1
                continue

            count = int(current.value) + 1
            if self.compare_and_set(key, current.version, str(count)):
                return count

        raise StoreUnavailable(f"Too much contention incrementing {key}")
