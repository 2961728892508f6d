"""Store adapters used to persist notification and user records."""

from __future__ import annotations

from app.config import Settings

from .base import (
    Query,
    Record,
    StoreAdapter,
    StoreError,
    SubscriptionCancelledError,
    SubscriptionHandle,
    split_path,
)
from .memory import MemoryStore
from .sql import SqlStore


def build_store(settings: Settings) -> StoreAdapter:
    """Return the store adapter selected by ``settings.store_backend``."""

    if settings.store_backend == "sql":
        from app.infrastructure.database import (
            create_database_engine,
            create_session_factory,
            initialize_database,
        )

        engine = create_database_engine(settings.database_url)
        initialize_database(engine)
        return SqlStore(create_session_factory(engine), engine=engine)
    return MemoryStore()


__all__ = [
    "MemoryStore",
    "Query",
    "Record",
    "SqlStore",
    "StoreAdapter",
    "StoreError",
    "SubscriptionCancelledError",
    "SubscriptionHandle",
    "build_store",
    "split_path",
]
