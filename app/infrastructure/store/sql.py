"""Store adapter persisting records through SQLAlchemy."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from anyio import to_thread
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.infrastructure.models import StoreRecordModel

from .base import Record, StoreAdapter, StoreError, split_path

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlStore(StoreAdapter):
    """Keep records as JSON documents in the ``store_record`` table.

    Blocking session work runs in a worker thread so the event loop keeps
    dispatching subscription callbacks.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, engine: Engine | None = None) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._engine = engine

    async def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    async def _read(self, path: str) -> Record | None:
        collection, key = split_path(path)
        normalized = f"{collection}/{key}"

        def read(session: Session) -> Record | None:
            model = session.get(StoreRecordModel, normalized)
            return dict(model.data) if model is not None else None

        return await self._run(read)

    async def _write(self, path: str, record: Record | None) -> None:
        collection, key = split_path(path)
        normalized = f"{collection}/{key}"

        def write(session: Session) -> None:
            model = session.get(StoreRecordModel, normalized)
            if record is None:
                if model is not None:
                    session.delete(model)
            elif model is None:
                session.add(
                    StoreRecordModel(path=normalized, collection=collection, data=record)
                )
            else:
                model.data = record
            session.commit()

        await self._run(write)

    async def _scan(self, collection: str) -> list[Record]:
        def scan(session: Session) -> list[Record]:
            models = (
                session.query(StoreRecordModel)
                .filter(StoreRecordModel.collection == collection)
                .order_by(StoreRecordModel.path)
                .all()
            )
            return [dict(model.data) for model in models]

        return await self._run(scan)

    async def _run(self, operation: Callable[[Session], T]) -> T:
        return await to_thread.run_sync(self._run_in_session, operation)

    def _run_in_session(self, operation: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            return operation(session)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Store operation failed: %s", exc)
            raise StoreError(str(exc)) from exc
        finally:
            session.close()


__all__ = ["SqlStore"]
