"""Store adapter contract and the change feed shared by every backend.

A store keeps JSON-like records at two-level paths (``<collection>/<key>``)
and lets callers subscribe to equality queries over a collection. The
subscription semantics mirror a hosted real-time database: on attach the
subscriber first receives ``on_child_added`` for every existing match and
then an ``on_snapshot`` with the full result; afterwards every committed
write affecting the query yields ``on_child_added`` (when a record starts
matching) and a fresh ``on_snapshot``.

Callbacks are always scheduled on the event loop with ``call_soon`` and are
dropped once the owning :class:`SubscriptionHandle` is closed.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

Record = dict[str, Any]
SnapshotCallback = Callable[[list[Record]], None]
ChildAddedCallback = Callable[[Record], None]
CancelledCallback = Callable[[Exception], None]


class StoreError(Exception):
    """Raised by store adapters when an operation cannot be completed."""


class SubscriptionCancelledError(StoreError):
    """The store revoked an active subscription."""


def split_path(path: str) -> tuple[str, str]:
    """Return the ``(collection, key)`` pair addressed by ``path``."""

    collection, separator, key = path.strip("/").rpartition("/")
    if not separator or not collection or not key or "/" in collection:
        raise StoreError(f"Invalid record path '{path}'")
    return collection, key


@dataclass(eq=False)
class _Listener:
    collection: str
    field: str
    value: Any
    on_snapshot: SnapshotCallback | None
    on_child_added: ChildAddedCallback | None
    on_cancelled: CancelledCallback | None
    active: bool = True

    def matches(self, record: Mapping[str, Any] | None) -> bool:
        return record is not None and record.get(self.field) == self.value


class SubscriptionHandle:
    """Owner-side handle of a live query subscription."""

    def __init__(self, store: "StoreAdapter", listener: _Listener) -> None:
        self._store = store
        self._listener = listener

    @property
    def active(self) -> bool:
        return self._listener.active

    def close(self) -> None:
        """Stop delivering events for this subscription. Idempotent."""

        self._store._remove_listener(self._listener)


class Query:
    """Equality query over a single collection."""

    def __init__(self, store: "StoreAdapter", collection: str, field: str, value: Any) -> None:
        self._store = store
        self.collection = collection
        self.field = field
        self.value = value

    async def get(self) -> list[Record]:
        """Return the records currently matching the query."""

        return await self._store._matching(self.collection, self.field, self.value)

    def subscribe(
        self,
        on_snapshot: SnapshotCallback | None = None,
        on_child_added: ChildAddedCallback | None = None,
        on_cancelled: CancelledCallback | None = None,
    ) -> SubscriptionHandle:
        """Attach callbacks to the query and return the owning handle."""

        listener = _Listener(
            collection=self.collection,
            field=self.field,
            value=self.value,
            on_snapshot=on_snapshot,
            on_child_added=on_child_added,
            on_cancelled=on_cancelled,
        )
        return self._store._add_listener(listener)


class StoreAdapter(ABC):
    """Key-addressable store with point writes and live equality queries.

    Backends implement the three storage primitives (:meth:`_read`,
    :meth:`_write` and :meth:`_scan`); the public operations, locking and
    event publication are handled here.
    """

    def __init__(self) -> None:
        self._listeners: list[_Listener] = []
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    @abstractmethod
    async def _read(self, path: str) -> Record | None:
        """Return the stored record at ``path`` or ``None``."""

    @abstractmethod
    async def _write(self, path: str, record: Record | None) -> None:
        """Store ``record`` at ``path``; ``None`` removes it."""

    @abstractmethod
    async def _scan(self, collection: str) -> list[Record]:
        """Return every record stored in ``collection``."""

    async def close(self) -> None:
        """Release backend resources."""

    async def get(self, path: str) -> Record | None:
        split_path(path)
        return copy.deepcopy(await self._read(path))

    async def list(self, collection: str) -> list[Record]:
        return copy.deepcopy(await self._scan(collection))

    async def put(self, path: str, record: Mapping[str, Any]) -> None:
        """Create or replace the record at ``path``."""

        collection, _ = split_path(path)
        async with self._lock:
            before = await self._read(path)
            after = copy.deepcopy(dict(record))
            await self._write(path, after)
            await self._publish(collection, before, after)

    async def patch(self, path: str, fields: Mapping[str, Any]) -> bool:
        """Update ``fields`` of an existing record.

        Returns ``False`` without writing anything when no record exists.
        """

        collection, _ = split_path(path)
        async with self._lock:
            before = await self._read(path)
            if before is None:
                return False
            after = {**copy.deepcopy(before), **copy.deepcopy(dict(fields))}
            await self._write(path, after)
            await self._publish(collection, before, after)
            return True

    async def delete(self, path: str) -> bool:
        """Remove the record at ``path``; ``False`` when it was already gone."""

        collection, _ = split_path(path)
        async with self._lock:
            before = await self._read(path)
            if before is None:
                return False
            await self._write(path, None)
            await self._publish(collection, before, None)
            return True

    def query_equals(self, collection: str, field: str, value: Any) -> Query:
        return Query(self, collection, field, value)

    def cancel_subscriptions(self, collection: str, reason: str) -> int:
        """Revoke every subscription on ``collection`` and notify its owner."""

        revoked = [listener for listener in self._listeners if listener.collection == collection]
        if not revoked:
            return 0
        loop = asyncio.get_running_loop()
        error = SubscriptionCancelledError(reason)
        for listener in revoked:
            self._remove_listener(listener)
            if listener.on_cancelled is not None:
                loop.call_soon(self._run_callback, listener.on_cancelled, error)
        logger.warning(
            "Revoked %d subscription(s) on '%s': %s", len(revoked), collection, reason
        )
        return len(revoked)

    def active_subscriptions(self, collection: str | None = None) -> int:
        return sum(
            1
            for listener in self._listeners
            if collection is None or listener.collection == collection
        )

    async def _matching(self, collection: str, field: str, value: Any) -> list[Record]:
        records = await self._scan(collection)
        return [copy.deepcopy(record) for record in records if record.get(field) == value]

    def _add_listener(self, listener: _Listener) -> SubscriptionHandle:
        loop = asyncio.get_running_loop()
        self._listeners.append(listener)
        task = loop.create_task(self._deliver_initial(listener))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return SubscriptionHandle(self, listener)

    def _remove_listener(self, listener: _Listener) -> None:
        listener.active = False
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _deliver_initial(self, listener: _Listener) -> None:
        try:
            async with self._lock:
                if not listener.active:
                    return
                records = await self._matching(
                    listener.collection, listener.field, listener.value
                )
                for record in records:
                    self._emit(listener, listener.on_child_added, record)
                self._emit(listener, listener.on_snapshot, records)
        except StoreError as exc:
            logger.error("Initial load for '%s' failed: %s", listener.collection, exc)
            self._remove_listener(listener)
            if listener.on_cancelled is not None:
                asyncio.get_running_loop().call_soon(
                    self._run_callback, listener.on_cancelled, exc
                )

    async def _publish(
        self, collection: str, before: Record | None, after: Record | None
    ) -> None:
        for listener in list(self._listeners):
            if listener.collection != collection:
                continue
            was_matching = listener.matches(before)
            is_matching = listener.matches(after)
            if not (was_matching or is_matching):
                continue
            if is_matching and not was_matching:
                self._emit(listener, listener.on_child_added, copy.deepcopy(after))
            if listener.on_snapshot is not None:
                records = await self._matching(
                    listener.collection, listener.field, listener.value
                )
                self._emit(listener, listener.on_snapshot, records)

    def _emit(self, listener: _Listener, callback: Callable[[Any], None] | None, payload: Any) -> None:
        if callback is None:
            return
        asyncio.get_running_loop().call_soon(self._dispatch, listener, callback, payload)

    def _dispatch(self, listener: _Listener, callback: Callable[[Any], None], payload: Any) -> None:
        if listener.active:
            self._run_callback(callback, payload)

    @staticmethod
    def _run_callback(callback: Callable[[Any], None], payload: Any) -> None:
        try:
            callback(payload)
        except Exception:  # pragma: no cover
            logger.exception("Subscription callback %r failed", callback)


__all__ = [
    "Query",
    "Record",
    "StoreAdapter",
    "StoreError",
    "SubscriptionCancelledError",
    "SubscriptionHandle",
    "split_path",
]
