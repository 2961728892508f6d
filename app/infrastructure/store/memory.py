"""Dictionary backed store adapter."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from .base import Record, StoreAdapter, split_path


class MemoryStore(StoreAdapter):
    """Keep every record in process memory.

    ``records`` seeds the store with ``{path: record}`` entries before any
    subscription exists.
    """

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        super().__init__()
        self._records: dict[str, Record] = {}
        for path, record in (records or {}).items():
            collection, key = split_path(path)
            self._records[f"{collection}/{key}"] = copy.deepcopy(dict(record))

    async def _read(self, path: str) -> Record | None:
        collection, key = split_path(path)
        return self._records.get(f"{collection}/{key}")

    async def _write(self, path: str, record: Record | None) -> None:
        collection, key = split_path(path)
        normalized = f"{collection}/{key}"
        if record is None:
            self._records.pop(normalized, None)
        else:
            self._records[normalized] = record

    async def _scan(self, collection: str) -> list[Record]:
        prefix = f"{collection}/"
        return [
            record
            for path, record in self._records.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        ]


__all__ = ["MemoryStore"]
