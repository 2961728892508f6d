"""Status of a notification read model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SyncState:
    """Current status of a read model plus the failure reason, if any."""

    status: SyncStatus
    reason: str | None = None

    @classmethod
    def idle(cls) -> "SyncState":
        return cls(SyncStatus.IDLE)

    @classmethod
    def loading(cls) -> "SyncState":
        return cls(SyncStatus.LOADING)

    @classmethod
    def success(cls) -> "SyncState":
        return cls(SyncStatus.SUCCESS)

    @classmethod
    def error(cls, reason: str) -> "SyncState":
        return cls(SyncStatus.ERROR, reason)

    @property
    def is_error(self) -> bool:
        return self.status is SyncStatus.ERROR


__all__ = ["SyncState", "SyncStatus"]
