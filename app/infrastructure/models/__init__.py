"""ORM models used by the application infrastructure."""

from .store_record import StoreRecordModel

__all__ = ["StoreRecordModel"]
