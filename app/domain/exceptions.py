"""Errors raised by the notification core."""


class NotificationError(Exception):
    """Base class for failures surfaced by notification operations."""


class StoreWriteError(NotificationError):
    """A create, update or delete could not be persisted."""


class StoreQueryError(NotificationError):
    """A query or live subscription failed or was cancelled by the store."""


class PresentationError(NotificationError):
    """A local alert could not be rendered. Never fatal."""


class AuthorizationError(NotificationError):
    """The acting user is not allowed to perform the operation."""


__all__ = [
    "NotificationError",
    "StoreWriteError",
    "StoreQueryError",
    "PresentationError",
    "AuthorizationError",
]
