"""Aggregate application use cases."""

from .users import UserSession, create_user, register_user

__all__ = [
    "UserSession",
    "create_user",
    "register_user",
]
