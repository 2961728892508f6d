"""User directory use cases."""

from .register_user import create_user, register_device_token, register_user
from .session import UserSession

__all__ = ["UserSession", "create_user", "register_device_token", "register_user"]
