"""Pydantic models describing user directory payloads."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UserProfileUpdate(BaseModel):
    """Profile data a user registers for themselves."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=120)


class UserCreate(UserProfileUpdate):
    """User created by an administrator."""

    uid: str = Field(..., min_length=1, max_length=128)
    admin: bool = False


class DeviceTokenUpdate(BaseModel):
    """Push channel registered by the user's device."""

    token: str = Field(..., min_length=1, max_length=4096)


class UserRead(BaseModel):
    uid: str
    email: str
    name: str
    admin: bool
    device_token: str | None = None


__all__ = ["DeviceTokenUpdate", "UserCreate", "UserProfileUpdate", "UserRead"]
