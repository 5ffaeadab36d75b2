"""Preset snapshot SDK — best-effort client for the Preset API."""

from preset_sdk.auth import AuthState, Session
from preset_sdk.client import PresetClient
from preset_sdk.errors import (
    ApiError,
    AuthFailedError,
    BadRequestError,
    ConfigError,
    NotFoundError,
    PresetError,
    ServerError,
    ShapeError,
    UnauthorizedError,
)

__version__ = "1.0.0"

__all__ = [
    "PresetClient",
    "Session",
    "AuthState",
    "PresetError",
    "ConfigError",
    "AuthFailedError",
    "ShapeError",
    "ApiError",
    "BadRequestError",
    "UnauthorizedError",
    "NotFoundError",
    "ServerError",
]
