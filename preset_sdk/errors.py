"""Structured exceptions for the Preset snapshot SDK."""

from __future__ import annotations

from typing import Any, Optional


class PresetError(Exception):
    """Base exception for all snapshot fetch errors."""


class ConfigError(PresetError):
    """Required credentials or settings are missing."""


class AuthFailedError(PresetError):
    """No bearer token or session cookie could be obtained."""


class ShapeError(PresetError):
    """Response body did not contain a recognizable record array."""


class ApiError(PresetError):
    """Non-2xx response from the Preset API."""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        endpoint: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {message}")


class BadRequestError(ApiError):
    """400 Bad Request, usually a rejected field-naming scheme."""
    pass


class UnauthorizedError(ApiError):
    """401/403: token or cookie rejected."""
    pass


class NotFoundError(ApiError):
    """404 Not Found: candidate endpoint does not exist."""
    pass


class ServerError(ApiError):
    """500+ server-side error."""
    pass
