"""
SkyChecker Exceptions

Exception hierarchy shared by the core package and the services.

Conditions with no astronomical solution (no sunset at the pole, no rise
tonight) are reported as None, never as exceptions. Exceptions are reserved
for bad input, unusable provider responses and cancelled planning cycles.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SkyCheckerError",
    "ConfigurationError",
    "InvalidCoordinatesError",
    "ProviderError",
    "ProviderUnavailableError",
    "CycleSupersededError",
]


class SkyCheckerError(Exception):
    """Base class for all SkyChecker errors."""


class ConfigurationError(SkyCheckerError):
    """Configuration file is missing, unreadable or fails validation."""


class InvalidCoordinatesError(SkyCheckerError, ValueError):
    """Observer coordinates are non-numeric or out of range."""


class ProviderError(SkyCheckerError):
    """A remote data provider returned an unusable response.

    Attributes:
        provider: Short provider name ("horizons", "iss", "open-meteo")
        object_id: Catalog object the request was for, if any
        status: HTTP status code, if the failure came from one
    """

    def __init__(
        self,
        message: str,
        provider: str = "",
        object_id: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.object_id = object_id
        self.status = status


class ProviderUnavailableError(ProviderError):
    """Transient provider failure that persisted through every retry."""


class CycleSupersededError(SkyCheckerError):
    """A newer planning cycle replaced this one before it could merge."""
