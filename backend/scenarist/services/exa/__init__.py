"""Exa AI service integration."""

from .client import ExaClient, hostname
from .config import ExaConfig
from .exceptions import (
    ExaAPIError,
    ExaAuthError,
    ExaBadRequestError,
    ExaRateLimitError,
    ExaServerError,
    ExaTimeoutError,
)

__all__ = [
    "ExaClient",
    "hostname",
    "ExaConfig",
    "ExaAPIError",
    "ExaAuthError",
    "ExaRateLimitError",
    "ExaBadRequestError",
    "ExaServerError",
    "ExaTimeoutError",
]
