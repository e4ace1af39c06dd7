"""HTTP API for scenario predictions."""

from .server import create_app

__all__ = ["create_app"]
