"""Scenarist: probabilistic scenario predictions for market-moving events."""

__version__ = "0.1.0"
__author__ = "Scenarist Team"

__all__ = ["__version__", "__author__"]
