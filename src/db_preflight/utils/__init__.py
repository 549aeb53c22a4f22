"""Utility helpers for the pre-flight pipeline."""

from .version import ServerVersion, coerce_version

__all__ = [
    "ServerVersion",
    "coerce_version",
]
