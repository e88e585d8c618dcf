"""Shared errors and settings."""

from ._config import Settings, settings
from ._exceptions import CorruptionError, DataError, InvalidInputError

__all__ = ["Settings", "settings", "CorruptionError", "DataError", "InvalidInputError"]
