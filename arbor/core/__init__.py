"""Ambient support: configuration, exceptions and logging."""

from arbor.core.exceptions import (
    ArborError,
    DocumentWriteError,
    InvalidSelectorError,
    StorageError,
    UnknownToolError,
)

__all__ = [
    "ArborError",
    "DocumentWriteError",
    "InvalidSelectorError",
    "StorageError",
    "UnknownToolError",
]
