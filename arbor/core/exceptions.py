"""Custom exceptions for Arbor."""

from typing import Any, Optional


class ArborError(Exception):
    """Base exception for Arbor."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StorageError(ArborError):
    """SQLite failure inside a transaction. The transaction has been rolled back."""

    pass


class InvalidSelectorError(ArborError):
    """A fetch request named no node ids, feature paths, or filter."""

    pass


class DocumentWriteError(ArborError):
    """Knowledge document could not be written."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.path = path


class UnknownToolError(ArborError):
    """Tool name not present in the dispatch registry."""

    def __init__(
        self,
        tool: str,
        context: Optional[dict[str, Any]] = None,
    ):
        message = f"Unknown tool: {tool}"
        super().__init__(message, context)
        self.tool = tool
