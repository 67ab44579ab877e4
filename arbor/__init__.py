"""
Arbor - a tree that remembers your codebase.

Persistent, queryable graph of a codebase's structure (files, classes,
functions) and accumulated operational knowledge (solutions, patterns,
pitfalls), backed by SQLite with an FTS5 full-text index.
"""

__version__ = "0.1.0"

from arbor.graph.models import (  # noqa: E402
    Direction,
    Edge,
    EdgeCategory,
    EdgeType,
    Level,
    Node,
    NodeFilter,
    NodeType,
    SearchMode,
)
from arbor.storage.graph_db import GraphStore  # noqa: E402

__all__ = [
    "__version__",
    "Direction",
    "Edge",
    "EdgeCategory",
    "EdgeType",
    "GraphStore",
    "Level",
    "Node",
    "NodeFilter",
    "NodeType",
    "SearchMode",
]
