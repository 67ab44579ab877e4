"""
Arbor Storage - SQLite persistence for the graph.

Contains:
- GraphStore: node/edge/meta storage with an FTS5 mirror and transactions
- schema: table, trigger and index definitions
"""

from arbor.storage.graph_db import GraphStore

__all__ = [
    "GraphStore",
]
