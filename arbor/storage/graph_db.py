"""
Graph Store: SQLite-based node, edge and metadata storage.

Implements the persistence layer for Arbor with:
- Node storage (branch + leaf) with materialized feature paths
- Typed edges keyed by (source_id, target_id, edge_type)
- An FTS5 mirror of node text fields for full-text search
- Key/value graph metadata (schema version, project root)

ARCHITECTURAL PRINCIPLE:
    Every component above this module (tree mutation, traversal, search)
    goes through these primitives. Multi-step mutations run inside
    transaction() so they are never observed half-applied.

Usage:
    store = GraphStore(Path(".arbor/graph.db"))

    with store.transaction():
        store.upsert_node(node)
        store.upsert_edge(edge)

    node = store.get_node("src/auth.py")
    children = store.get_children("security")
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from arbor.core.exceptions import StorageError
from arbor.graph.models import (
    Edge,
    EdgeCategory,
    Level,
    Node,
    NodeFilter,
    ROOT_ID,
    UNPLACED_KEY,
    root_node,
)
from arbor.storage.schema import SCHEMA_VERSION, create_tables

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _like_prefix(prefix: str) -> str:
    """LIKE pattern matching values that start with prefix literally."""
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


# =============================================================================
# Graph Store
# =============================================================================

class GraphStore:
    """
    Persistent store for the Arbor graph.

    One SQLite connection per instance, opened in autocommit mode so that
    transaction() owns BEGIN/COMMIT. Nested transaction() scopes become
    savepoints inside the outer transaction.
    """

    def __init__(self, db_path: Union[Path, str] = MEMORY_DB):
        """
        Open (and if needed create) the graph database.

        Args:
            db_path: Path to the SQLite file, or ":memory:"
        """
        self.db_path = db_path
        self._tx_depth = 0
        self._conn = self._connect()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if str(self.db_path) != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        # WAL: single writer, concurrent readers
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_db(self):
        """Initialize the schema and the root sentinel."""
        with self.transaction():
            create_tables(self._conn)
            if self.get_node(ROOT_ID) is None:
                self.upsert_node(root_node())
                logger.debug("[GraphStore] Created root node")

        logger.debug(f"[GraphStore] Initialized at {self.db_path}")

    # =========================================================================
    # Transaction
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator["GraphStore"]:
        """
        All-or-nothing scope.

        Any exception rolls the scope back and propagates; sqlite3 errors are
        re-raised as StorageError.
        """
        savepoint = f"arbor_sp_{self._tx_depth}" if self._tx_depth else None
        if savepoint:
            self._conn.execute(f"SAVEPOINT {savepoint}")
        else:
            self._conn.execute("BEGIN IMMEDIATE")
        self._tx_depth += 1

        try:
            yield self
        except BaseException as e:
            self._tx_depth -= 1
            self._rollback(savepoint)
            if isinstance(e, sqlite3.Error):
                raise StorageError(f"Transaction rolled back: {e}", {"db_path": str(self.db_path)}) from e
            raise
        else:
            self._tx_depth -= 1
            if savepoint:
                self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            else:
                self._conn.execute("COMMIT")

    def _rollback(self, savepoint: Optional[str]):
        if savepoint:
            self._conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
            self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
        else:
            self._conn.execute("ROLLBACK")
        logger.debug(f"[GraphStore] Rolled back {savepoint or 'transaction'}")

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    # =========================================================================
    # Node Operations
    # =========================================================================

    def get_node(self, node_id: str) -> Optional[Node]:
        row = self._conn.execute("SELECT * FROM nodes WHERE id = ?", (node_id,)).fetchone()
        if row:
            return self._row_to_node(row)
        return None

    def get_nodes(self, node_ids: List[str]) -> List[Node]:
        """Batch lookup. Missing ids are simply absent from the result."""
        if not node_ids:
            return []
        placeholders = ",".join("?" for _ in node_ids)
        cursor = self._conn.execute(
            f"SELECT * FROM nodes WHERE id IN ({placeholders})",
            list(node_ids),
        )
        return [self._row_to_node(row) for row in cursor]

    def upsert_node(self, node: Node) -> None:
        """
        Insert or update a node in place.

        The row is updated rather than replaced, so edges touching it survive
        and created_at keeps its first-write value.
        """
        now = _now()
        created_at = node.created_at.isoformat() if node.created_at else now
        self._conn.execute("""
            INSERT INTO nodes
            (id, level, node_type, feature, features, metadata,
             parent_id, feature_path, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                level = excluded.level,
                node_type = excluded.node_type,
                feature = excluded.feature,
                features = excluded.features,
                metadata = excluded.metadata,
                parent_id = excluded.parent_id,
                feature_path = excluded.feature_path,
                updated_at = excluded.updated_at
        """, (
            node.id,
            node.level.value,
            node.node_type.value,
            node.feature,
            json.dumps(node.features),
            json.dumps(node.stored_metadata()),
            node.parent_id,
            node.feature_path,
            created_at,
            now,
        ))

    def delete_node(self, node_id: str) -> bool:
        """
        Delete a node.

        Touching edges cascade. Children keep living with parent_id NULL, and
        leaf children are flagged unplaced.
        """
        with self.transaction():
            self._conn.execute("""
                UPDATE nodes
                SET metadata = json_set(COALESCE(metadata, '{}'), ?, json('true')),
                    updated_at = ?
                WHERE parent_id = ? AND level = ?
            """, (f"$.{UNPLACED_KEY}", _now(), node_id, Level.LEAF.value))
            cursor = self._conn.execute("DELETE FROM nodes WHERE id = ?", (node_id,))
        return cursor.rowcount > 0

    def get_children(self, parent_id: str) -> List[Node]:
        cursor = self._conn.execute("SELECT * FROM nodes WHERE parent_id = ?", (parent_id,))
        return [self._row_to_node(row) for row in cursor]

    def get_nodes_by_feature_path_prefix(self, prefix: str) -> List[Node]:
        cursor = self._conn.execute(
            "SELECT * FROM nodes WHERE feature_path LIKE ? ESCAPE '\\'",
            (_like_prefix(prefix),)
        )
        return [self._row_to_node(row) for row in cursor]

    def get_nodes_by_filter(self, node_filter: NodeFilter) -> List[Node]:
        """
        Select nodes by a named metadata predicate.

        UNPLACED: leaf nodes with no parent
        STALE: nodes whose stale flag is set
        """
        node_filter = NodeFilter(node_filter)
        if node_filter is NodeFilter.UNPLACED:
            cursor = self._conn.execute(
                "SELECT * FROM nodes WHERE parent_id IS NULL AND level = ?",
                (Level.LEAF.value,)
            )
        elif node_filter is NodeFilter.STALE:
            cursor = self._conn.execute(
                "SELECT * FROM nodes WHERE json_extract(metadata, '$.stale') = 1"
            )
        else:
            raise ValueError(f"Unhandled node filter: {node_filter}")
        return [self._row_to_node(row) for row in cursor]

    def mark_stale(self, node_ids: Iterable[str], stale: bool = True) -> int:
        """
        Set or clear the stale flag on existing nodes.

        Used by external ingestion callers when source has changed under a
        recorded node. Re-seeding clears the flag again.

        Returns:
            Number of nodes updated
        """
        updated = 0
        with self.transaction():
            for node_id in node_ids:
                node = self.get_node(node_id)
                if node is None:
                    continue
                node.stale = stale
                self.upsert_node(node)
                updated += 1

        logger.debug(f"[GraphStore] Marked {updated} node(s) stale={stale}")
        return updated

    def _row_to_node(self, row: sqlite3.Row) -> Node:
        """Convert a database row to a Node."""
        return Node(
            id=row["id"],
            level=row["level"],
            node_type=row["node_type"],
            feature=row["feature"],
            features=json.loads(row["features"]) if row["features"] else [],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            parent_id=row["parent_id"],
            feature_path=row["feature_path"] or "",
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )

    # =========================================================================
    # Edge Operations
    # =========================================================================

    def get_edge(self, source_id: str, target_id: str, edge_type: str) -> Optional[Edge]:
        row = self._conn.execute("""
            SELECT * FROM edges
            WHERE source_id = ? AND target_id = ? AND edge_type = ?
        """, (source_id, target_id, _value(edge_type))).fetchone()
        if row:
            return self._row_to_edge(row)
        return None

    def upsert_edge(self, edge: Edge) -> None:
        """Insert or update an edge. Both endpoints must exist."""
        self._conn.execute("""
            INSERT INTO edges (source_id, target_id, edge_type, category, metadata)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(source_id, target_id, edge_type) DO UPDATE SET
                category = excluded.category,
                metadata = excluded.metadata
        """, (
            edge.source_id,
            edge.target_id,
            edge.edge_type.value,
            edge.category.value,
            json.dumps(edge.metadata),
        ))

    def delete_edge(self, source_id: str, target_id: str, edge_type: str) -> bool:
        cursor = self._conn.execute("""
            DELETE FROM edges
            WHERE source_id = ? AND target_id = ? AND edge_type = ?
        """, (source_id, target_id, _value(edge_type)))
        return cursor.rowcount > 0

    def get_edges_by_source(
        self,
        source_id: str,
        category: Optional[EdgeCategory] = None
    ) -> List[Edge]:
        """Outgoing edges of a node, optionally restricted to one category."""
        if category:
            cursor = self._conn.execute(
                "SELECT * FROM edges WHERE source_id = ? AND category = ?",
                (source_id, _value(category))
            )
        else:
            cursor = self._conn.execute("SELECT * FROM edges WHERE source_id = ?", (source_id,))
        return [self._row_to_edge(row) for row in cursor]

    def get_edges_by_target(
        self,
        target_id: str,
        category: Optional[EdgeCategory] = None
    ) -> List[Edge]:
        """Incoming edges of a node, optionally restricted to one category."""
        if category:
            cursor = self._conn.execute(
                "SELECT * FROM edges WHERE target_id = ? AND category = ?",
                (target_id, _value(category))
            )
        else:
            cursor = self._conn.execute("SELECT * FROM edges WHERE target_id = ?", (target_id,))
        return [self._row_to_edge(row) for row in cursor]

    def _row_to_edge(self, row: sqlite3.Row) -> Edge:
        """Convert a database row to an Edge."""
        return Edge(
            source_id=row["source_id"],
            target_id=row["target_id"],
            edge_type=row["edge_type"],
            category=row["category"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        )

    # =========================================================================
    # Full-Text Search
    # =========================================================================

    def search_nodes(
        self,
        fts_query: str,
        node_types: Optional[List[str]] = None,
        scope_prefix: Optional[str] = None,
        limit: int = 20
    ) -> List[Tuple[Node, float]]:
        """
        Run an FTS5 MATCH query against the node mirror.

        Args:
            fts_query: A well-formed FTS5 query string
            node_types: Optional node_type restriction
            scope_prefix: Optional feature_path prefix restriction
            limit: Maximum number of rows

        Returns:
            (node, score) pairs, best first. Score is |bm25|, higher is better.
        """
        sql = """
            SELECT n.*, nodes_fts.rank AS score
            FROM nodes_fts
            JOIN nodes n ON n.rowid = nodes_fts.rowid
            WHERE nodes_fts MATCH ?
        """
        params: List[Any] = [fts_query]

        if node_types:
            placeholders = ",".join("?" for _ in node_types)
            sql += f" AND n.node_type IN ({placeholders})"
            params.extend(_value(t) for t in node_types)

        if scope_prefix:
            sql += " AND n.feature_path LIKE ? ESCAPE '\\'"
            params.append(_like_prefix(scope_prefix))

        sql += " ORDER BY nodes_fts.rank LIMIT ?"
        params.append(limit)

        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as e:
            raise StorageError(f"Full-text query failed: {e}", {"query": fts_query}) from e

        return [(self._row_to_node(row), abs(row["score"])) for row in rows]

    # =========================================================================
    # Graph Meta
    # =========================================================================

    def get_meta(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM graph_meta WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_meta(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO graph_meta (key, value) VALUES (?, ?)",
            (key, value)
        )

    # =========================================================================
    # Statistics and Lifecycle
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        """Get graph statistics."""
        conn = self._conn

        node_count = conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0]
        edge_count = conn.execute("SELECT COUNT(*) FROM edges").fetchone()[0]

        cursor = conn.execute("""
            SELECT node_type, COUNT(*) AS count
            FROM nodes
            GROUP BY node_type
            ORDER BY count DESC
        """)
        node_types = {row["node_type"]: row["count"] for row in cursor}

        cursor = conn.execute("""
            SELECT category, COUNT(*) AS count
            FROM edges
            GROUP BY category
            ORDER BY count DESC
        """)
        edge_categories = {row["category"]: row["count"] for row in cursor}

        return {
            "node_count": node_count,
            "edge_count": edge_count,
            "node_types": node_types,
            "edge_categories": edge_categories,
            "unplaced_count": len(self.get_nodes_by_filter(NodeFilter.UNPLACED)),
            "stale_count": len(self.get_nodes_by_filter(NodeFilter.STALE)),
            "project_root": self.get_meta("project_root"),
            "db_path": str(self.db_path),
            "schema_version": int(self.get_meta("schema_version") or SCHEMA_VERSION),
        }

    def close(self):
        self._conn.close()
        logger.debug(f"[GraphStore] Closed {self.db_path}")

    def __enter__(self) -> "GraphStore":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _value(kind: Any) -> str:
    """Enum member or plain string -> stored string."""
    return getattr(kind, "value", kind)
