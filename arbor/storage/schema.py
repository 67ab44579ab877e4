"""
Graph database schema.

Schema Overview:
    nodes       - Tree-plus-graph vertices (branch and leaf)
    nodes_fts   - FTS5 external-content mirror of nodes(id, feature, features, feature_path)
    edges       - Typed edges keyed by (source_id, target_id, edge_type)
    graph_meta  - Key/value metadata (schema_version, project_root)

The FTS mirror is maintained only by the triggers below; nothing else writes it.
"""

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def create_tables(conn: sqlite3.Connection) -> None:
    """Create all tables, triggers and indexes (idempotent)."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS nodes (
            id TEXT PRIMARY KEY,
            level TEXT NOT NULL CHECK (level IN ('branch', 'leaf')),
            node_type TEXT NOT NULL,
            feature TEXT NOT NULL,
            features TEXT NOT NULL DEFAULT '[]',
            metadata TEXT NOT NULL DEFAULT '{}',
            parent_id TEXT REFERENCES nodes(id) ON DELETE SET NULL,
            feature_path TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE VIRTUAL TABLE IF NOT EXISTS nodes_fts USING fts5(
            id, feature, features, feature_path,
            content='nodes', content_rowid='rowid'
        )
    """)

    conn.execute("""
        CREATE TRIGGER IF NOT EXISTS nodes_fts_insert AFTER INSERT ON nodes BEGIN
            INSERT INTO nodes_fts(rowid, id, feature, features, feature_path)
            VALUES (new.rowid, new.id, new.feature, new.features, new.feature_path);
        END
    """)
    conn.execute("""
        CREATE TRIGGER IF NOT EXISTS nodes_fts_update AFTER UPDATE ON nodes BEGIN
            INSERT INTO nodes_fts(nodes_fts, rowid, id, feature, features, feature_path)
            VALUES ('delete', old.rowid, old.id, old.feature, old.features, old.feature_path);
            INSERT INTO nodes_fts(rowid, id, feature, features, feature_path)
            VALUES (new.rowid, new.id, new.feature, new.features, new.feature_path);
        END
    """)
    conn.execute("""
        CREATE TRIGGER IF NOT EXISTS nodes_fts_delete AFTER DELETE ON nodes BEGIN
            INSERT INTO nodes_fts(nodes_fts, rowid, id, feature, features, feature_path)
            VALUES ('delete', old.rowid, old.id, old.feature, old.features, old.feature_path);
        END
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS edges (
            source_id TEXT NOT NULL REFERENCES nodes(id) ON DELETE CASCADE,
            target_id TEXT NOT NULL REFERENCES nodes(id) ON DELETE CASCADE,
            edge_type TEXT NOT NULL,
            category TEXT NOT NULL CHECK (category IN ('growth', 'root', 'knowledge')),
            metadata TEXT NOT NULL DEFAULT '{}',
            PRIMARY KEY (source_id, target_id, edge_type)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS graph_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    # Indexes for fast queries
    conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_type ON nodes(node_type)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes(parent_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_feature_path ON nodes(feature_path)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_source ON edges(source_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_target ON edges(target_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_category ON edges(category)")

    conn.execute(
        "INSERT OR IGNORE INTO graph_meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),)
    )
