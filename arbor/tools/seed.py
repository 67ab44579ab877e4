"""
arbor_seed: batch upsert of leaf nodes.

Each leaf is written with a freshly computed feature path and its growth
edge is brought in line with parent_id. Re-seeding always clears the stale
flag; the unplaced flag follows whether a parent was given.
"""

import logging
from typing import TYPE_CHECKING, Optional

from arbor.graph.models import EdgeType, Level, Node, ROOT_ID, growth_edge
from arbor.graph.paths import build_feature_path
from arbor.tools.models import SeedRequest, SeedResult

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)


def reconcile_growth_edge(
    store: "GraphStore",
    node_id: str,
    old_parent_id: Optional[str],
    new_parent_id: Optional[str],
) -> None:
    """
    Keep exactly one growth edge matching parent_id.

    The edge from a former parent is removed when the parent changed
    (including a move to no parent). The edge from the new parent is
    (re)written whenever there is one.
    """
    if old_parent_id and old_parent_id != new_parent_id:
        store.delete_edge(old_parent_id, node_id, EdgeType.CONTAINS)
    if new_parent_id:
        store.upsert_edge(growth_edge(new_parent_id, node_id))


def execute_seed(store: "GraphStore", request: SeedRequest) -> SeedResult:
    """
    Upsert a batch of leaf nodes in one transaction.

    Args:
        store: Graph store
        request: Validated seed request

    Returns:
        SeedResult with created/updated counts
    """
    result = SeedResult()

    with store.transaction():
        for record in request.nodes:
            if record.id == ROOT_ID:
                logger.debug("[Seed] Skipping protected root id")
                continue

            existing = store.get_node(record.id)
            parent_id = record.parent_id or None
            metadata = dict(record.metadata)
            # Node lifts reserved keys out of metadata; they are reset below
            node = Node(
                id=record.id,
                level=Level.LEAF,
                node_type=record.node_type,
                feature=record.feature,
                features=list(record.features),
                metadata=metadata,
                parent_id=parent_id,
                feature_path=build_feature_path(store, parent_id, record.feature),
                created_at=existing.created_at if existing else None,
            )
            node.stale = False
            node.unplaced = parent_id is None
            store.upsert_node(node)

            reconcile_growth_edge(
                store,
                record.id,
                existing.parent_id if existing else None,
                parent_id,
            )

            if existing:
                result.updated += 1
            else:
                result.created += 1

    logger.info(f"[Seed] created={result.created} updated={result.updated}")
    return result
