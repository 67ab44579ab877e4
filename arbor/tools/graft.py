"""
arbor_graft: batch upsert of branch nodes plus free-form edges.

Growth edges are derived from parent_id only, so growth-category edge records
are ignored here. Linking a node through any other edge marks it as placed.
"""

import logging
from typing import TYPE_CHECKING

from arbor.graph.models import Edge, EdgeCategory, Level, Node, ROOT_ID
from arbor.graph.paths import build_feature_path
from arbor.tools.models import GraftRequest, GraftResult
from arbor.tools.seed import reconcile_growth_edge

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)


def execute_graft(store: "GraphStore", request: GraftRequest) -> GraftResult:
    """
    Upsert branches and edges in one transaction.

    A failing record (for example an edge whose endpoint does not exist)
    rolls back the whole call and raises StorageError.

    Args:
        store: Graph store
        request: Validated graft request

    Returns:
        GraftResult with branch and edge counts
    """
    result = GraftResult()

    with store.transaction():
        for branch in request.branches:
            if branch.id == ROOT_ID:
                logger.debug("[Graft] Skipping protected root id")
                continue

            existing = store.get_node(branch.id)
            parent_id = branch.parent_id or None
            node = Node(
                id=branch.id,
                level=Level.BRANCH,
                node_type=branch.node_type,
                feature=branch.feature,
                parent_id=parent_id,
                feature_path=build_feature_path(store, parent_id, branch.feature),
                created_at=existing.created_at if existing else None,
            )
            store.upsert_node(node)
            reconcile_growth_edge(store, branch.id, existing.parent_id if existing else None, parent_id)

            if existing:
                result.branches_updated += 1
            else:
                result.branches_created += 1

        for record in request.edges:
            if record.category is EdgeCategory.GROWTH:
                continue

            target = store.get_node(record.target_id)
            if target is not None and target.unplaced:
                target.unplaced = False
                store.upsert_node(target)

            store.upsert_edge(Edge(
                source_id=record.source_id,
                target_id=record.target_id,
                edge_type=record.edge_type,
                category=record.category,
                metadata=dict(record.metadata),
            ))
            result.edges_created += 1

    logger.info(
        f"[Graft] branches created={result.branches_created} "
        f"updated={result.branches_updated} edges={result.edges_created}"
    )
    return result
