"""arbor_uproot: batch deletion of nodes and edges, followed by orphan pruning."""

import logging
from typing import TYPE_CHECKING, List, Optional

from arbor.graph.pruner import prune_orphans
from arbor.tools.models import UprootRequest, UprootResult

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)


def execute_uproot(store: "GraphStore", request: UprootRequest) -> UprootResult:
    """
    Delete nodes and edges in one transaction.

    Missing ids and edge keys are skipped. The root node is never deleted.
    The pruner runs once per parent of a deleted node, after all deletions.
    """
    result = UprootResult()

    with store.transaction():
        parent_ids: List[Optional[str]] = []

        for node_id in request.node_ids:
            node = store.get_node(node_id)
            if node is None or node.is_root:
                continue

            parent_ids.append(node.parent_id)
            # Touching edges cascade
            store.delete_node(node_id)
            result.nodes_removed += 1

        for key in request.edge_keys:
            if store.delete_edge(key.source_id, key.target_id, key.edge_type):
                result.edges_removed += 1

        for parent_id in parent_ids:
            result.orphans_pruned += prune_orphans(store, parent_id)

    logger.info(
        f"[Uproot] nodes={result.nodes_removed} edges={result.edges_removed} "
        f"pruned={result.orphans_pruned}"
    )
    return result
