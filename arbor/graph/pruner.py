"""
Orphan pruning.

Removing a leaf can leave its chain of organisational branches empty. The
pruner walks upward from a deletion point and removes branches that no longer
contain anything, never touching leaves or the root.
"""

import logging
from typing import TYPE_CHECKING, Optional

from arbor.graph.models import Level, ROOT_ID

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)

MAX_DEPTH = 20


def prune_orphans(store: "GraphStore", start_id: Optional[str]) -> int:
    """
    Delete empty branch ancestors starting at start_id.

    Args:
        store: Graph store (caller owns the transaction)
        start_id: First node to consider, usually the parent of a deleted node

    Returns:
        Number of branch nodes deleted
    """
    pruned = 0
    current_id = start_id

    for _ in range(MAX_DEPTH):
        if not current_id or current_id == ROOT_ID:
            break

        node = store.get_node(current_id)
        if node is None or node.level is Level.LEAF:
            break
        if store.get_children(current_id):
            break

        store.delete_node(current_id)
        pruned += 1
        logger.debug(f"[Pruner] Removed empty branch {current_id}")
        current_id = node.parent_id

    return pruned
