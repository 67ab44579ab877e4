"""arbor_fetch: read nodes by id, feature path prefix and/or metadata filter."""

import logging
from typing import TYPE_CHECKING, Dict

from arbor.core.exceptions import InvalidSelectorError
from arbor.graph.models import EdgeCategory, Node
from arbor.tools.models import FetchRequest, FetchResult, FetchResultItem

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)


def execute_fetch(store: "GraphStore", request: FetchRequest) -> FetchResult:
    """
    Resolve the selectors and return each matched node with its children.

    A filter on its own selects every flagged node. Combined with ids or
    paths it narrows that selection. Dependencies are the one-hop root
    edges in both directions and are only read when requested.

    Raises:
        InvalidSelectorError: If no ids, paths or filter were given
    """
    if not request.has_selector:
        raise InvalidSelectorError("At least one of nodeIds, featurePaths, or filter must be provided")

    selected: Dict[str, Node] = {}

    if request.node_ids:
        found = {node.id: node for node in store.get_nodes(request.node_ids)}
        for node_id in request.node_ids:
            if node_id in found:
                selected[node_id] = found[node_id]

    for prefix in request.feature_paths:
        for node in store.get_nodes_by_feature_path_prefix(prefix):
            selected.setdefault(node.id, node)

    if request.filter is not None:
        flagged = store.get_nodes_by_filter(request.filter)
        if request.node_ids or request.feature_paths:
            flagged_ids = {node.id for node in flagged}
            selected = {k: v for k, v in selected.items() if k in flagged_ids}
        else:
            selected = {node.id: node for node in flagged}

    result = FetchResult()
    for node in selected.values():
        item = FetchResultItem(
            node=node.to_dict(),
            children=[child.to_dict() for child in store.get_children(node.id)],
            stale=node.stale,
        )
        if request.include_dependencies:
            outgoing = store.get_edges_by_source(node.id, EdgeCategory.ROOT)
            incoming = store.get_edges_by_target(node.id, EdgeCategory.ROOT)
            item.dependencies = [edge.to_dict() for edge in outgoing + incoming]
        result.results.append(item)

    logger.debug(f"[Fetch] {len(result.results)} node(s)")
    return result
