"""arbor_explore: graph traversal from one or more start nodes."""

from typing import TYPE_CHECKING

from arbor.graph.traversal import TraversalOptions, traverse
from arbor.tools.models import ExploreRequest, ExploreResult

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore


def execute_explore(store: "GraphStore", request: ExploreRequest) -> ExploreResult:
    """Empty filter lists mean no filter (default categories for edge categories)."""
    options = TraversalOptions(
        direction=request.direction,
        max_depth=request.depth,
        node_type_filter=request.node_type_filter or None,
        edge_type_filter=request.edge_type_filter or None,
        edge_category_filter=request.edge_category_filter or None,
    )
    result = traverse(store, request.start_node_ids, options)
    return ExploreResult.model_validate(result.to_dict())
