"""
Traversal Engine: bounded breadth-first walks over the edge graph.

Growth (containment) edges are excluded unless asked for; the default walk
follows root (structural) and knowledge (documentation) edges.

The node-type filter only decides which visited nodes are collected. The walk
still passes through filtered-out nodes, so a search for pitfalls reachable
through intermediate files returns the pitfalls without the files.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Optional, Sequence, Set, Tuple

from arbor.graph.models import Direction, Edge, EdgeCategory, Node

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)

MAX_DEPTH = 10
DEFAULT_DEPTH = 3
DEFAULT_IMPACT_DEPTH = 2
DEFAULT_CATEGORIES = (EdgeCategory.ROOT, EdgeCategory.KNOWLEDGE)


@dataclass
class TraversalOptions:
    direction: Direction = Direction.BOTH
    max_depth: int = DEFAULT_DEPTH
    edge_type_filter: Optional[Sequence[str]] = None
    node_type_filter: Optional[Sequence[str]] = None
    edge_category_filter: Optional[Sequence[str]] = None


@dataclass
class StaleWarning:
    node_id: str
    feature: str
    feature_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "feature": self.feature,
            "featurePath": self.feature_path,
        }


@dataclass
class TraversalResult:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    paths: List[List[str]] = field(default_factory=list)
    stale_warnings: List[StaleWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "paths": [{"nodeIds": list(p)} for p in self.paths],
            "staleWarnings": [w.to_dict() for w in self.stale_warnings],
        }


def _values(kinds: Optional[Sequence[Any]]) -> Optional[Set[str]]:
    if kinds is None:
        return None
    return {getattr(k, "value", k) for k in kinds}


def _neighbor_edges(
    store: "GraphStore",
    node_id: str,
    direction: Direction,
    categories: Sequence[EdgeCategory],
) -> List[Edge]:
    """Edges incident to node_id in the walk direction, per category."""
    edges: List[Edge] = []

    if direction in (Direction.DOWNSTREAM, Direction.BOTH):
        for category in categories:
            edges.extend(store.get_edges_by_source(node_id, category))

    if direction in (Direction.UPSTREAM, Direction.BOTH):
        for category in categories:
            edges.extend(store.get_edges_by_target(node_id, category))

    return edges


def _check_stale(node: Node, warnings: List[StaleWarning]) -> None:
    if node.stale:
        warnings.append(StaleWarning(
            node_id=node.id,
            feature=node.feature,
            feature_path=node.feature_path,
        ))


def traverse(
    store: "GraphStore",
    start_ids: Sequence[str],
    options: Optional[TraversalOptions] = None,
) -> TraversalResult:
    """
    Breadth-first walk from start_ids.

    Args:
        store: Graph store to read from
        start_ids: Starting node ids; ids that don't resolve are dropped
        options: Direction, depth and filters

    Returns:
        TraversalResult with collected nodes, distinct edges, discovery paths
        and stale warnings
    """
    options = options or TraversalOptions()
    direction = Direction(options.direction)
    max_depth = min(options.max_depth, MAX_DEPTH)
    categories = [EdgeCategory(c) for c in (options.edge_category_filter or DEFAULT_CATEGORIES)]
    edge_types = _values(options.edge_type_filter)
    node_types = _values(options.node_type_filter)

    result = TraversalResult()
    visited: Set[str] = set()
    seen_edges: Set[tuple] = set()
    queue: Deque[Tuple[str, List[str], int]] = deque()

    for start_id in start_ids:
        if start_id in visited:
            continue
        node = store.get_node(start_id)
        if node is None:
            continue
        visited.add(start_id)
        result.nodes.append(node)
        _check_stale(node, result.stale_warnings)
        queue.append((start_id, [start_id], 0))

    while queue:
        current_id, path, depth = queue.popleft()
        if depth >= max_depth:
            continue

        for edge in _neighbor_edges(store, current_id, direction, categories):
            if edge_types is not None and edge.edge_type.value not in edge_types:
                continue

            if edge.key not in seen_edges:
                seen_edges.add(edge.key)
                result.edges.append(edge)

            neighbor_id = edge.target_id if edge.source_id == current_id else edge.source_id
            if neighbor_id in visited:
                continue
            visited.add(neighbor_id)

            neighbor = store.get_node(neighbor_id)
            if neighbor is None:
                continue

            new_path = path + [neighbor_id]
            queue.append((neighbor_id, new_path, depth + 1))

            if node_types is not None and neighbor.node_type.value not in node_types:
                continue

            result.nodes.append(neighbor)
            _check_stale(neighbor, result.stale_warnings)
            result.paths.append(new_path)

    logger.debug(
        f"[Traversal] {len(start_ids)} start(s), {direction.value} depth {max_depth}: "
        f"{len(result.nodes)} nodes, {len(result.edges)} edges"
    )
    return result


def get_impact_radius(
    store: "GraphStore",
    node_ids: Sequence[str],
    max_depth: int = DEFAULT_IMPACT_DEPTH,
) -> TraversalResult:
    """Both-direction neighbourhood over structural and knowledge edges."""
    return traverse(store, node_ids, TraversalOptions(
        direction=Direction.BOTH,
        max_depth=max_depth,
        edge_category_filter=DEFAULT_CATEGORIES,
    ))
