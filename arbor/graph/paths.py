"""Materialized feature paths."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

SEPARATOR = "/"


def build_feature_path(store: "GraphStore", parent_id: Optional[str], feature: str) -> str:
    """
    Path of a node placed under parent_id.

    Computed from the parent's stored path at call time. Existing descendants
    are not refreshed when an ancestor is later renamed or moved.
    """
    if not parent_id:
        return feature

    parent = store.get_node(parent_id)
    if parent is None or not parent.feature_path:
        return feature

    return f"{parent.feature_path}{SEPARATOR}{feature}"
