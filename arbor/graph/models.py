"""
Graph data model: node and edge records plus the closed kind enumerations.

Nodes form a tree (branch nodes organise, leaf nodes record facts) overlaid
with a typed edge graph. The tree is encoded twice: as parent_id on the child
and as a growth/contains edge from parent to child. The Tree Mutator keeps
both in step.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

ROOT_ID = "root"

# Reserved metadata keys managed by the system
STALE_KEY = "stale"
UNPLACED_KEY = "unplaced"


# =============================================================================
# Enums
# =============================================================================

class Level(str, Enum):
    """Position of a node in the organisational tree."""

    BRANCH = "branch"
    LEAF = "leaf"


class NodeType(str, Enum):
    """Node kinds, partitioned by level."""

    # branch types (functional area -> category -> subcategory)
    FUNCTIONAL_AREA = "functional_area"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    # leaf types (code)
    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    # leaf types (knowledge)
    SOLUTION = "solution"
    PATTERN = "pattern"
    PITFALL = "pitfall"

    @property
    def level(self) -> Level:
        if self in (NodeType.FUNCTIONAL_AREA, NodeType.CATEGORY, NodeType.SUBCATEGORY):
            return Level.BRANCH
        return Level.LEAF

    @property
    def is_knowledge(self) -> bool:
        return self in (NodeType.SOLUTION, NodeType.PATTERN, NodeType.PITFALL)


BRANCH_NODE_TYPES = frozenset(t for t in NodeType if t.level is Level.BRANCH)
LEAF_NODE_TYPES = frozenset(t for t in NodeType if t.level is Level.LEAF)


class EdgeType(str, Enum):
    CONTAINS = "contains"
    COMPOSES = "composes"
    INVOKES = "invokes"
    IMPORTS = "imports"
    INHERITS = "inherits"
    DOCUMENTS = "documents"


class EdgeCategory(str, Enum):
    """
    Edge families.

    GROWTH: organisational containment, derived only from parent_id
    ROOT: structural code relations between leaves
    KNOWLEDGE: a knowledge leaf documenting another leaf
    """

    GROWTH = "growth"
    ROOT = "root"
    KNOWLEDGE = "knowledge"


class Direction(str, Enum):
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    BOTH = "both"


class SearchMode(str, Enum):
    FEATURES = "features"
    SNIPPETS = "snippets"
    AUTO = "auto"


class NodeFilter(str, Enum):
    """Named metadata predicates the store can select on."""

    UNPLACED = "unplaced"
    STALE = "stale"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Node:
    """
    A vertex in the tree-plus-graph structure.

    The reserved metadata flags are explicit fields; `metadata` holds only the
    caller's open keys. Storage folds the flags back into the metadata JSON.
    """
    id: str
    level: Level
    node_type: NodeType
    feature: str
    features: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    feature_path: str = ""
    stale: bool = False
    unplaced: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Coerce plain strings to enums and lift reserved keys out of metadata."""
        self.level = Level(self.level)
        self.node_type = NodeType(self.node_type)
        if self.features is None:
            self.features = []
        if self.metadata is None:
            self.metadata = {}
        else:
            self.metadata = dict(self.metadata)
        if STALE_KEY in self.metadata:
            self.stale = bool(self.metadata.pop(STALE_KEY))
        if UNPLACED_KEY in self.metadata:
            self.unplaced = bool(self.metadata.pop(UNPLACED_KEY))

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    def stored_metadata(self) -> Dict[str, Any]:
        """Metadata as persisted: open keys plus whichever flags are set."""
        data = dict(self.metadata)
        if self.stale:
            data[STALE_KEY] = True
        if self.unplaced:
            data[UNPLACED_KEY] = True
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level.value,
            "node_type": self.node_type.value,
            "feature": self.feature,
            "features": list(self.features),
            "metadata": self.stored_metadata(),
            "parent_id": self.parent_id,
            "feature_path": self.feature_path,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class Edge:
    """A directed, typed relation between two node ids."""
    source_id: str
    target_id: str
    edge_type: EdgeType
    category: EdgeCategory
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.edge_type = EdgeType(self.edge_type)
        self.category = EdgeCategory(self.category)
        if self.metadata is None:
            self.metadata = {}

    @property
    def key(self) -> tuple:
        """Identity key: at most one edge per type per ordered pair."""
        return (self.source_id, self.target_id, self.edge_type.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "edge_type": self.edge_type.value,
            "category": self.category.value,
            "metadata": dict(self.metadata),
        }


def growth_edge(parent_id: str, child_id: str) -> Edge:
    """The containment edge implied by child.parent_id == parent_id."""
    return Edge(
        source_id=parent_id,
        target_id=child_id,
        edge_type=EdgeType.CONTAINS,
        category=EdgeCategory.GROWTH,
    )


def root_node() -> Node:
    """The distinguished root sentinel."""
    return Node(
        id=ROOT_ID,
        level=Level.BRANCH,
        node_type=NodeType.FUNCTIONAL_AREA,
        feature="Root",
        parent_id=None,
        feature_path="",
    )
