"""
Request and result contracts for the Arbor tools.

Requests accept camelCase keys (the external wire form) as well as the
snake_case field names. Results dump to camelCase with
model_dump(by_alias=True).
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from arbor.graph.models import (
    BRANCH_NODE_TYPES,
    LEAF_NODE_TYPES,
    Direction,
    EdgeCategory,
    EdgeType,
    NodeFilter,
    NodeType,
    SearchMode,
)
from arbor.graph.traversal import DEFAULT_DEPTH, MAX_DEPTH

DEFAULT_MAX_RESULTS = 20

KnowledgeType = Literal["solution", "pattern", "pitfall"]
Severity = Literal["P1", "P2", "P3"]


class ToolModel(BaseModel):
    """Base for every request/result payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Seed
# =============================================================================

class SeedNode(ToolModel):
    id: str
    node_type: NodeType
    feature: str
    features: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    parent_id: Optional[str] = None

    @field_validator("node_type")
    def ensure_leaf_type(cls, v: NodeType) -> NodeType:
        if v not in LEAF_NODE_TYPES:
            raise ValueError(f"seed accepts leaf node types only, got '{v.value}'")
        return v


class SeedRequest(ToolModel):
    nodes: List[SeedNode] = Field(..., min_length=1)


class SeedResult(ToolModel):
    created: int = 0
    updated: int = 0


# =============================================================================
# Graft
# =============================================================================

class GraftBranch(ToolModel):
    id: str
    node_type: NodeType
    feature: str
    parent_id: Optional[str] = None

    @field_validator("node_type")
    def ensure_branch_type(cls, v: NodeType) -> NodeType:
        if v not in BRANCH_NODE_TYPES:
            raise ValueError(f"graft accepts branch node types only, got '{v.value}'")
        return v


class GraftEdge(ToolModel):
    source_id: str
    target_id: str
    edge_type: EdgeType
    category: EdgeCategory
    metadata: Dict[str, Any] = Field(default_factory=dict)


class GraftRequest(ToolModel):
    branches: List[GraftBranch] = Field(default_factory=list)
    edges: List[GraftEdge] = Field(default_factory=list)


class GraftResult(ToolModel):
    branches_created: int = 0
    branches_updated: int = 0
    edges_created: int = 0


# =============================================================================
# Uproot
# =============================================================================

class EdgeKey(ToolModel):
    source_id: str
    target_id: str
    edge_type: str


class UprootRequest(ToolModel):
    node_ids: List[str] = Field(default_factory=list)
    edge_keys: List[EdgeKey] = Field(default_factory=list)


class UprootResult(ToolModel):
    nodes_removed: int = 0
    edges_removed: int = 0
    orphans_pruned: int = 0


# =============================================================================
# Search
# =============================================================================

class SearchRequest(ToolModel):
    query: str = Field(..., min_length=1)
    mode: SearchMode = SearchMode.AUTO
    scope: List[str] = Field(default_factory=list)
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1, le=100)
    node_type_filter: List[NodeType] = Field(default_factory=list)


class SearchResultItem(ToolModel):
    node_id: str
    node_type: str
    feature: str
    feature_path: str
    score: float
    stale: bool = False


class SearchResult(ToolModel):
    results: List[SearchResultItem] = Field(default_factory=list)
    total_found: int = 0


# =============================================================================
# Fetch
# =============================================================================

class FetchRequest(ToolModel):
    node_ids: List[str] = Field(default_factory=list)
    feature_paths: List[str] = Field(default_factory=list)
    include_dependencies: bool = False
    filter: Optional[NodeFilter] = None

    @property
    def has_selector(self) -> bool:
        return bool(self.node_ids or self.feature_paths or self.filter is not None)


class FetchResultItem(ToolModel):
    node: Dict[str, Any]
    children: List[Dict[str, Any]] = Field(default_factory=list)
    dependencies: Optional[List[Dict[str, Any]]] = None
    stale: bool = False


class FetchResult(ToolModel):
    results: List[FetchResultItem] = Field(default_factory=list)


# =============================================================================
# Explore
# =============================================================================

class ExploreRequest(ToolModel):
    start_node_ids: List[str] = Field(..., min_length=1)
    direction: Direction
    depth: int = Field(default=DEFAULT_DEPTH, ge=1, le=MAX_DEPTH)
    node_type_filter: List[NodeType] = Field(default_factory=list)
    edge_type_filter: List[EdgeType] = Field(default_factory=list)
    edge_category_filter: List[EdgeCategory] = Field(default_factory=list)


class TraversalPath(ToolModel):
    node_ids: List[str]


class StaleWarningItem(ToolModel):
    node_id: str
    feature: str
    feature_path: str


class ExploreResult(ToolModel):
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    edges: List[Dict[str, Any]] = Field(default_factory=list)
    paths: List[TraversalPath] = Field(default_factory=list)
    stale_warnings: List[StaleWarningItem] = Field(default_factory=list)


# =============================================================================
# Compound
# =============================================================================

class CompoundRequest(ToolModel):
    type: KnowledgeType
    title: str = Field(..., min_length=1)
    content: str
    tags: List[str] = Field(default_factory=list)
    severity: Optional[Severity] = None
    related_node_ids: List[str] = Field(default_factory=list)
    parent_branch_id: Optional[str] = None


class CompoundResult(ToolModel):
    node_id: str
    file_path: Optional[str] = None
    edges_created: int = 0
