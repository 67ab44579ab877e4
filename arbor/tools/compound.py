"""
arbor_compound: record a piece of knowledge (solution, pattern, pitfall).

Steps:
1. Seed the knowledge leaf with a deterministic id derived from type + title
2. Graft documents/knowledge edges to each related node that exists
3. Write a markdown document for humans (best effort, after commit)

Steps 1-2 share one transaction. A failed document write leaves the graph
as committed and reports file_path=None.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Union

from arbor.core.config import load_project_config
from arbor.graph.models import EdgeCategory, EdgeType
from arbor.knowledge.writer import SolutionRecord, slugify, write_solution_file
from arbor.tools.graft import execute_graft
from arbor.tools.models import (
    CompoundRequest,
    CompoundResult,
    GraftEdge,
    GraftRequest,
    SeedNode,
    SeedRequest,
)
from arbor.tools.seed import execute_seed

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)

DocumentWriter = Callable[[Union[Path, str], SolutionRecord], Path]


def knowledge_node_id(knowledge_type: str, title: str) -> str:
    """Deterministic id: knowledge:<type>:<slug>."""
    return f"knowledge:{knowledge_type}:{slugify(title)}"


def write_project_document(project_root: Union[Path, str], record: SolutionRecord) -> Path:
    """Default writer: honours ARBOR_SOLUTIONS_DIR, then the project's configured solutions directory."""
    config = load_project_config(Path(project_root))
    return write_solution_file(project_root, record, solutions_dir=config.solutions_dir)


def execute_compound(
    store: "GraphStore",
    request: CompoundRequest,
    writer: DocumentWriter = write_project_document,
) -> CompoundResult:
    """
    Capture knowledge in the graph and, when a project root is known, on disk.

    Args:
        store: Graph store
        request: Validated compound request
        writer: Document writer, called as writer(project_root, record)

    Returns:
        CompoundResult with the node id, written file path (or None) and
        the number of knowledge edges created
    """
    node_id = knowledge_node_id(request.type, request.title)

    with store.transaction():
        execute_seed(store, SeedRequest(nodes=[SeedNode(
            id=node_id,
            node_type=request.type,
            feature=request.title,
            features=list(request.tags),
            metadata={"severity": request.severity, "content": request.content},
            parent_id=request.parent_branch_id,
        )]))

        edges = [
            GraftEdge(
                source_id=node_id,
                target_id=target_id,
                edge_type=EdgeType.DOCUMENTS,
                category=EdgeCategory.KNOWLEDGE,
            )
            for target_id in request.related_node_ids
            if store.get_node(target_id) is not None
        ]
        edges_created = execute_graft(store, GraftRequest(edges=edges)).edges_created if edges else 0

    result = CompoundResult(node_id=node_id, edges_created=edges_created)

    project_root = store.get_meta("project_root")
    if project_root:
        record = SolutionRecord(
            title=request.title,
            type=request.type,
            content=request.content,
            tags=list(request.tags),
            severity=request.severity,
        )
        try:
            result.file_path = str(writer(project_root, record))
        except Exception as e:
            logger.warning(f"[Compound] Document write failed for {node_id}: {e}")

    logger.info(f"[Compound] {node_id} edges={result.edges_created} file={result.file_path}")
    return result
