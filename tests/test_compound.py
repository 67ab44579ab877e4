"""
Unit tests for knowledge capture.

Tests execute_compound from arbor/tools/compound.py
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from arbor.core.config import ArborConfig
from arbor.core.exceptions import DocumentWriteError
from arbor.graph.models import EdgeCategory, NodeType
from arbor.storage.graph_db import GraphStore
from arbor.tools.compound import execute_compound, knowledge_node_id
from arbor.tools.models import CompoundRequest


def compound(store, writer=None, **payload):
    request = CompoundRequest.model_validate(payload)
    if writer is None:
        return execute_compound(store, request)
    return execute_compound(store, request, writer=writer)


def failing_writer(project_root, record):
    raise DocumentWriteError("disk full", path=str(project_root))


class TestCompound:
    """Test the graph side of knowledge capture."""

    def test_node_id_is_deterministic(self):
        assert knowledge_node_id("solution", "N+1 Query Fix") == "knowledge:solution:n1-query-fix"

    def test_seeds_knowledge_leaf(self, tree):
        result = compound(
            tree,
            type="pitfall",
            title="JWT Expiration Trap",
            content="Tokens outlive sessions.",
            tags=["security", "jwt"],
            severity="P2",
            parentBranchId="authentication",
        )

        assert result.node_id == "knowledge:pitfall:jwt-expiration-trap"
        node = tree.get_node(result.node_id)
        assert node.node_type is NodeType.PITFALL
        assert node.features == ["security", "jwt"]
        assert node.metadata == {"severity": "P2", "content": "Tokens outlive sessions."}
        assert node.parent_id == "authentication"
        assert node.feature_path == "Security/Authentication/JWT Expiration Trap"

    def test_documents_edges_skip_missing_targets(self, tree):
        result = compound(
            tree,
            type="solution",
            title="Rotate keys",
            content="...",
            relatedNodeIds=["src/auth/jwt.py", "ghost"],
        )

        assert result.edges_created == 1
        edges = tree.get_edges_by_source(result.node_id, EdgeCategory.KNOWLEDGE)
        assert [(e.target_id, e.edge_type.value) for e in edges] == [("src/auth/jwt.py", "documents")]

    def test_recompound_updates_in_place(self, tree):
        compound(tree, type="pattern", title="Retry", content="v1")
        compound(tree, type="pattern", title="Retry", content="v2")

        node = tree.get_node("knowledge:pattern:retry")
        assert node.metadata["content"] == "v2"


class TestCompoundDocuments:
    """Test the document side of knowledge capture."""

    def test_writes_document_under_project_root(self, store, tmp_path):
        result = compound(store, type="pitfall", title="JWT Expiration Trap", content="## Problem", tags=["jwt"])

        path = Path(result.file_path)
        assert path.exists()
        assert path.parent == (tmp_path / "docs" / "solutions").resolve()
        assert path.name.endswith("-jwt-expiration-trap.md")

    def test_honours_configured_solutions_dir(self, store, tmp_path):
        ArborConfig(solutions_dir="kb").save(tmp_path)

        result = compound(store, type="solution", title="Cache", content="x")

        assert Path(result.file_path).parent == (tmp_path / "kb").resolve()

    def test_solutions_dir_from_environment(self, store, tmp_path, monkeypatch):
        ArborConfig(solutions_dir="kb").save(tmp_path)
        monkeypatch.setenv("ARBOR_SOLUTIONS_DIR", "notes")

        result = compound(store, type="pattern", title="Retry", content="x")

        assert Path(result.file_path).parent == (tmp_path / "notes").resolve()

    def test_writer_failure_keeps_graph_state(self, tree):
        result = compound(
            tree,
            writer=failing_writer,
            type="solution",
            title="Rotate keys",
            content="...",
            relatedNodeIds=["src/auth/jwt.py"],
        )

        assert result.file_path is None
        assert tree.get_node(result.node_id) is not None
        assert result.edges_created == 1

    def test_no_project_root_no_document(self, tmp_path):
        calls = []

        def recording_writer(project_root, record):
            calls.append(record)
            return tmp_path / "never.md"

        with GraphStore(tmp_path / "bare.db") as bare:
            result = compound(bare, writer=recording_writer, type="solution", title="X", content="y")

        assert result.file_path is None
        assert calls == []


class TestCompoundValidation:
    """Test request validation."""

    @pytest.mark.parametrize("payload", [
        {"type": "file", "title": "x", "content": "y"},
        {"type": "solution", "title": "", "content": "y"},
        {"type": "solution", "title": "x", "content": "y", "severity": "P4"},
    ])
    def test_rejects_bad_payloads(self, payload):
        with pytest.raises(ValidationError):
            CompoundRequest.model_validate(payload)
