"""Shared fixtures: a fresh graph store and a small Security/Authentication tree."""

from pathlib import Path

import pytest

from arbor.core.config import get_settings
from arbor.storage.graph_db import GraphStore
from arbor.tools.graft import execute_graft
from arbor.tools.models import GraftRequest, SeedRequest
from arbor.tools.seed import execute_seed


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """No path overrides from the environment; settings are re-read per test."""
    for name in ("ARBOR_DB_PATH", "ARBOR_SOLUTIONS_DIR"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path: Path):
    """GraphStore on a temporary file, with project_root pointing at tmp_path."""
    graph = GraphStore(tmp_path / ".arbor" / "graph.db")
    with graph.transaction():
        graph.set_meta("project_root", str(tmp_path))
    yield graph
    graph.close()


@pytest.fixture
def tree(store: GraphStore) -> GraphStore:
    """
    root
    └── security            (functional_area)
        └── authentication  (category)
            ├── src/auth/login.py   (file)
            └── src/auth/jwt.py     (file)
    plus login.py -[imports]-> jwt.py
    """
    execute_graft(store, GraftRequest.model_validate({
        "branches": [
            {"id": "security", "nodeType": "functional_area", "feature": "Security", "parentId": "root"},
            {"id": "authentication", "nodeType": "category", "feature": "Authentication", "parentId": "security"},
        ],
    }))
    execute_seed(store, SeedRequest.model_validate({
        "nodes": [
            {
                "id": "src/auth/login.py",
                "nodeType": "file",
                "feature": "login",
                "features": ["validates user credentials", "issues session"],
                "parentId": "authentication",
            },
            {
                "id": "src/auth/jwt.py",
                "nodeType": "file",
                "feature": "jwt",
                "features": ["signs and verifies tokens"],
                "parentId": "authentication",
            },
        ],
    }))
    execute_graft(store, GraftRequest.model_validate({
        "edges": [
            {"sourceId": "src/auth/login.py", "targetId": "src/auth/jwt.py", "edgeType": "imports", "category": "root"},
        ],
    }))
    return store
