"""
Unit tests for full-text search.

Tests sanitize_fts_query, build_fts_query and execute_search from
arbor/tools/search.py
"""

import pytest
from pydantic import ValidationError

from arbor.graph.models import SearchMode
from arbor.tools.models import SearchRequest, SeedRequest
from arbor.tools.search import build_fts_query, execute_search, sanitize_fts_query
from arbor.tools.seed import execute_seed


def search(store, **payload):
    return execute_search(store, SearchRequest.model_validate(payload))


class TestSanitize:
    """Test query sanitization."""

    def test_tokens_are_quoted(self):
        assert sanitize_fts_query("user login") == '"user" "login"'

    def test_special_characters_removed(self):
        assert sanitize_fts_query('N+1 "query" (fix)*') == '"N" "1" "query" "fix"'
        assert sanitize_fts_query("col:value ^start {a} -not") == '"col" "value" "start" "a" "not"'

    def test_typographic_quotes_removed(self):
        assert sanitize_fts_query("“smart” quotes") == '"smart" "quotes"'

    def test_nothing_left(self):
        assert sanitize_fts_query('  "*()" :^ {} +- ') == ""
        assert sanitize_fts_query("   ") == ""


class TestBuildQuery:
    """Test mode composition."""

    def test_modes(self):
        assert build_fts_query('"a" "b"', SearchMode.FEATURES) == '{feature feature_path} : ("a" "b")'
        assert build_fts_query('"a"', SearchMode.SNIPPETS) == '{features} : ("a")'
        assert build_fts_query('"a"', SearchMode.AUTO) == '"a"'

    def test_empty(self):
        assert build_fts_query("", SearchMode.FEATURES) == ""


class TestExecuteSearch:
    """Test searches against a populated graph."""

    def test_special_only_query_returns_nothing(self, tree):
        result = search(tree, query="*** ((( )))")
        assert result.results == []
        assert result.total_found == 0

    def test_auto_mode_matches_descriptors(self, tree):
        result = search(tree, query="credentials")
        assert [r.node_id for r in result.results] == ["src/auth/login.py"]
        assert result.results[0].score > 0
        assert result.results[0].feature_path == "Security/Authentication/login"

    def test_features_mode_ignores_descriptors(self, tree):
        assert search(tree, query="credentials", mode="features").total_found == 0
        assert search(tree, query="login", mode="features").total_found == 1

    def test_snippets_mode_only_descriptors(self, tree):
        assert search(tree, query="tokens", mode="snippets").results[0].node_id == "src/auth/jwt.py"
        assert search(tree, query="Authentication", mode="snippets").total_found == 0

    def test_node_type_filter(self, tree):
        result = search(tree, query="Authentication", mode="features", nodeTypeFilter=["category"])
        assert [r.node_id for r in result.results] == ["authentication"]

    def test_overlapping_scopes_deduplicate(self, tree):
        result = search(
            tree,
            query="Authentication",
            mode="features",
            scope=["Security", "Security/Authentication"],
        )

        node_ids = [r.node_id for r in result.results]
        assert len(node_ids) == len(set(node_ids))
        assert set(node_ids) == {"authentication", "src/auth/login.py", "src/auth/jwt.py"}
        assert result.total_found == 3

    def test_scope_excludes_outside_nodes(self, tree):
        execute_seed(tree, SeedRequest.model_validate({
            "nodes": [{"id": "docs/login.md", "nodeType": "file", "feature": "login"}],
        }))

        assert search(tree, query="login", mode="features").total_found == 2
        scoped = search(tree, query="login", mode="features", scope=["Security"])
        assert [r.node_id for r in scoped.results] == ["src/auth/login.py"]

    def test_total_found_counts_before_cap(self, tree):
        result = search(
            tree,
            query="Security",
            mode="features",
            scope=["Security/Authentication/login", "Security/Authentication/jwt"],
            maxResults=1,
        )
        assert len(result.results) == 1
        assert result.total_found == 2

    def test_results_sorted_by_score(self, tree):
        scores = [r.score for r in search(tree, query="Security Authentication", mode="features").results]
        assert scores == sorted(scores, reverse=True)

    def test_stale_flag_reported(self, tree):
        tree.mark_stale(["src/auth/jwt.py"])
        result = search(tree, query="jwt", mode="features")
        assert result.results[0].stale is True


class TestSearchValidation:
    """Test request limits."""

    def test_max_results_bounds(self):
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"query": "x", "maxResults": 0})
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"query": "x", "maxResults": 101})
        assert SearchRequest.model_validate({"query": "x"}).max_results == 20

    def test_query_required(self):
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"query": ""})
