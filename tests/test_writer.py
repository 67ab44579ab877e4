"""
Unit tests for knowledge documents.

Tests slugify and write_solution_file from arbor/knowledge/writer.py
"""

import pytest
import yaml

from arbor.core.exceptions import DocumentWriteError
from arbor.knowledge.writer import SolutionRecord, slugify, write_solution_file


class TestSlugify:
    """Test slug generation."""

    def test_simple_text(self):
        assert slugify("JWT Expiration Trap") == "jwt-expiration-trap"

    def test_special_characters(self):
        assert slugify("Hello! World@#$") == "hello-world"
        assert slugify("N+1 Query Fix") == "n1-query-fix"

    def test_collapses_runs_and_trims(self):
        assert slugify("  --Test   Multiple -- Spaces-- ") == "test-multiple-spaces"

    def test_keeps_non_ascii_letters(self):
        assert slugify("N+1 해결법") == "n1-해결법"


def read_frontmatter(path):
    text = path.read_text(encoding="utf-8")
    _, fm, body = text.split("---\n", 2)
    return yaml.safe_load(fm), body


class TestWriteSolutionFile:
    """Test document writing."""

    def test_writes_frontmatter_and_body(self, tmp_path):
        record = SolutionRecord(
            title="JWT Expiration Trap",
            type="pitfall",
            content="## Problem\n\nTokens outlive sessions.",
            tags=["security", "jwt"],
            severity="P2",
            date="2025-01-15",
        )

        path = write_solution_file(tmp_path, record)

        assert path == (tmp_path / "docs" / "solutions" / "2025-01-15-jwt-expiration-trap.md").resolve()
        frontmatter, body = read_frontmatter(path)
        assert frontmatter == {
            "title": "JWT Expiration Trap",
            "date": "2025-01-15",
            "tags": ["security", "jwt"],
            "category": "pitfalls",
            "severity": "P2",
            "status": "resolved",
        }
        assert body == "\n## Problem\n\nTokens outlive sessions.\n"

    @pytest.mark.parametrize("kind,category", [
        ("solution", "solutions"),
        ("pattern", "patterns"),
        ("pitfall", "pitfalls"),
    ])
    def test_category_by_type(self, tmp_path, kind, category):
        path = write_solution_file(tmp_path, SolutionRecord(title="T", type=kind, content="c"))
        frontmatter, _ = read_frontmatter(path)
        assert frontmatter["category"] == category
        assert frontmatter["severity"] is None

    def test_defaults_to_today(self, tmp_path):
        path = write_solution_file(tmp_path, SolutionRecord(title="Today", type="solution", content="c"))
        frontmatter, _ = read_frontmatter(path)
        assert path.name == f"{frontmatter['date']}-today.md"

    def test_custom_solutions_dir(self, tmp_path):
        path = write_solution_file(tmp_path, SolutionRecord(title="T", type="solution", content="c"), solutions_dir="kb")
        assert path.parent == (tmp_path / "kb").resolve()

    def test_unwritable_target_raises(self, tmp_path):
        blocker = tmp_path / "docs"
        blocker.write_text("not a directory")

        with pytest.raises(DocumentWriteError) as exc_info:
            write_solution_file(tmp_path, SolutionRecord(title="T", type="solution", content="c"))

        assert exc_info.value.path.endswith("-t.md")
