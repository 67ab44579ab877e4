"""
Tests for the arbor CLI.

Runs arbor.cli.main in-process against a temporary project directory.
"""

import json
from pathlib import Path

import pytest

from arbor.cli import main
from arbor.core.logging_config import reset_logging


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    assert main(["--project-root", str(tmp_path), "init"]) == 0
    return tmp_path


def run_json(capsys, *argv):
    capsys.readouterr()
    code = main(list(argv))
    return code, json.loads(capsys.readouterr().out)


class TestInit:
    """Test arbor init."""

    def test_creates_layout(self, project):
        assert (project / ".arbor" / "graph.db").exists()
        assert (project / ".arbor" / "config.yaml").exists()

    def test_refuses_existing_db(self, project, capsys):
        assert main(["--project-root", str(project), "init"]) == 1
        assert "--reset" in capsys.readouterr().out

    def test_reset_recreates(self, project, capsys):
        root = str(project)
        main(["--project-root", root, "call", "arbor_seed",
              '{"nodes": [{"id": "f1", "nodeType": "file", "feature": "f1"}]}'])

        assert main(["--project-root", root, "init", "--reset"]) == 0

        code, stats = run_json(capsys, "--project-root", root, "status", "--json")
        assert code == 0
        assert stats["node_count"] == 1

    def test_project_root_after_subcommand(self, tmp_path, capsys):
        assert main(["init", "--project-root", str(tmp_path)]) == 0
        assert (tmp_path / ".arbor" / "graph.db").exists()

        code, stats = run_json(capsys, "status", "--json", "--project-root", str(tmp_path))
        assert code == 0
        assert stats["project_root"] == str(tmp_path.resolve())

    def test_subcommand_option_overrides_global(self, tmp_path):
        other = tmp_path / "other"
        assert main(["--project-root", str(tmp_path), "init", "--project-root", str(other)]) == 0
        assert (other / ".arbor" / "graph.db").exists()
        assert not (tmp_path / ".arbor").exists()

    def test_db_path_from_environment(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("ARBOR_DB_PATH", "custom/g.db")

        assert main(["--project-root", str(tmp_path), "init"]) == 0
        assert (tmp_path / "custom" / "g.db").exists()
        assert not (tmp_path / ".arbor" / "graph.db").exists()

        code, stats = run_json(capsys, "--project-root", str(tmp_path), "status", "--json")
        assert code == 0
        assert stats["db_path"] == str(tmp_path.resolve() / "custom" / "g.db")


class TestStatus:
    """Test arbor status."""

    def test_json(self, project, capsys):
        code, stats = run_json(capsys, "--project-root", str(project), "status", "--json")

        assert code == 0
        assert stats["node_count"] == 1
        assert stats["project_root"] == str(project.resolve())

    def test_text(self, project, capsys):
        capsys.readouterr()
        assert main(["--project-root", str(project), "status"]) == 0
        out = capsys.readouterr().out
        assert "nodes=1 edges=0" in out
        assert "[functional_area] 1" in out

    def test_missing_db(self, tmp_path, capsys):
        assert main(["--project-root", str(tmp_path), "status"]) == 1
        assert "arbor init" in capsys.readouterr().out


class TestCall:
    """Test arbor call."""

    def test_seed_then_search(self, project, capsys):
        root = str(project)
        code, seeded = run_json(capsys, "--project-root", root, "call", "arbor_seed",
                                '{"nodes": [{"id": "f1", "nodeType": "file", "feature": "parser"}]}')
        assert code == 0
        assert seeded == {"created": 1, "updated": 0}

        code, found = run_json(capsys, "--project-root", root, "call", "arbor_search", '{"query": "parser"}')
        assert code == 0
        assert found["results"][0]["nodeId"] == "f1"

    def test_invalid_payload(self, project, capsys):
        capsys.readouterr()
        assert main(["--project-root", str(project), "call", "arbor_fetch", "{}"]) == 1
        assert "arbor_fetch failed" in capsys.readouterr().out

    def test_bad_json(self, project, capsys):
        capsys.readouterr()
        assert main(["--project-root", str(project), "call", "arbor_seed", "{nodes"]) == 1
        assert "Invalid JSON" in capsys.readouterr().out

    @pytest.mark.parametrize("payload", ["[1]", "\"text\"", "null"])
    def test_payload_must_be_object(self, project, capsys, payload):
        capsys.readouterr()
        assert main(["--project-root", str(project), "call", "arbor_seed", payload]) == 1
        assert "expected an object" in capsys.readouterr().out

    def test_compound_writes_document(self, project, capsys):
        code, result = run_json(capsys, "--project-root", str(project), "call", "arbor_compound",
                                '{"type": "pitfall", "title": "JWT Expiration Trap", "content": "x"}')
        assert code == 0
        assert Path(result["filePath"]).parent == (project / "docs" / "solutions").resolve()


class TestNoCommand:
    def test_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()
