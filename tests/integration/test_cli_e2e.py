"""End-to-end CLI tests for ``docwf run``.

Runs workflows against planning documents in a temporary project directory,
verifying exit codes, JSON output and the files left on disk.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from docwf.domain.models.documents import DocumentName
from docwf.interface.cli.cli import cli

TITLE_RESPONSE = """```diff
--- a/Log.md
+++ b/Log.md
@@ -5,2 +5,2 @@
-11:48am
+11:48am - MCP Server
 Started the MCP server.
```
"""


@pytest.fixture
def project(tmp_path, project_documents) -> Path:
    """A project directory holding the planning documents at its root."""
    for name, text in project_documents.items():
        (tmp_path / name.value).write_text(text, encoding="utf-8")
    return tmp_path


def _run(project: Path, *args: str, input: str | None = None):
    runner = CliRunner()
    return runner.invoke(cli, ["--json", "--project-dir", str(project), "run", *args], input=input, obj={})


def test_run_with_response_file_and_yes(project):
    response = project / "titles.txt"
    response.write_text(TITLE_RESPONSE, encoding="utf-8")

    result = _run(project, "title-entries", "--response", str(response), "--yes")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["status"] == "applied"
    assert payload["written_files"] == ["Log.md"]
    assert "11:48am - MCP Server" in (project / "Log.md").read_text(encoding="utf-8")
    assert not list(project.glob("*.tmp"))


def test_manual_provider_exits_awaiting_response(project):
    result = _run(project, "title-entries")

    assert result.exit_code == 2
    payload = json.loads(result.stdout)
    assert payload["status"] == "awaiting_response"
    assert payload["step"] == "title-entries"
    assert payload["awaiting_instruction"]


def test_interactive_decline_exits_cancelled(project):
    response = project / "titles.txt"
    response.write_text(TITLE_RESPONSE, encoding="utf-8")
    before = (project / "Log.md").read_text(encoding="utf-8")

    result = _run(project, "title-entries", "--response", str(response), input="n\n")

    assert result.exit_code == 3
    assert json.loads(result.stdout)["status"] == "cancelled"
    assert (project / "Log.md").read_text(encoding="utf-8") == before


def test_combined_workflow_with_step_responses(project):
    archive = project / "archive.json"
    archive.write_text(json.dumps({"groups": [], "standaloneTasks": []}), encoding="utf-8")
    promote = project / "promote.json"
    promote.write_text(
        json.dumps({"status": "success", "selectedTask": {"text": "Add caching", "sourceSection": "next"}}),
        encoding="utf-8",
    )

    result = _run(
        project,
        "tasks-maintenance",
        "--step-response",
        f"archive-completed={archive}",
        "--step-response",
        f"promote-next-task={promote}",
        "--yes",
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["status"] == "completed"
    assert payload["messages"][-1] == "Completed Tasks: Maintenance: 2 steps completed, 1 skipped"
    assert "Write parser" in (project / DocumentName.ARCHIVE.value).read_text(encoding="utf-8")


def test_missing_document_exits_error(tmp_path):
    result = _run(tmp_path, "archive-completed")

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["status"] == "failed"
    assert "Tasks.md" in payload["error"]


def test_docs_dir_from_project_config(tmp_path, project_documents):
    docs = tmp_path / "docs" / "project"
    docs.mkdir(parents=True)
    for name, text in project_documents.items():
        (docs / name.value).write_text(text, encoding="utf-8")
    (tmp_path / ".docwf").mkdir()
    (tmp_path / ".docwf" / "config.yml").write_text("docs_dir: docs/project\n", encoding="utf-8")

    result = _run(tmp_path, "title-entries")

    assert result.exit_code == 2
    assert json.loads(result.stdout)["step"] == "title-entries"


def test_malformed_config_exits_error(tmp_path):
    (tmp_path / ".docwf").mkdir()
    (tmp_path / ".docwf" / "config.yml").write_text("provider: [unclosed\n", encoding="utf-8")

    result = _run(tmp_path, "title-entries")

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"].startswith("Malformed YAML")


def test_events_go_to_stderr(project):
    runner = CliRunner()
    result = runner.invoke(cli, ["--events", "--project-dir", str(project), "run", "title-entries"], obj={})

    assert result.exit_code == 2
    assert "[EVENT] workflow_started workflow=title-entries" in result.stderr
    assert "[EVENT]" not in result.stdout
