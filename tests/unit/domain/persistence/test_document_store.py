"""Tests for FileDocumentStore and InMemoryDocumentStore."""

from pathlib import Path

import pytest

from docwf.domain.errors import MissingFile
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import Selection
from docwf.domain.parsing.potential_tasks import apply_potential_task_selections, find_potential_task_blocks
from docwf.domain.persistence.document_store import FileDocumentStore, InMemoryDocumentStore


class TestFileDocumentStore:
    def test_read_missing_raises(self, tmp_path: Path) -> None:
        store = FileDocumentStore(tmp_path)
        with pytest.raises(MissingFile) as exc_info:
            store.read(DocumentName.TASKS)
        assert exc_info.value.name == "Tasks.md"
        assert isinstance(exc_info.value, FileNotFoundError)

    def test_write_then_read(self, tmp_path: Path) -> None:
        store = FileDocumentStore(tmp_path / "docs")
        store.write(DocumentName.LOG, "# Log\n\n11:48am\n")
        assert store.exists(DocumentName.LOG)
        assert store.read(DocumentName.LOG) == "# Log\n\n11:48am\n"
        assert (tmp_path / "docs" / "Log.md").read_bytes() == b"# Log\n\n11:48am\n"

    def test_crlf_document_keeps_line_endings(self, tmp_path: Path) -> None:
        log = (
            "## 2024-01-15\r\n"
            "\r\n"
            "11:48am - MCP server\r\n"
            "<!-- AI: potential-tasks start -->\r\n"
            "- [ ] Add retry to client\r\n"
            "- [ ] Document the protocol\r\n"
            "<!-- AI: potential-tasks end -->\r\n"
        )
        (tmp_path / "Log.md").write_bytes(log.encode("utf-8"))
        store = FileDocumentStore(tmp_path)

        content = store.read(DocumentName.LOG)
        assert "\r" not in content
        proposals = find_potential_task_blocks(content)
        first = proposals.actionable_tasks[0]
        update = apply_potential_task_selections(
            content, proposals, [Selection(entity_id=first.id, action="reject")]
        )
        store.write(DocumentName.LOG, update.content)

        expected = log.replace("- [ ] Add retry to client", "- [ ] ~~Add retry to client~~")
        assert (tmp_path / "Log.md").read_bytes() == expected.encode("utf-8")

    def test_write_leaves_no_temp_file(self, tmp_path: Path) -> None:
        store = FileDocumentStore(tmp_path)
        store.write(DocumentName.TASKS, "one")
        store.write(DocumentName.TASKS, "two")
        assert store.read(DocumentName.TASKS) == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["Tasks.md"]


class TestInMemoryDocumentStore:
    def test_round_trip_and_missing(self) -> None:
        store = InMemoryDocumentStore({DocumentName.TASKS: "# Tasks\n"})
        store.write(DocumentName.ARCHIVE, "# Archive\n")
        assert store.read(DocumentName.ARCHIVE) == "# Archive\n"
        assert not store.exists(DocumentName.LOG)
        with pytest.raises(MissingFile):
            store.read(DocumentName.LOG)


@pytest.mark.parametrize(
    "file_name,expected",
    [
        ("Log.md", DocumentName.LOG),
        ("b/docs/Tasks.md", DocumentName.TASKS),
        ("roadmap", DocumentName.ROADMAP),
        ("OVERVIEW.MD", DocumentName.OVERVIEW),
        ("notes.txt", None),
    ],
)
def test_document_name_from_file_name(file_name, expected) -> None:
    assert DocumentName.from_file_name(file_name) == expected
