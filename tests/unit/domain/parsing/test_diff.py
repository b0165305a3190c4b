import pytest

from docwf.domain.errors import DiffApplyError
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import Selection
from docwf.domain.parsing.diff import (
    apply_diff,
    apply_file_diff_selections,
    contains_diff_blocks,
    extract_diff_blocks,
    parse_diff,
    parse_file_diff_response,
    strip_diff_blocks,
)

LOG = "## 2024-01-15\n\n11:48am\nStarted server.\n\n2:00pm\nWrote docs.\n"


def _diff(header: str, *body: str, file_name: str = "Log.md") -> str:
    return "\n".join([f"--- a/{file_name}", f"+++ b/{file_name}", header, *body])


def _fenced(diff_text: str) -> str:
    return f"```diff\n{diff_text}\n```"


TITLE_DIFF = _diff("@@ -3,2 +3,2 @@", "-11:48am", "+11:48am - MCP server", " Started server.")


class TestParse:
    def test_parse_diff(self):
        diff = parse_diff(TITLE_DIFF)
        assert diff.file_name == "Log.md"
        assert diff.document == DocumentName.LOG
        assert (diff.additions, diff.deletions) == (1, 1)
        hunk = diff.hunks[0]
        assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (3, 2, 3, 2)

    def test_missing_file_header(self):
        assert parse_diff("@@ -1 +1 @@\n-a\n+b") is None

    def test_extract_and_strip_blocks(self):
        text = f"Here you go:\n{_fenced(TITLE_DIFF)}\nDone."
        assert contains_diff_blocks(text)
        blocks = extract_diff_blocks(text)
        assert [b.id for b in blocks] == ["diff-0"]
        assert blocks[0].file_name == "Log.md"
        assert strip_diff_blocks(text) == "Here you go:\n\nDone."

    def test_response_without_diffs(self):
        proposals = parse_file_diff_response("Nothing to change.")
        assert not proposals.success
        assert proposals.error == "No diff blocks found in response"

    def test_response_filters_documents(self):
        text = _fenced(TITLE_DIFF) + "\n" + _fenced(_diff("@@ -1 +1 @@", "-a", "+b", file_name="Tasks.md"))
        proposals = parse_file_diff_response(text, allowed_documents=[DocumentName.LOG])
        assert [d.document for d in proposals.diffs] == [DocumentName.LOG]

    def test_unknown_file_falls_back_to_default(self):
        text = _fenced(_diff("@@ -1 +1 @@", "-a", "+b", file_name="notes.txt"))
        proposals = parse_file_diff_response(text, default_document=DocumentName.TASKS)
        assert proposals.diffs[0].document == DocumentName.TASKS
        assert not parse_file_diff_response(text).success


class TestApply:
    def test_exact_pattern(self):
        result = apply_diff(LOG, parse_diff(TITLE_DIFF))
        assert result == "## 2024-01-15\n\n11:48am - MCP server\nStarted server.\n\n2:00pm\nWrote docs.\n"

    def test_pattern_found_away_from_line_hint(self):
        drifted = TITLE_DIFF.replace("@@ -3,2 +3,2 @@", "@@ -40,2 +40,2 @@")
        assert "11:48am - MCP server\nStarted server.\n" in apply_diff(LOG, parse_diff(drifted))

    def test_anchor_with_changed_timestamp_line(self):
        log = LOG.replace("11:48am\n", "11:48am - Old title\n")
        diff = _diff("@@ -3,2 +3,2 @@", "-11:48am", "+11:48am - New title", " Started server.")
        result = apply_diff(log, parse_diff(diff))
        assert "11:48am - New title\nStarted server.\n\n2:00pm" in result
        assert result.count("Started server.") == 1
        assert "Old title" not in result

    def test_pure_insertion_at_line_hint(self):
        diff = _diff("@@ -2,0 +2,1 @@", "+inserted")
        assert apply_diff("a\nb\nc", parse_diff(diff)) == "a\ninserted\nb\nc"

    def test_unplaceable_hunk_raises(self):
        diff = _diff("@@ -500,1 +500,1 @@", "-Nowhere to be found", "+x")
        with pytest.raises(DiffApplyError, match="Nowhere to be found"):
            apply_diff("a\nb\n", parse_diff(diff))

    def test_selections(self):
        documents = {DocumentName.LOG: LOG, DocumentName.TASKS: "a\nb\n"}
        good = parse_diff(TITLE_DIFF, "diff-0")
        bad = parse_diff(_diff("@@ -500,1 +500,1 @@", "-missing", "+x", file_name="Tasks.md"), "diff-1")
        skipped = parse_diff(_diff("@@ -1,1 +1,1 @@", "-a", "+z", file_name="Tasks.md"), "diff-2")
        selections = [
            Selection(entity_id="diff-0", action="accept"),
            Selection(entity_id="diff-1", action="accept"),
            Selection(entity_id="diff-2", action="reject"),
        ]
        result = apply_file_diff_selections(documents, [good, bad, skipped], selections)
        assert list(result.updated) == [DocumentName.LOG]
        assert "11:48am - MCP server" in result.updated[DocumentName.LOG]
        assert len(result.failures) == 1
        assert result.failures[0].startswith("Tasks.md:")

    def test_missing_document_is_a_failure(self):
        result = apply_file_diff_selections({}, [parse_diff(TITLE_DIFF)], [Selection(entity_id="diff-0", action="accept")])
        assert result.updated == {}
        assert result.failures == ["Log.md: document not loaded"]
