"""Tests for the named markdown recognizers."""

import pytest

from docwf.domain.models.proposals import TaskSection
from docwf.domain.parsing.recognizers import (
    check_task_line,
    extract_task_text,
    format_slice_link,
    is_block_end,
    is_block_start,
    is_completed_work_heading,
    is_potential_tasks_heading,
    is_sub_item,
    is_titled_timestamp,
    match_completed_task,
    match_date_heading,
    match_heading,
    match_log_entry_header,
    match_slice_ref,
    match_strikethrough,
    match_task_line,
    match_task_section,
    match_unchecked_task,
    normalize_task_text,
    strike_task_line,
    strip_html_comments,
    strip_slice_refs,
)


class TestMarkerBlocks:
    def test_block_start_and_end(self):
        assert is_block_start("<!-- AI: potential-tasks start -->")
        assert is_block_start("  <!-- AI: potential-tasks start -->  ")
        assert is_block_end("<!-- AI: potential-tasks end -->")
        assert not is_block_start("<!-- AI: potential-tasks end -->")
        assert not is_block_end("<!-- some other comment -->")

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("#### Potential tasks (AI-generated)", True),
            ("### potential tasks", True),
            ("Potential tasks", False),
            ("#### Tasks", False),
        ],
    )
    def test_potential_tasks_heading(self, line, expected):
        assert is_potential_tasks_heading(line) is expected


class TestTaskLines:
    def test_match_task_line_unchecked_and_checked(self):
        assert match_task_line("- [ ] Write docs") == "Write docs"
        assert match_task_line("- [x] Ship it") == "Ship it"
        assert match_task_line("- [X] Ship it") == "Ship it"
        assert match_task_line("Write docs") is None

    def test_unchecked_vs_completed(self):
        assert match_unchecked_task("- [ ] Open task") == "Open task"
        assert match_unchecked_task("- [x] Done task") is None
        assert match_completed_task("- [x] Done task") == "Done task"
        assert match_completed_task("- [ ] Open task") is None

    def test_strikethrough(self):
        assert match_strikethrough("~~Old idea~~") == "Old idea"
        assert match_strikethrough("Old idea") is None

    def test_strike_task_line_keeps_checkbox(self):
        assert strike_task_line("- [ ] Add caching") == "- [ ] ~~Add caching~~"

    def test_strike_task_line_is_idempotent(self):
        once = strike_task_line("- [ ] Add caching")
        assert strike_task_line(once) == once

    def test_strike_non_task_line_unchanged(self):
        assert strike_task_line("plain text") == "plain text"

    def test_check_task_line(self):
        assert check_task_line("- [ ] Fix login") == "- [x] Fix login"
        assert check_task_line("  - [ ] Nested") == "  - [x] Nested"

    def test_sub_item(self):
        assert is_sub_item("  - detail")
        assert is_sub_item("    more detail")
        assert not is_sub_item("  - [ ] nested checkbox")
        assert not is_sub_item("- top level")

    def test_extract_task_text_drops_link_and_comment(self):
        line = "- [ ] Build parser [[Roadmap#VS1 — Parsing]] <!-- from Log.md -->"
        assert extract_task_text(line) == "Build parser"
        assert extract_task_text("- [ ] Plain") == "Plain"
        assert extract_task_text("not a task") is None

    def test_normalize_task_text(self):
        assert normalize_task_text("  Fix   The Bug.") == "fix the bug"

    def test_strip_html_comments(self):
        assert strip_html_comments("Task <!-- note --> text") == "Task  text"


class TestLogHeaders:
    def test_untitled_header(self):
        header = match_log_entry_header("11:48am")
        assert header is not None
        assert header.time == "11:48am"
        assert header.title is None
        assert header.line == "11:48am"

    def test_titled_header(self):
        header = match_log_entry_header("3:05pm - MCP Server")
        assert header.title == "MCP Server"
        assert header.line == "3:05pm - MCP Server"

    def test_non_header(self):
        assert match_log_entry_header("Worked on the parser") is None

    def test_titled_timestamp(self):
        assert is_titled_timestamp("11:48am - Title")
        assert not is_titled_timestamp("11:48am")

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("## 2024-01-15", "2024-01-15"),
            ("## January 15, 2024", "January 15, 2024"),
            ("### 2024-01-15", None),
            ("## Notes", None),
        ],
    )
    def test_date_heading(self, line, expected):
        assert match_date_heading(line) == expected


class TestSliceRefs:
    def test_match_slice_ref(self):
        ref = match_slice_ref("- [ ] Task [[Roadmap#VS3 — Sync Engine]]")
        assert ref is not None
        assert ref.vs_id == "VS3"
        assert ref.name == "Sync Engine"
        assert ref.number == 3
        assert ref.link == "[[Roadmap#VS3 — Sync Engine]]"

    def test_match_slice_ref_accepts_hyphen(self):
        ref = match_slice_ref("[[Roadmap#VS12 - Export]]")
        assert ref.vs_id == "VS12"
        assert ref.name == "Export"

    def test_no_slice_ref(self):
        assert match_slice_ref("- [ ] Task [[Overview#Scope]]") is None

    def test_strip_and_format(self):
        assert strip_slice_refs("Task [[Roadmap#VS1 — Core]]") == "Task"
        assert format_slice_link("VS1", "Core") == "[[Roadmap#VS1 — Core]]"


class TestHeadings:
    def test_match_heading(self):
        heading = match_heading("### M1 — MVP")
        assert heading.level == 3
        assert heading.text == "M1 — MVP"
        assert match_heading("no heading") is None
        assert match_heading("#hashtag") is None

    @pytest.mark.parametrize(
        "line,section",
        [
            ("## Now", TaskSection.NOW),
            ("## Next 1-3 Actions", TaskSection.NOW),
            ("## Next", TaskSection.NEXT),
            ("## Active Tasks", TaskSection.NEXT),
            ("## Later", TaskSection.LATER),
            ("## Potential Future Tasks", TaskSection.LATER),
            ("## Blocked", TaskSection.BLOCKED),
            ("## Done", TaskSection.DONE),
            ("## Recently Completed", TaskSection.DONE),
            ("## Notes", None),
        ],
    )
    def test_match_task_section(self, line, section):
        assert match_task_section(line) == section

    def test_completed_work_heading(self):
        assert is_completed_work_heading("## Completed Work")
        assert not is_completed_work_heading("### Completed Tasks")
