import pytest

from docwf.domain.models.proposals import Destination, TaskSection
from docwf.domain.parsing.tasks_document import (
    extract_completed_task_texts,
    extract_unchecked_tasks,
    format_task_line,
    insert_into_destinations,
    parse_destination,
    section_has_unchecked_tasks,
)

TASKS = """# Tasks

## Now
- [ ] Wire up CLI

## Next
- [ ] Add caching <!-- from Log.md -->
- [x] Write parser

## Later
- [ ] Export to PDF
"""


@pytest.mark.parametrize(
    "value,expected",
    [
        ("now", Destination.NOW),
        ("NEXT", Destination.NEXT),
        ("current", Destination.NOW),
        ("future-tasks", Destination.LATER),
        ("discard", Destination.DISCARD),
        ("reject", Destination.DISCARD),
        ("skip", Destination.DISCARD),
        ("somewhere", Destination.LATER),
        (None, Destination.LATER),
    ],
)
def test_parse_destination(value, expected):
    assert parse_destination(value) == expected


def test_parse_destination_custom_default():
    assert parse_destination("", default=Destination.NEXT) == Destination.NEXT


def test_extract_unchecked_tasks_tracks_sections():
    tasks = extract_unchecked_tasks(TASKS)
    assert [(t.text, t.section) for t in tasks] == [
        ("Wire up CLI", TaskSection.NOW),
        ("Add caching", TaskSection.NEXT),
        ("Export to PDF", TaskSection.LATER),
    ]
    assert tasks[0].line_number == 3


def test_tasks_before_any_heading_count_as_next():
    tasks = extract_unchecked_tasks("- [ ] Loose task\n")
    assert tasks[0].section == TaskSection.NEXT


def test_extract_completed_task_texts():
    assert extract_completed_task_texts(TASKS) == ["Write parser"]


def test_section_has_unchecked_tasks():
    assert section_has_unchecked_tasks(TASKS, TaskSection.NOW)
    assert not section_has_unchecked_tasks("## Now\n\n## Next\n- [ ] a\n", TaskSection.NOW)
    assert not section_has_unchecked_tasks("# Tasks\n", TaskSection.NOW)


def test_insert_into_destinations_appends_in_sections():
    result = insert_into_destinations(
        TASKS,
        [
            (Destination.NEXT, "- [ ] New next"),
            (Destination.DISCARD, "- [ ] Dropped"),
            (Destination.NOW, "- [ ] New now"),
        ],
    )
    lines = result.split("\n")
    assert lines.index("- [ ] New now") == lines.index("- [ ] Wire up CLI") + 1
    assert lines.index("- [ ] New next") == lines.index("- [x] Write parser") + 1
    assert "Dropped" not in result


def test_insert_creates_missing_section():
    result = insert_into_destinations("# Tasks\n", [(Destination.LATER, "- [ ] Someday")])
    assert result == "# Tasks\n\n## Later\n- [ ] Someday\n"


def test_insert_nothing_returns_content_unchanged():
    assert insert_into_destinations(TASKS, [(Destination.DISCARD, "- [ ] x")]) is TASKS


def test_format_task_line():
    assert format_task_line("Do it") == "- [ ] Do it"
    assert (
        format_task_line("Do it", "[[Roadmap#VS1 — Core]]", "<!-- from Ideas.md: Core -->")
        == "- [ ] Do it [[Roadmap#VS1 — Core]] <!-- from Ideas.md: Core -->"
    )
