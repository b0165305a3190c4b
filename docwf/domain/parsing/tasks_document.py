"""Tasks.md section scanning and destination inserts.

Tasks.md is organised as ``## Now`` / ``## Next`` / ``## Later`` (legacy names
such as ``## Next 1-3 Actions`` and ``## Future Tasks`` are recognised).
Harvest, ideas grooming, planning and commit sync all read or write it through
the helpers here.
"""

from dataclasses import dataclass

from docwf.domain.constants import LATER_HEADING, NEXT_HEADING, NOW_HEADING
from docwf.domain.models.proposals import Destination, TaskSection
from docwf.domain.parsing.markdown import (
    SectionSpan,
    append_section,
    append_to_section,
    join_lines,
    section_end,
    split_lines,
)
from docwf.domain.parsing.recognizers import (
    match_completed_task,
    match_task_section,
    match_unchecked_task,
    strip_html_comments,
)

DESTINATION_HEADINGS: dict[Destination, str] = {
    Destination.NOW: NOW_HEADING,
    Destination.NEXT: NEXT_HEADING,
    Destination.LATER: LATER_HEADING,
}

_DESTINATION_SECTIONS: dict[Destination, TaskSection] = {
    Destination.NOW: TaskSection.NOW,
    Destination.NEXT: TaskSection.NEXT,
    Destination.LATER: TaskSection.LATER,
}

_DESTINATION_ALIASES: dict[str, Destination] = {
    "current": Destination.NOW,
    "next-actions": Destination.NOW,
    "active-vs": Destination.NEXT,
    "future-tasks": Destination.LATER,
    "reject": Destination.DISCARD,
    "skip": Destination.DISCARD,
}


@dataclass(frozen=True, slots=True)
class TaskLine:
    text: str
    section: TaskSection
    line_number: int


def parse_destination(value: str | None, default: Destination = Destination.LATER) -> Destination:
    """Map a loosely written destination onto :class:`Destination`.

    ``current`` is accepted as an alias for ``now``; legacy section names map
    onto their current equivalents.
    """
    if not value:
        return default
    key = value.strip().lower()
    if key in _DESTINATION_ALIASES:
        return _DESTINATION_ALIASES[key]
    try:
        return Destination(key)
    except ValueError:
        return default


def find_task_section(lines: list[str], section: TaskSection) -> SectionSpan | None:
    """Span of the first ``##`` heading classified as ``section``.

    The span also ends at a ``---`` rule.
    """
    for i, line in enumerate(lines):
        if match_task_section(line) == section:
            return SectionSpan(start=i, end=section_end(lines, i, 2, stop_at_rule=True), level=2)
    return None


def extract_unchecked_tasks(content: str) -> list[TaskLine]:
    """Every ``- [ ]`` line with the section it falls under.

    Lines before any recognised heading count as Next. HTML comments are
    stripped from the text.
    """
    tasks: list[TaskLine] = []
    current = TaskSection.NEXT
    for i, line in enumerate(split_lines(content)):
        section = match_task_section(line)
        if section in (TaskSection.NOW, TaskSection.NEXT, TaskSection.LATER):
            current = section
            continue
        text = match_unchecked_task(line)
        if text is not None:
            tasks.append(TaskLine(text=strip_html_comments(text), section=current, line_number=i))
    return tasks


def extract_completed_task_texts(content: str) -> list[str]:
    texts: list[str] = []
    for line in split_lines(content):
        text = match_completed_task(line)
        if text is not None:
            texts.append(strip_html_comments(text))
    return texts


def section_has_unchecked_tasks(content: str, section: TaskSection) -> bool:
    lines = split_lines(content)
    span = find_task_section(lines, section)
    if span is None:
        return False
    return any(match_unchecked_task(lines[i]) is not None for i in range(span.body_start, span.end))


def insert_into_destinations(content: str, additions: list[tuple[Destination, str]]) -> str:
    """Append task lines to their destination sections, in order.

    Missing sections are created at the end of the document. ``discard``
    entries are dropped.
    """
    grouped: dict[Destination, list[str]] = {}
    for destination, line in additions:
        if destination == Destination.DISCARD:
            continue
        grouped.setdefault(destination, []).append(line)
    if not grouped:
        return content

    lines = split_lines(content)
    for destination in (Destination.NOW, Destination.NEXT, Destination.LATER):
        new_lines = grouped.get(destination)
        if not new_lines:
            continue
        span = find_task_section(lines, _DESTINATION_SECTIONS[destination])
        if span is None:
            lines = append_section(lines, DESTINATION_HEADINGS[destination], new_lines)
        else:
            lines = append_to_section(lines, span, new_lines)
    return join_lines(lines)


def format_task_line(text: str, slice_link: str | None = None, source_comment: str | None = None) -> str:
    line = f"- [ ] {text}"
    if slice_link:
        line += f" {slice_link}"
    if source_comment:
        line += f" {source_comment}"
    return line
