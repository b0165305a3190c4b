"""Line-level helpers shared by the selection appliers.

Documents are handled as ``list[str]`` split on ``\\n`` and re-joined the
same way, so untouched lines (and a trailing newline) survive byte for byte.
CRLF files reach these helpers as ``\\n`` text; the file store restores
their line endings on write.
"""

import re
from dataclasses import dataclass

from docwf.domain.parsing.recognizers import is_sub_item, match_heading


@dataclass(frozen=True, slots=True)
class SectionSpan:
    """A heading line and the lines it owns.

    ``end`` is exclusive: the index of the next heading of equal or higher
    level, or ``len(lines)``.
    """

    start: int
    end: int
    level: int

    @property
    def body_start(self) -> int:
        return self.start + 1


def split_lines(content: str) -> list[str]:
    return content.split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


def frontmatter_end(lines: list[str]) -> int:
    """Index of the first line after a leading ``---`` frontmatter block."""
    if not lines or lines[0].strip() != "---":
        return 0
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            return i + 1
    return 0


def find_section(
    lines: list[str],
    pattern: re.Pattern[str] | str,
    *,
    start: int = 0,
    stop_at_rule: bool = False,
) -> SectionSpan | None:
    """Locate the first heading matching ``pattern``.

    A ``str`` pattern matches the stripped heading line exactly. With
    ``stop_at_rule`` a ``---`` horizontal rule also ends the section.
    """
    for i in range(start, len(lines)):
        line = lines[i]
        if isinstance(pattern, str):
            hit = line.strip() == pattern
        else:
            hit = pattern.match(line.strip()) is not None
        if not hit:
            continue
        heading = match_heading(line.strip())
        level = heading.level if heading else 2
        return SectionSpan(start=i, end=section_end(lines, i, level, stop_at_rule=stop_at_rule), level=level)
    return None


def section_end(lines: list[str], heading_index: int, level: int, *, stop_at_rule: bool = False) -> int:
    for j in range(heading_index + 1, len(lines)):
        if stop_at_rule and lines[j].strip() == "---":
            return j
        heading = match_heading(lines[j])
        if heading is not None and heading.level <= level:
            return j
    return len(lines)


def last_content_index(lines: list[str], span: SectionSpan) -> int:
    """Index just past the last non-blank line of the section body."""
    idx = span.end
    while idx > span.body_start and lines[idx - 1].strip() == "":
        idx -= 1
    return idx


def append_to_section(lines: list[str], span: SectionSpan, new_lines: list[str]) -> list[str]:
    """Insert ``new_lines`` after the section's existing content.

    Existing lines keep their order; blank lines separating the section from
    the next heading stay below the inserted lines.
    """
    if not new_lines:
        return list(lines)
    idx = last_content_index(lines, span)
    result = list(lines)
    if idx == span.body_start and idx < len(result) and result[idx].strip() == "":
        # Keep one blank line directly under the heading when the body is empty.
        idx += 1
    result[idx:idx] = new_lines
    return result


def append_section(lines: list[str], heading: str, new_lines: list[str]) -> list[str]:
    """Add ``heading`` and ``new_lines`` at the end of the document."""
    trailing_newline = len(lines) > 1 and lines[-1] == ""
    result = list(lines)
    while result and result[-1].strip() == "":
        result.pop()
    if result:
        result.append("")
    result.append(heading)
    result.extend(new_lines)
    if trailing_newline:
        result.append("")
    return result


def append_to_named_section(
    lines: list[str],
    heading: str,
    new_lines: list[str],
    *,
    pattern: re.Pattern[str] | None = None,
    stop_at_rule: bool = False,
) -> list[str]:
    """Append into the section titled ``heading``, creating it when absent."""
    span = find_section(lines, pattern or heading, stop_at_rule=stop_at_rule)
    if span is None:
        return append_section(lines, heading, new_lines)
    return append_to_section(lines, span, new_lines)


def remove_lines(lines: list[str], indices: set[int]) -> list[str]:
    return [line for idx, line in enumerate(lines) if idx not in indices]


def collect_sub_items(lines: list[str], task_index: int, *, stop: int | None = None) -> list[str]:
    """Indented non-checkbox lines directly below a task line."""
    limit = len(lines) if stop is None else stop
    items: list[str] = []
    j = task_index + 1
    while j < limit and is_sub_item(lines[j]):
        items.append(lines[j])
        j += 1
    return items
