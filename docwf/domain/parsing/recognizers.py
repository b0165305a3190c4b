"""Named recognizers for the markdown conventions the engine reads and writes.

These patterns are the wire format shared by every document: marker blocks,
task checkboxes, slice links, log entry headers and date headings. Each one
sits behind a small function so callers never inline a regex.
"""

import re
from dataclasses import dataclass

from docwf.domain.constants import POTENTIAL_TASKS_END, POTENTIAL_TASKS_START
from docwf.domain.models.proposals import TaskSection

TASK_LINE_RE = re.compile(r"^-\s*\[[ x]\]\s*(.+)$", re.IGNORECASE)
TASK_PREFIX_RE = re.compile(r"^(\s*-\s*\[[ x]\]\s*)(.+)$", re.IGNORECASE)
ANY_TASK_RE = re.compile(r"^\s*-\s*\[[ x]\]", re.IGNORECASE)
UNCHECKED_TASK_RE = re.compile(r"^\s*-\s*\[\s*\]\s+(.+)$")
COMPLETED_TASK_RE = re.compile(r"^\s*-\s*\[x\]\s+(.+)$", re.IGNORECASE)
STRIKETHROUGH_RE = re.compile(r"^~~(.+)~~$")
LOG_ENTRY_RE = re.compile(r"^(\d{1,2}:\d{2}(?:am|pm))\s*(?:-\s*(.+))?$", re.IGNORECASE)
TIMESTAMP_RE = re.compile(r"^(\d{1,2}:\d{2}(?:am|pm)?)", re.IGNORECASE)
TITLED_TIMESTAMP_RE = re.compile(r"^(\d{1,2}:\d{2}(?:am|pm)?)\s*-\s*.+", re.IGNORECASE)
DATE_HEADING_RE = re.compile(r"^##\s+(\d{4}-\d{2}-\d{2}|\w+\s+\d{1,2},?\s+\d{4})")
SLICE_REF_RE = re.compile(r"\[\[Roadmap#(VS\d+\s*[—–-]\s*.+?)\]\]")
SLICE_ID_NAME_RE = re.compile(r"(VS\d+)\s*[—–-]\s*(.+)")
SUB_ITEM_RE = re.compile(r"^\s{2,}")
NESTED_TASK_RE = re.compile(r"^\s*-\s*\[")
POTENTIAL_TASKS_HEADING_RE = re.compile(r"^#{1,6}\s*potential\s+tasks", re.IGNORECASE)
HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
HTML_COMMENT_RE = re.compile(r"<!--.*?-->")
TASK_TEXT_RE = re.compile(r"^\s*-\s*\[[ x]\]\s*(.+?)(?:\s*\[\[|<!--|$)", re.IGNORECASE)

# Tasks.md / Archive.md / Roadmap.md section headings, legacy names included.
NOW_SECTION_RE = re.compile(r"^##\s*(?:Now|Next\s+1[–-]3\s+Actions)", re.IGNORECASE)
NEXT_SECTION_RE = re.compile(r"^##\s*(?:Next|Active\s+Tasks)\s*$", re.IGNORECASE)
LATER_SECTION_RE = re.compile(r"^##\s*(?:Later|Future\s+Tasks|Potential\s+Future\s+Tasks)", re.IGNORECASE)
BLOCKED_SECTION_RE = re.compile(r"^##\s*Blocked", re.IGNORECASE)
DONE_SECTION_RE = re.compile(r"^##\s*(?:Done|Recently\s+Completed)", re.IGNORECASE)
COMPLETED_WORK_RE = re.compile(r"^##\s*Completed\s+Work", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class LogEntryHeader:
    """A ``HH:MMam/pm[ - title]`` log entry header."""

    time: str
    title: str | None

    @property
    def line(self) -> str:
        if self.title:
            return f"{self.time} - {self.title}"
        return self.time


@dataclass(frozen=True, slots=True)
class SliceRef:
    """A ``[[Roadmap#VS<n> — <Name>]]`` reference."""

    ref: str
    vs_id: str
    name: str

    @property
    def number(self) -> int:
        return int(self.vs_id[2:])

    @property
    def link(self) -> str:
        return f"[[Roadmap#{self.ref}]]"


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    text: str


# --------------------------------------------------------------------------
# Marker blocks
# --------------------------------------------------------------------------


def is_block_start(line: str) -> bool:
    return line.strip() == POTENTIAL_TASKS_START


def is_block_end(line: str) -> bool:
    return line.strip() == POTENTIAL_TASKS_END


def is_potential_tasks_heading(line: str) -> bool:
    """True for the heading that introduces a potential-tasks block."""
    return POTENTIAL_TASKS_HEADING_RE.match(line.strip()) is not None


# --------------------------------------------------------------------------
# Task lines
# --------------------------------------------------------------------------


def match_task_line(line: str) -> str | None:
    """Return the text after ``- [ ]`` / ``- [x]``, or None."""
    m = TASK_LINE_RE.match(line.strip())
    if m is None:
        return None
    return m.group(1).strip()


def is_task_line(line: str) -> bool:
    return ANY_TASK_RE.match(line) is not None


def match_unchecked_task(line: str) -> str | None:
    m = UNCHECKED_TASK_RE.match(line)
    return m.group(1).strip() if m else None


def match_completed_task(line: str) -> str | None:
    m = COMPLETED_TASK_RE.match(line)
    return m.group(1).strip() if m else None


def match_strikethrough(text: str) -> str | None:
    """Return the inner text of ``~~text~~``, or None when not struck."""
    m = STRIKETHROUGH_RE.match(text.strip())
    return m.group(1).strip() if m else None


def strike_task_line(line: str) -> str:
    """Wrap the text portion of a task line in ``~~`` keeping the checkbox.

    Already struck lines and non-task lines are returned unchanged.
    """
    m = TASK_PREFIX_RE.match(line)
    if m is None:
        return line
    prefix, text = m.group(1), m.group(2)
    if text.startswith("~~"):
        return line
    return f"{prefix}~~{text}~~"


def check_task_line(line: str) -> str:
    """Turn the first ``[ ]`` on the line into ``[x]``."""
    return re.sub(r"\[\s*\]", "[x]", line, count=1)


def is_sub_item(line: str) -> bool:
    """Indented continuation of a task that is not itself a checkbox."""
    return SUB_ITEM_RE.match(line) is not None and NESTED_TASK_RE.match(line) is None


def extract_task_text(line: str) -> str | None:
    """Task description without checkbox, trailing slice link or comment."""
    m = TASK_TEXT_RE.match(line)
    return m.group(1).strip() if m else None


def strip_html_comments(text: str) -> str:
    return HTML_COMMENT_RE.sub("", text).strip()


def normalize_task_text(text: str) -> str:
    """Lowercase, collapse whitespace, drop trailing punctuation."""
    collapsed = re.sub(r"\s+", " ", text.lower())
    return re.sub(r"[.,!?]+$", "", collapsed).strip()


# --------------------------------------------------------------------------
# Log headers and dates
# --------------------------------------------------------------------------


def match_log_entry_header(line: str) -> LogEntryHeader | None:
    """Recognize ``11:48am`` or ``11:48am - Title``."""
    m = LOG_ENTRY_RE.match(line.strip())
    if m is None:
        return None
    title = m.group(2).strip() if m.group(2) else None
    return LogEntryHeader(time=m.group(1), title=title)


def match_timestamp(line: str) -> str | None:
    """Loose timestamp prefix used to split a log into entries."""
    m = TIMESTAMP_RE.match(line.strip())
    return m.group(1) if m else None


def is_titled_timestamp(line: str) -> bool:
    return TITLED_TIMESTAMP_RE.match(line.strip()) is not None


def match_date_heading(line: str) -> str | None:
    """Return the date of ``## 2024-01-15`` (or ``## January 15, 2024``)."""
    m = DATE_HEADING_RE.match(line.strip())
    return m.group(1) if m else None


# --------------------------------------------------------------------------
# Slice references
# --------------------------------------------------------------------------


def match_slice_ref(text: str) -> SliceRef | None:
    """Find the first ``[[Roadmap#VS<n> — <Name>]]`` in ``text``."""
    m = SLICE_REF_RE.search(text)
    if m is None:
        return None
    ref = m.group(1)
    parts = SLICE_ID_NAME_RE.match(ref)
    if parts is None:
        return None
    return SliceRef(ref=ref, vs_id=parts.group(1), name=parts.group(2).strip())


def strip_slice_refs(text: str) -> str:
    return SLICE_REF_RE.sub("", text).strip()


def format_slice_link(vs_id: str, name: str) -> str:
    return f"[[Roadmap#{vs_id} — {name}]]"


# --------------------------------------------------------------------------
# Headings
# --------------------------------------------------------------------------


def match_heading(line: str) -> Heading | None:
    m = HEADING_RE.match(line)
    if m is None:
        return None
    return Heading(level=len(m.group(1)), text=m.group(2))


def match_task_section(line: str) -> TaskSection | None:
    """Classify a ``##`` heading as one of the Tasks.md sections.

    Now is checked before Next so ``## Next 1-3 Actions`` lands in Now.
    """
    stripped = line.strip()
    if NOW_SECTION_RE.match(stripped):
        return TaskSection.NOW
    if NEXT_SECTION_RE.match(stripped):
        return TaskSection.NEXT
    if LATER_SECTION_RE.match(stripped):
        return TaskSection.LATER
    if BLOCKED_SECTION_RE.match(stripped):
        return TaskSection.BLOCKED
    if DONE_SECTION_RE.match(stripped):
        return TaskSection.DONE
    return None


def is_completed_work_heading(line: str) -> bool:
    return COMPLETED_WORK_RE.match(line.strip()) is not None
