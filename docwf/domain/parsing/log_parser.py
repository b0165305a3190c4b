"""Log.md entry parsing.

Entries start at a timestamp line (``11:48am`` or ``11:48am - Title``) and run
until the next timestamp or ``##`` heading. An entry with a title is
"summarized"; title-entries only ever needs to see the untitled ones.
"""

from dataclasses import dataclass

from docwf.domain.constants import LARGE_LOG_THRESHOLD
from docwf.domain.parsing.markdown import frontmatter_end, split_lines
from docwf.domain.parsing.recognizers import is_titled_timestamp, match_heading, match_timestamp

ALL_TITLED_PLACEHOLDER = "[All entries in this log already have titles. No action needed.]"
ALL_SUMMARIZED_PLACEHOLDER = "[All entries in this log have already been summarized. No action needed.]"


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp_line: str
    start_line: int
    end_line: int
    is_summarized: bool
    date_header: str | None


@dataclass(frozen=True, slots=True)
class ParsedLog:
    entries: tuple[LogEntry, ...]
    frontmatter_end_line: int
    total_lines: int


@dataclass(frozen=True, slots=True)
class FilteredLog:
    content: str
    excluded_entry_count: int
    included_entry_count: int
    all_summarized: bool


@dataclass(frozen=True, slots=True)
class TrimmedLog:
    was_trimmed: bool
    content: str
    trim_summary: str | None
    excluded_entry_count: int
    included_entry_count: int


def _date_section(line: str) -> str | None:
    heading = match_heading(line)
    if heading is None or heading.level != 2:
        return None
    return heading.text.strip()


def _entry(current: tuple[int, str, bool, str | None], end: int) -> LogEntry:
    start, line, summarized, date = current
    return LogEntry(timestamp_line=line, start_line=start, end_line=end, is_summarized=summarized, date_header=date)


def parse_log_entries(content: str) -> ParsedLog:
    lines = split_lines(content)
    fm_end = frontmatter_end(lines)
    entries: list[LogEntry] = []
    date_header: str | None = None
    # (start, timestamp line, summarized, date) of the entry being read
    current: tuple[int, str, bool, str | None] | None = None

    for i in range(fm_end, len(lines)):
        trimmed = lines[i].strip()
        section = _date_section(trimmed)
        is_timestamp = section is None and match_timestamp(trimmed) is not None
        if section is None and not is_timestamp:
            continue
        if current is not None:
            entries.append(_entry(current, i))
            current = None
        if section is not None:
            date_header = section
        else:
            current = (i, trimmed, is_titled_timestamp(trimmed), date_header)
    if current is not None:
        entries.append(_entry(current, len(lines)))

    return ParsedLog(entries=tuple(entries), frontmatter_end_line=fm_end, total_lines=len(lines))


def find_entry_for_line(content: str, line_number: int) -> LogEntry | None:
    """Entry whose ``[start_line, end_line)`` span contains ``line_number``."""
    for entry in parse_log_entries(content).entries:
        if entry.start_line <= line_number < entry.end_line:
            return entry
    return None


def entry_text(content: str, entry: LogEntry) -> str:
    return "\n".join(split_lines(content)[entry.start_line : entry.end_line])


def filter_log_for_title_entries(content: str) -> FilteredLog:
    """Reduce the log to the entries that still lack a title.

    Date headings are re-emitted above each group of surviving entries.
    """
    parsed = parse_log_entries(content)
    lines = split_lines(content)
    titled = [e for e in parsed.entries if e.is_summarized]
    untitled = [e for e in parsed.entries if not e.is_summarized]

    if not untitled:
        return FilteredLog(
            content=ALL_TITLED_PLACEHOLDER,
            excluded_entry_count=len(titled),
            included_entry_count=0,
            all_summarized=True,
        )

    out: list[str] = list(lines[: parsed.frontmatter_end_line])
    if titled:
        out.extend(
            [
                "",
                "<!-- NOTE: Entries that already have titles have been excluded -->",
                f"<!-- {len(titled)} titled entries were removed from this view -->",
                "",
            ]
        )

    current_date: str | None = None
    for entry in untitled:
        if entry.date_header and entry.date_header != current_date:
            if current_date is not None:
                out.append("")
            out.extend([f"## {entry.date_header}", ""])
            current_date = entry.date_header
        out.extend(lines[entry.start_line : entry.end_line])

    return FilteredLog(
        content="\n".join(out),
        excluded_entry_count=len(titled),
        included_entry_count=len(untitled),
        all_summarized=False,
    )


def _unsummarized_start(parsed: ParsedLog) -> tuple[int, str | None]:
    for entry in reversed(parsed.entries):
        if entry.is_summarized:
            return entry.end_line, entry.date_header
    return parsed.frontmatter_end_line, None


def trim_log_content(content: str, threshold: int = LARGE_LOG_THRESHOLD) -> TrimmedLog:
    """Drop the already-titled head of a large log.

    Logs at or under ``threshold`` characters pass through untouched.
    """
    parsed = parse_log_entries(content)
    titled = [e for e in parsed.entries if e.is_summarized]
    untitled = [e for e in parsed.entries if not e.is_summarized]

    if len(content) <= threshold:
        return TrimmedLog(
            was_trimmed=False,
            content=content,
            trim_summary=None,
            excluded_entry_count=0,
            included_entry_count=len(untitled),
        )

    if not untitled:
        return TrimmedLog(
            was_trimmed=True,
            content=ALL_SUMMARIZED_PLACEHOLDER,
            trim_summary=f"All {len(titled)} entries are already summarized.",
            excluded_entry_count=len(titled),
            included_entry_count=0,
        )

    lines = split_lines(content)
    start, last_date = _unsummarized_start(parsed)
    out: list[str] = list(lines[: parsed.frontmatter_end_line])
    out.extend(["", "<!-- TRIMMED: Earlier entries already have titles and were excluded -->"])
    if last_date:
        out.append(f"<!-- Last summarized section: {last_date} -->")
    out.extend([f"<!-- Excluded {len(titled)} summarized entries -->", ""])
    if untitled[0].date_header:
        out.extend([f"## {untitled[0].date_header}", ""])
    out.extend(lines[start:])

    return TrimmedLog(
        was_trimmed=True,
        content="\n".join(out),
        trim_summary=(
            f"Excluded {len(titled)} already-summarized entries. "
            f"Showing {len(untitled)} entries that need titles."
        ),
        excluded_entry_count=len(titled),
        included_entry_count=len(untitled),
    )
