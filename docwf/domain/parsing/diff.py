"""Unified diffs in ```` ```diff ```` fences: extraction, parsing, fuzzy apply.

Generated diffs rarely reproduce the old text exactly, so each hunk is placed
by the first strategy that succeeds:

1. the whole old pattern (context + removed lines) near the hunk's line hint;
2. an anchor on the first non-empty context line;
3. a line similar to the first removed line (timestamp headers may have
   gained or lost a `` - title`` suffix);
4. for pure additions, right after the last non-empty context line;
5. the hunk's line number, when it lies inside the document.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from docwf.domain.errors import DiffApplyError
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import (
    DiffHunk,
    DiffLine,
    DiffLineKind,
    FileDiff,
    FileDiffProposals,
    ReviewAction,
    Selection,
)
from docwf.domain.parsing.potential_tasks import dedupe_task_blocks

logger = logging.getLogger(__name__)

DIFF_BLOCK_RE = re.compile(r"```diff\n([\s\S]*?)```")
HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_TIMESTAMP_PREFIX_RE = re.compile(r"^(\d{1,2}:\d{2}(?:am|pm)?)", re.IGNORECASE)

PATTERN_SEARCH_RADIUS = 50
LINE_SEARCH_RADIUS = 100
UNKNOWN_FILE = "Unknown file"


def contains_diff_blocks(text: str) -> bool:
    return DIFF_BLOCK_RE.search(text) is not None


def parse_diff(diff_text: str, diff_id: str = "diff-0") -> FileDiff | None:
    """Parse one unified diff; ``None`` when there is no ``+++`` file name."""
    lines = diff_text.split("\n")
    if len(lines) < 3:
        return None

    file_name = ""
    hunks: list[DiffHunk] = []
    hunk: DiffHunk | None = None
    for line in lines:
        if line.startswith("--- "):
            continue
        if line.startswith("+++ "):
            file_name = line[4:].strip()
            if file_name.startswith("b/"):
                file_name = file_name[2:]
            continue
        header = HUNK_HEADER_RE.match(line)
        if header:
            if hunk is not None:
                hunks.append(hunk)
            hunk = DiffHunk(
                old_start=int(header.group(1)),
                old_count=int(header.group(2)) if header.group(2) else 1,
                new_start=int(header.group(3)),
                new_count=int(header.group(4)) if header.group(4) else 1,
            )
            continue
        if hunk is None:
            continue
        if line.startswith("+"):
            hunk.lines.append(DiffLine(kind=DiffLineKind.ADD, content=line[1:]))
        elif line.startswith("-"):
            hunk.lines.append(DiffLine(kind=DiffLineKind.REMOVE, content=line[1:]))
        elif line.startswith(" ") or line == "":
            hunk.lines.append(DiffLine(kind=DiffLineKind.CONTEXT, content=line[1:] if line else line))
    if hunk is not None:
        hunks.append(hunk)

    if not file_name:
        return None
    return FileDiff(
        id=diff_id,
        file_name=file_name,
        document=DocumentName.from_file_name(file_name),
        hunks=hunks,
        raw_diff=diff_text,
    )


@dataclass(frozen=True, slots=True)
class DiffBlock:
    id: str
    raw_diff: str
    parsed: FileDiff | None

    @property
    def file_name(self) -> str:
        return self.parsed.file_name if self.parsed else UNKNOWN_FILE


def extract_diff_blocks(text: str) -> list[DiffBlock]:
    blocks = []
    for idx, match in enumerate(DIFF_BLOCK_RE.finditer(text)):
        raw = match.group(1).strip()
        diff_id = f"diff-{idx}"
        blocks.append(DiffBlock(id=diff_id, raw_diff=raw, parsed=parse_diff(raw, diff_id)))
    return blocks


def strip_diff_blocks(text: str) -> str:
    return DIFF_BLOCK_RE.sub("", text).strip()


# --------------------------------------------------------------------------
# Parsing a whole response
# --------------------------------------------------------------------------


def parse_file_diff_response(
    text: str,
    workflow_name: str = "file-diff",
    allowed_documents: Iterable[DocumentName] | None = None,
    default_document: DocumentName | None = None,
) -> FileDiffProposals:
    """Collect the usable diffs of a response.

    A diff whose file name does not resolve falls back to
    ``default_document``; diffs for documents outside ``allowed_documents``
    are dropped.
    """
    allowed = set(allowed_documents) if allowed_documents is not None else None
    blocks = extract_diff_blocks(text)
    if not blocks:
        return FileDiffProposals(workflow_name=workflow_name, success=False, error="No diff blocks found in response")

    diffs: list[FileDiff] = []
    for block in blocks:
        diff = block.parsed
        if diff is None:
            logger.warning("Skipping unparseable diff block %s", block.id)
            continue
        if diff.document is None and default_document is not None:
            diff = diff.model_copy(update={"document": default_document})
        if diff.document is None or (allowed is not None and diff.document not in allowed):
            logger.warning("Skipping diff for unexpected file: %s", diff.file_name)
            continue
        diffs.append(diff)

    if not diffs:
        return FileDiffProposals(workflow_name=workflow_name, success=False, error="No usable diffs in response")
    return FileDiffProposals(workflow_name=workflow_name, diffs=diffs)


# --------------------------------------------------------------------------
# Applying
# --------------------------------------------------------------------------


def _matches_at(file_lines: list[str], search: list[str], position: int) -> bool:
    if position < 0 or position + len(search) > len(file_lines):
        return False
    for offset, wanted in enumerate(search):
        if wanted.strip() == "":
            continue
        if wanted.strip() != file_lines[position + offset].strip():
            return False
    return True


def _find_pattern(file_lines: list[str], search: list[str], hint: int) -> int | None:
    if not search:
        return min(max(hint, 0), len(file_lines))
    if _matches_at(file_lines, search, hint):
        return hint
    for offset in range(1, PATTERN_SEARCH_RADIUS + 1):
        if _matches_at(file_lines, search, hint - offset):
            return hint - offset
        if _matches_at(file_lines, search, hint + offset):
            return hint + offset
    for i in range(len(file_lines) - len(search) + 1):
        if _matches_at(file_lines, search, i):
            return i
    return None


def _find_line(file_lines: list[str], search: str, hint: int) -> int | None:
    wanted = search.strip()
    if not wanted:
        return None
    if 0 <= hint < len(file_lines) and file_lines[hint].strip() == wanted:
        return hint
    for offset in range(1, LINE_SEARCH_RADIUS + 1):
        before, after = hint - offset, hint + offset
        if 0 <= before < len(file_lines) and file_lines[before].strip() == wanted:
            return before
        if 0 <= after < len(file_lines) and file_lines[after].strip() == wanted:
            return after
    return None


def _find_similar_line(file_lines: list[str], search: str, hint: int) -> int | None:
    wanted = search.strip()
    if not wanted:
        return None
    dash = wanted.find(" - ")
    prefix = wanted[:dash].strip() if dash > 0 else None
    for offset in range(LINE_SEARCH_RADIUS + 1):
        candidates = (hint,) if offset == 0 else (hint - offset, hint + offset)
        for idx in candidates:
            if idx < 0 or idx >= len(file_lines):
                continue
            line = file_lines[idx].strip()
            if line == wanted or (prefix and line == prefix) or line.startswith(wanted):
                return idx
            if wanted.startswith(line) and len(line) > 3:
                return idx
    return None


def _count_matching_from(file_lines: list[str], pattern: list[str], start: int) -> int:
    count = 0
    for offset, raw in enumerate(pattern):
        if start + offset >= len(file_lines):
            break
        if not _lines_similar(raw.strip(), file_lines[start + offset].strip()):
            break
        count += 1
    return max(count, 1)


def _lines_similar(a: str, b: str) -> bool:
    if a == b:
        return True
    a_stamp, b_stamp = _TIMESTAMP_PREFIX_RE.match(a), _TIMESTAMP_PREFIX_RE.match(b)
    if a_stamp and b_stamp and a_stamp.group(1).lower() == b_stamp.group(1).lower():
        return True
    return a.startswith(b) or b.startswith(a)


def _count_lines_to_remove(file_lines: list[str], start: int, pattern: list[str]) -> int:
    count = 0
    for offset, raw in enumerate(pattern):
        if start + offset >= len(file_lines):
            break
        wanted = raw.strip()
        line = file_lines[start + offset].strip()
        if _lines_similar(wanted, line) or offset == 0:
            count += 1
        else:
            break
    return count


def _apply_hunk(file_lines: list[str], hunk: DiffHunk) -> None:
    context = [l.content for l in hunk.lines if l.kind == DiffLineKind.CONTEXT]
    removed = [l.content for l in hunk.lines if l.kind == DiffLineKind.REMOVE]
    added = [l.content for l in hunk.lines if l.kind == DiffLineKind.ADD]
    old_pattern = [l.content for l in hunk.lines if l.kind != DiffLineKind.ADD]
    new_content = [l.content for l in hunk.lines if l.kind != DiffLineKind.REMOVE]
    hint = hunk.old_start - 1

    at = _find_pattern(file_lines, old_pattern, hint)
    if at is not None:
        file_lines[at : at + len(old_pattern)] = new_content
        return

    anchor = next((l for l in context if l.strip()), None)
    if anchor is not None:
        at = _find_line(file_lines, anchor, hint)
        if at is not None:
            anchor_offset = next(i for i, l in enumerate(old_pattern) if l.strip() == anchor.strip())
            start = at - anchor_offset
            if start >= 0:
                count = _count_matching_from(file_lines, old_pattern, start)
                file_lines[start : start + count] = new_content
                return

    first_removed = next((l for l in removed if l.strip()), None)
    if first_removed is not None:
        at = _find_similar_line(file_lines, first_removed, hint)
        if at is not None:
            count = _count_lines_to_remove(file_lines, at, old_pattern)
            file_lines[at : at + count] = new_content
            return

    if not removed and added and context:
        last_context = next((l for l in reversed(context) if l.strip()), None)
        if last_context is not None:
            at = _find_line(file_lines, last_context, hint)
            if at is not None:
                file_lines[at + 1 : at + 1] = added
                return

    if 0 <= hint <= len(file_lines):
        count = min(len(removed), len(file_lines) - hint)
        file_lines[hint : hint + count] = new_content
        return

    looking_for = next((l for l in old_pattern if l.strip()), "(empty lines)")
    raise DiffApplyError(
        "Could not find where to apply changes.\n"
        f'Looking for: "{looking_for}"\n'
        "The file structure may have changed significantly."
    )


def apply_diff(original: str, diff: FileDiff) -> str:
    """Apply every hunk, last hunk first so earlier line hints stay valid.

    Raises:
        DiffApplyError: A hunk could not be placed by any strategy.
    """
    lines = original.split("\n")
    for hunk in sorted(diff.hunks, key=lambda h: h.old_start, reverse=True):
        _apply_hunk(lines, hunk)
    return "\n".join(lines)


@dataclass(slots=True)
class DiffApplication:
    """Documents rewritten by accepted diffs, plus per-diff failures."""

    updated: dict[DocumentName, str] = field(default_factory=dict)
    failures: list[str] = field(default_factory=list)


def apply_file_diff_selections(
    documents: Mapping[DocumentName, str],
    diffs: list[FileDiff],
    selections: list[Selection],
) -> DiffApplication:
    """Apply accepted diffs to document snapshots.

    Several diffs for one document apply in order. A diff that cannot be
    placed is reported and leaves its document as it was before that diff.
    Log.md results never keep two potential-tasks blocks in one entry.
    """
    accepted = {s.entity_id for s in selections if s.action == ReviewAction.ACCEPT.value}
    result = DiffApplication()
    for diff in diffs:
        if diff.id not in accepted or diff.document is None:
            continue
        current = result.updated.get(diff.document, documents.get(diff.document))
        if current is None:
            result.failures.append(f"{diff.file_name}: document not loaded")
            continue
        try:
            updated = apply_diff(current, diff)
        except DiffApplyError as exc:
            logger.warning("Failed to apply diff %s to %s: %s", diff.id, diff.file_name, exc)
            result.failures.append(f"{diff.file_name}: {exc}")
            continue
        if diff.document == DocumentName.LOG:
            updated = dedupe_task_blocks(updated)
        result.updated[diff.document] = updated
    result.updated = {doc: text for doc, text in result.updated.items() if text != documents.get(doc)}
    return result
