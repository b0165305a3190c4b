"""Sync-commits family: match recent commits to open tasks.

The response half (``parse_sync_commits_response``) is independent of file
contents; ``exclude_completed_matches`` then drops any match whose task is
already checked off, and the applier only ever flips ``- [ ]`` lines.
"""

import logging
import re
from datetime import date

from pydantic import Field

from docwf.domain.constants import (
    ALREADY_COMPLETED_MATCH_CHARS,
    COMPLETED_WORK_HEADING,
    COMPLETION_MATCH_CHARS,
)
from docwf.domain.models.proposals import (
    Commit,
    CommitMatch,
    Confidence,
    Selection,
    SyncAction,
    SyncCommitsProposals,
    TaskSection,
    UnmatchedCommit,
)
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.markdown import frontmatter_end, join_lines, split_lines
from docwf.domain.parsing.recognizers import check_task_line, is_completed_work_heading
from docwf.domain.parsing.tasks_document import extract_completed_task_texts, extract_unchecked_tasks
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)

DEFAULT_NOTES = "Completed via git commit"


class _MatchItem(WireModel):
    commit_sha: str = Field(min_length=1)
    commit_message: str = ""
    task_text: str = Field(min_length=1)
    task_section: str = "next"
    confidence: str = "medium"
    reasoning: str | None = None


class _UnmatchedItem(WireModel):
    commit_sha: str = Field(min_length=1)
    commit_message: str = ""
    reasoning: str | None = None


def short_sha(sha: str) -> str:
    return sha[:7]


def normalize_task_section(section: str) -> TaskSection:
    """Map ``now``/``next``/``later`` and legacy section names onto TaskSection."""
    normalized = re.sub(r"[^a-z]", "", section.lower())
    if normalized == "now" or "action" in normalized:
        return TaskSection.NOW
    if normalized == "later" or "future" in normalized:
        return TaskSection.LATER
    return TaskSection.NEXT


def _parse_confidence(value: str) -> Confidence:
    try:
        return Confidence(value.strip().lower())
    except ValueError:
        return Confidence.MEDIUM


def parse_sync_commits_response(
    text: str,
    commits: list[Commit],
    workflow_name: str = "sync-commits",
) -> SyncCommitsProposals:
    """Parse ``{"matches": [...], "unmatchedCommits": [...], "summary": {...}}``.

    Commit dates and URLs are looked up in ``commits`` by full or short SHA.
    """
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Sync commits response not parseable: %s", exc)
        return SyncCommitsProposals(workflow_name=workflow_name, success=False, error=str(exc))

    if not isinstance(data.get("matches"), list):
        return SyncCommitsProposals(workflow_name=workflow_name, success=False, error="Response missing matches array")

    by_sha = {c.sha: c for c in commits}
    by_short = {short_sha(c.sha): c for c in commits}

    def lookup(sha: str) -> Commit | None:
        return by_sha.get(sha) or by_short.get(short_sha(sha))

    matches: list[CommitMatch] = []
    for idx, item in enumerate(validate_items(data["matches"], _MatchItem, "commit match")):
        commit = lookup(item.commit_sha)
        message = item.commit_message or (commit.message if commit else "")
        matches.append(
            CommitMatch(
                id=f"sync-{idx}",
                commit_sha=item.commit_sha,
                short_sha=short_sha(item.commit_sha),
                message=message,
                title=message.split("\n")[0],
                date=commit.date if commit else "",
                url=commit.url if commit else None,
                task_text=item.task_text.strip(),
                task_section=normalize_task_section(item.task_section),
                confidence=_parse_confidence(item.confidence),
                reasoning=optional_text(item.reasoning),
            )
        )

    unmatched: list[UnmatchedCommit] = []
    for item in validate_items(data.get("unmatchedCommits"), _UnmatchedItem, "unmatched commit"):
        commit = lookup(item.commit_sha)
        message = item.commit_message or (commit.message if commit else "")
        unmatched.append(
            UnmatchedCommit(
                commit_sha=item.commit_sha,
                short_sha=short_sha(item.commit_sha),
                title=message.split("\n")[0],
                date=commit.date if commit else "",
                reasoning=optional_text(item.reasoning),
            )
        )

    return SyncCommitsProposals(workflow_name=workflow_name, matches=matches, unmatched_commits=unmatched)


def _has_open_task(task_text: str, open_texts: list[str]) -> bool:
    prefix = task_text[:COMPLETION_MATCH_CHARS]
    return any(text.startswith(prefix) for text in open_texts)


def exclude_completed_matches(proposals: SyncCommitsProposals, tasks_content: str) -> SyncCommitsProposals:
    """Drop matches pointing at a task that is already ``- [x]``.

    A match is dropped only when its text hits a completed task (first
    characters, lowercased) and no open task the applier could check off.
    """
    width = ALREADY_COMPLETED_MATCH_CHARS
    completed = {t.lower()[:width] for t in extract_completed_task_texts(tasks_content)}
    open_texts = [task.text for task in extract_unchecked_tasks(tasks_content)]
    kept = [
        m
        for m in proposals.matches
        if m.task_text.lower()[:width] not in completed or _has_open_task(m.task_text, open_texts)
    ]
    excluded = len(proposals.matches) - len(kept)
    if excluded:
        logger.info("Excluded %d match(es) against already-completed tasks", excluded)
    return proposals.model_copy(update={"matches": kept, "excluded_completed": proposals.excluded_completed + excluded})


def _selected(proposals: SyncCommitsProposals, selections: list[Selection], actions: set[str]) -> list[CommitMatch]:
    by_id = {m.id: m for m in proposals.matches}
    return [by_id[s.entity_id] for s in selections if s.action in actions and s.entity_id in by_id]


def apply_task_completions(content: str, proposals: SyncCommitsProposals, selections: list[Selection]) -> str:
    """Check off the first open task matching each selected commit."""
    lines = split_lines(content)
    targets = _selected(proposals, selections, {SyncAction.MARK_COMPLETE.value, SyncAction.MARK_ARCHIVE.value})
    changed = False
    for match in targets:
        prefix = re.escape(match.task_text[:COMPLETION_MATCH_CHARS])
        pattern = re.compile(rf"^(\s*-\s*)\[\s*\](\s+{prefix})")
        for i, line in enumerate(lines):
            if pattern.match(line):
                lines[i] = check_task_line(line)
                changed = True
                break
    return join_lines(lines) if changed else content


def _summarize_body(body: str) -> str:
    meaningful = [line for line in body.split("\n") if line.strip() and not line.startswith("Co-Authored-By")]
    if not meaningful:
        return DEFAULT_NOTES
    first = meaningful[0].strip()
    return first if len(first) <= 100 else first[:97] + "..."


def format_archive_entry(match: CommitMatch, today: date | None = None) -> str:
    day = (today or date.today()).isoformat()
    name = match.task_text if len(match.task_text) <= 60 else match.task_text[:57] + "..."
    body = "\n".join(match.message.split("\n")[1:]).strip()
    notes = _summarize_body(body) if body else DEFAULT_NOTES
    ref = f"[{match.short_sha}]({match.url})" if match.url else match.short_sha
    return "\n".join(
        [
            f"### {day} - {name}",
            f"**What:** {match.task_text}",
            f"**Commit:** {ref}",
            f"**Notes:** {notes}",
            "",
        ]
    )


def build_archive_entries(
    proposals: SyncCommitsProposals,
    selections: list[Selection],
    today: date | None = None,
) -> str:
    targets = _selected(proposals, selections, {SyncAction.MARK_ARCHIVE.value})
    return "\n".join(format_archive_entry(m, today) for m in targets)


def apply_archive_entries(archive_content: str, entries: str) -> str:
    """Insert entries at the top of ``## Completed Work``, creating it if absent."""
    if not entries.strip():
        return archive_content
    lines = split_lines(archive_content)
    for i, line in enumerate(lines):
        if is_completed_work_heading(line):
            idx = i + 1
            while idx < len(lines) and lines[idx].strip() == "":
                idx += 1
            lines.insert(idx, entries)
            return join_lines(lines)
    at = frontmatter_end(lines)
    lines[at:at] = ["", COMPLETED_WORK_HEADING, "", entries]
    return join_lines(lines)
