"""Archive-completed family: move ``- [x]`` tasks from Tasks.md to Archive.md.

Completed tasks are found locally; the generated response only regroups them
(by line number). Grouping keys on the ``[[Roadmap#VS<n> — <Name>]]`` link,
with a standalone bucket for tasks that carry none.
"""

import logging

from pydantic import Field

from docwf.domain.constants import COMPLETED_WORK_HEADING
from docwf.domain.models.proposals import (
    ArchiveAction,
    ArchiveGroup,
    ArchiveProposals,
    CompletedTask,
    Selection,
    TaskSection,
)
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.markdown import collect_sub_items, frontmatter_end, join_lines, remove_lines, split_lines
from docwf.domain.parsing.recognizers import (
    is_completed_work_heading,
    match_completed_task,
    match_heading,
    match_slice_ref,
    match_task_section,
    strip_slice_refs,
)
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)

NO_COMPLETED_TASKS = "No completed tasks found to archive."


class _LineRef(WireModel):
    line_number: int


class _GroupItem(WireModel):
    slice_ref: str | None = None
    slice_name: str | None = None
    tasks: list[_LineRef] = Field(default_factory=list)
    summary: str | None = None


def find_completed_tasks(content: str) -> list[CompletedTask]:
    """Every ``- [x]`` line with its section, slice link and sub-items."""
    lines = split_lines(content)
    tasks: list[CompletedTask] = []
    section = TaskSection.UNKNOWN
    for i, line in enumerate(lines):
        heading_section = match_task_section(line)
        if heading_section is not None:
            section = heading_section
        text = match_completed_task(line)
        if text is None:
            continue
        full_line = line.strip()
        ref = match_slice_ref(full_line)
        tasks.append(
            CompletedTask(
                id=f"archive-{len(tasks)}",
                text=strip_slice_refs(text),
                full_line=full_line,
                line_number=i,
                slice_ref=ref.ref if ref else None,
                slice_name=ref.name if ref else None,
                section=section,
                sub_items=collect_sub_items(lines, i),
            )
        )
    return tasks


def _slice_number(group: ArchiveGroup) -> int:
    ref = match_slice_ref(f"[[Roadmap#{group.slice_ref}]]") if group.slice_ref else None
    return ref.number if ref else 0


def group_tasks_by_slice(tasks: list[CompletedTask]) -> list[ArchiveGroup]:
    """Slice groups ordered by VS number, then one standalone group if needed."""
    by_ref: dict[str, ArchiveGroup] = {}
    standalone: list[CompletedTask] = []
    for task in tasks:
        if task.slice_ref is None:
            standalone.append(task)
            continue
        group = by_ref.setdefault(task.slice_ref, ArchiveGroup(slice_ref=task.slice_ref, slice_name=task.slice_name))
        group.tasks.append(task)
    groups = sorted(by_ref.values(), key=_slice_number)
    if standalone:
        groups.append(ArchiveGroup(tasks=standalone))
    return groups


def parse_archive_completed(tasks_content: str, workflow_name: str = "archive-completed") -> ArchiveProposals:
    """Local parse: completed tasks grouped by slice."""
    groups = group_tasks_by_slice(find_completed_tasks(tasks_content))
    return ArchiveProposals(workflow_name=workflow_name, groups=groups)


def parse_archive_completed_response(
    text: str,
    tasks_content: str,
    workflow_name: str = "archive-completed",
) -> ArchiveProposals:
    """Regroup local tasks as the response suggests.

    Response tasks are resolved by ``lineNumber`` against the local scan;
    any failure falls back to local grouping so archiving stays possible.
    """
    local = find_completed_tasks(tasks_content)
    fallback = ArchiveProposals(workflow_name=workflow_name, groups=group_tasks_by_slice(local))
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Archive response not parseable, using local grouping: %s", exc)
        return fallback
    if not isinstance(data.get("groups"), list):
        logger.warning("Archive response missing groups, using local grouping")
        return fallback

    by_line = {t.line_number: t for t in local}
    claimed: set[int] = set()

    def resolve(refs: list[_LineRef]) -> list[CompletedTask]:
        found = []
        for ref in refs:
            task = by_line.get(ref.line_number)
            if task is not None and ref.line_number not in claimed:
                claimed.add(ref.line_number)
                found.append(task)
        return found

    groups: list[ArchiveGroup] = []
    for item in validate_items(data["groups"], _GroupItem, "archive group"):
        members = resolve(item.tasks)
        if not members:
            continue
        groups.append(
            ArchiveGroup(
                slice_ref=optional_text(item.slice_ref),
                slice_name=optional_text(item.slice_name),
                tasks=members,
                summary=optional_text(item.summary),
            )
        )
    standalone = resolve(validate_items(data.get("standaloneTasks"), _LineRef, "standalone task"))
    # Completed tasks the response forgot stay archivable.
    standalone.extend(t for t in local if t.line_number not in claimed)
    if standalone:
        groups.append(ArchiveGroup(tasks=standalone))
    return ArchiveProposals(workflow_name=workflow_name, groups=groups)


def _archived(proposals: ArchiveProposals, selections: list[Selection]) -> list[CompletedTask]:
    by_id = {t.id: t for t in proposals.all_tasks}
    return [by_id[s.entity_id] for s in selections if s.action == ArchiveAction.ARCHIVE.value and s.entity_id in by_id]


def apply_archive_removal(content: str, proposals: ArchiveProposals, selections: list[Selection]) -> str:
    """Remove archived task lines and their sub-items from Tasks.md."""
    to_remove: set[int] = set()
    for task in _archived(proposals, selections):
        to_remove.update(range(task.line_number, task.line_number + 1 + len(task.sub_items)))
    if not to_remove:
        return content
    return join_lines(remove_lines(split_lines(content), to_remove))


def build_archive_additions(proposals: ArchiveProposals, selections: list[Selection]) -> dict[str, list[list[str]]]:
    """Heading -> archived task units (task line plus sub-items), first-seen order."""
    additions: dict[str, list[list[str]]] = {}
    for task in _archived(proposals, selections):
        heading = ArchiveGroup(slice_ref=task.slice_ref).heading
        additions.setdefault(heading, []).append([task.full_line, *task.sub_items])
    return additions


def _completed_work_bounds(lines: list[str]) -> tuple[int, int] | None:
    for i, line in enumerate(lines):
        if is_completed_work_heading(line):
            for j in range(i + 1, len(lines)):
                heading = match_heading(lines[j])
                if heading is not None and heading.level <= 2:
                    return i, j
            return i, len(lines)
    return None


def apply_archive_additions(archive_content: str, additions: dict[str, list[list[str]]]) -> str:
    """Add archived tasks under ``## Completed Work``.

    An existing ``### <heading>`` is appended to and a task whose line is
    already under it is not repeated. New headings go to the top of the
    section.
    """
    if not additions:
        return archive_content
    lines = split_lines(archive_content)
    bounds = _completed_work_bounds(lines)
    if bounds is None:
        at = frontmatter_end(lines)
        lines[at:at] = ["", COMPLETED_WORK_HEADING, ""]
        bounds = (at + 1, at + 3)
    section_start, section_end = bounds

    new_headings: list[str] = []
    for heading, units in additions.items():
        existing = next((i for i in range(section_start + 1, section_end) if lines[i].strip() == heading), None)
        if existing is None:
            new_headings.extend(["", heading, *(line for unit in units for line in unit), ""])
            continue
        sub_end = existing + 1
        while sub_end < section_end and not lines[sub_end].startswith("#"):
            sub_end += 1
        present = {lines[i].strip() for i in range(existing + 1, sub_end)}
        fresh = [line for unit in units if unit[0].strip() not in present for line in unit]
        if not fresh:
            continue
        insert_at = sub_end
        while insert_at > existing + 1 and lines[insert_at - 1].strip() == "":
            insert_at -= 1
        lines[insert_at:insert_at] = fresh
        section_end += len(fresh)

    if new_headings:
        insert_at = section_start + 1
        while insert_at < section_end and lines[insert_at].strip() == "":
            insert_at += 1
        if lines[insert_at - 1].strip() == "":
            new_headings = new_headings[1:]
        lines[insert_at:insert_at] = new_headings
    return join_lines(lines)
