"""Promote-next family: move one Next/Later task to the top of Now."""

import logging

from pydantic import Field

from docwf.domain.constants import NOW_HEADING, PROMOTION_MATCH_CHARS
from docwf.domain.models.proposals import (
    CandidateTask,
    MilestoneStatusChange,
    PromoteStatus,
    PromotionProposals,
    ReviewAction,
    RoadmapChanges,
    SelectedTask,
    Selection,
    TaskSection,
)
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.markdown import append_section, collect_sub_items, join_lines, split_lines
from docwf.domain.parsing.recognizers import match_slice_ref, match_unchecked_task
from docwf.domain.parsing.sync_commits import normalize_task_section
from docwf.domain.parsing.tasks_document import find_task_section, section_has_unchecked_tasks
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = "Failed to parse AI response"


class _TaskRef(WireModel):
    text: str = Field(min_length=1)
    source_section: str = "next"
    slice_link: str | None = None


class _Candidate(_TaskRef):
    score: int = 0
    note: str = ""


class _StatusChange(WireModel):
    milestone: str
    from_: str = Field(default="planned", alias="from")
    to: str = "active"


class _RoadmapChanges(WireModel):
    should_update_current_focus: bool = False
    new_focus_milestone: str | None = None
    milestone_status_change: _StatusChange | None = None


class _PromoteResponse(WireModel):
    status: str = PromoteStatus.NO_TASKS.value
    selected_task: _TaskRef | None = None
    reasoning: str | None = None
    current_now_task: str | None = None
    message: str | None = None
    roadmap_changes: _RoadmapChanges | None = None


def _section(value: str) -> TaskSection:
    section = normalize_task_section(value)
    return TaskSection.LATER if section == TaskSection.LATER else TaskSection.NEXT


def _failure(workflow_name: str, error: str) -> PromotionProposals:
    return PromotionProposals(
        workflow_name=workflow_name,
        success=False,
        error=error,
        status=PromoteStatus.NO_TASKS,
        message=PARSE_FAILURE_MESSAGE,
    )


def parse_promote_next_response(text: str, workflow_name: str = "promote-next-task") -> PromotionProposals:
    try:
        data = extract_json_object(text)
        response = _PromoteResponse.model_validate(data)
    except (JsonExtractionError, ValueError) as exc:
        logger.warning("Promote response not parseable: %s", exc)
        return _failure(workflow_name, str(exc))

    try:
        status = PromoteStatus(response.status)
    except ValueError:
        return _failure(workflow_name, f"Unknown status: {response.status}")

    selected = None
    if response.selected_task is not None:
        selected = SelectedTask(
            text=response.selected_task.text.strip(),
            source_section=_section(response.selected_task.source_section),
            slice_link=optional_text(response.selected_task.slice_link),
        )
    if status == PromoteStatus.SUCCESS and selected is None:
        return _failure(workflow_name, "Success response without selectedTask")

    candidates = [
        CandidateTask(
            text=c.text,
            source_section=_section(c.source_section),
            slice_link=optional_text(c.slice_link),
            score=c.score,
            note=c.note,
        )
        for c in validate_items(data.get("candidates"), _Candidate, "candidate")
    ]

    changes = None
    if response.roadmap_changes is not None:
        raw_change = response.roadmap_changes.milestone_status_change
        changes = RoadmapChanges(
            should_update_current_focus=response.roadmap_changes.should_update_current_focus,
            new_focus_milestone=optional_text(response.roadmap_changes.new_focus_milestone),
            milestone_status_change=(
                MilestoneStatusChange(milestone=raw_change.milestone, from_status=raw_change.from_, to_status=raw_change.to)
                if raw_change is not None
                else None
            ),
        )

    return PromotionProposals(
        workflow_name=workflow_name,
        status=status,
        selected_task=selected,
        reasoning=optional_text(response.reasoning),
        candidates=candidates,
        current_now_task=optional_text(response.current_now_task),
        message=optional_text(response.message),
        roadmap_changes=changes,
    )


def has_active_now_task(content: str) -> bool:
    return section_has_unchecked_tasks(content, TaskSection.NOW)


def extract_tasks_from_section(content: str, section: TaskSection) -> list[tuple[str, str | None]]:
    """Open tasks of one section as ``(text, slice link)`` pairs."""
    lines = split_lines(content)
    span = find_task_section(lines, section)
    if span is None:
        return []
    tasks = []
    for i in range(span.body_start, span.end):
        text = match_unchecked_task(lines[i])
        if text is None:
            continue
        ref = match_slice_ref(text)
        tasks.append((text, ref.link if ref else None))
    return tasks


def _find_task_line(lines: list[str], text: str, section: TaskSection) -> int | None:
    needle = text[:PROMOTION_MATCH_CHARS]
    order = [section] + [s for s in (TaskSection.NEXT, TaskSection.LATER) if s != section]
    for candidate in order:
        span = find_task_section(lines, candidate)
        if span is None:
            continue
        for i in range(span.body_start, span.end):
            if match_unchecked_task(lines[i]) is not None and needle in lines[i]:
                return i
    return None


def resolve_promotion(proposals: PromotionProposals, tasks_content: str) -> PromotionProposals:
    """Pin the selected task to its line in the current Tasks.md snapshot.

    A selected task that cannot be located turns the proposal into
    ``no_tasks`` so nothing is moved.
    """
    if proposals.status != PromoteStatus.SUCCESS or proposals.selected_task is None:
        return proposals
    lines = split_lines(tasks_content)
    selected = proposals.selected_task
    line_number = _find_task_line(lines, selected.text, selected.source_section)
    if line_number is None:
        logger.warning("Could not find task to promote: %s", selected.text)
        return proposals.model_copy(
            update={"status": PromoteStatus.NO_TASKS, "message": f"Could not find task to promote: {selected.text}"}
        )
    span = find_task_section(lines, selected.source_section)
    stop = span.end if span is not None and span.start < line_number < span.end else None
    resolved = selected.model_copy(
        update={
            "line_number": line_number,
            "sub_item_count": len(collect_sub_items(lines, line_number, stop=stop)),
        }
    )
    return proposals.model_copy(update={"selected_task": resolved})


def apply_task_promotion(content: str, proposals: PromotionProposals, selections: list[Selection]) -> str:
    """Move the accepted task (and its sub-items) to the top of ``## Now``."""
    selected = proposals.selected_task
    if selected is None or selected.line_number is None:
        return content
    accepted = any(s.entity_id == selected.id and s.action == ReviewAction.ACCEPT.value for s in selections)
    if not accepted:
        return content

    lines = split_lines(content)
    start = selected.line_number
    end = start + 1 + selected.sub_item_count
    if start >= len(lines) or match_unchecked_task(lines[start]) is None:
        return content
    moved = lines[start:end]
    del lines[start:end]

    span = find_task_section(lines, TaskSection.NOW)
    if span is None:
        return join_lines(append_section(lines, NOW_HEADING, moved))
    at = span.body_start
    while at < span.end and lines[at].strip() == "":
        at += 1
    lines[at:at] = moved
    return join_lines(lines)
