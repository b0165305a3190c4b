"""Ideas-groom family: turn Ideas.md sections into Tasks.md entries."""

import logging
import re

from pydantic import Field

from docwf.domain.models.proposals import Destination, IdeasGroomProposals, IdeaTask, Selection, TaskSection
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.markdown import split_lines
from docwf.domain.parsing.tasks_document import (
    find_task_section,
    format_task_line,
    insert_into_destinations,
    parse_destination,
)
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)


class _IdeaItem(WireModel):
    text: str = Field(min_length=1)
    idea_heading: str = ""
    idea_context: str | None = None
    suggested_destination: str | None = None
    suggested_slice_link: str | None = None
    reasoning: str | None = None
    existing_similar: str | None = None


def clean_heading(heading: str) -> str:
    return re.sub(r"^#+\s*", "", heading).strip()


def idea_source_comment(task: IdeaTask) -> str:
    return f"<!-- from Ideas.md: {clean_heading(task.idea_heading)} -->"


def parse_ideas_groom_response(text: str, workflow_name: str = "ideas-groom") -> IdeasGroomProposals:
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Ideas groom response not parseable: %s", exc)
        return IdeasGroomProposals(workflow_name=workflow_name, success=False, error=str(exc))

    if not isinstance(data.get("tasks"), list):
        return IdeasGroomProposals(workflow_name=workflow_name, success=False, error="Response missing tasks array")

    tasks = [
        IdeaTask(
            id=f"ideas-groom-{idx}",
            text=item.text.strip(),
            idea_heading=item.idea_heading,
            idea_context=optional_text(item.idea_context),
            suggested_destination=parse_destination(item.suggested_destination),
            suggested_slice_link=optional_text(item.suggested_slice_link),
            reasoning=optional_text(item.reasoning),
            existing_similar=optional_text(item.existing_similar),
        )
        for idx, item in enumerate(validate_items(data["tasks"], _IdeaItem, "idea"))
    ]
    return IdeasGroomProposals(workflow_name=workflow_name, tasks=tasks)


def detect_moved_ideas(proposals: IdeasGroomProposals, tasks_content: str) -> IdeasGroomProposals:
    """Fill ``moved_to`` for ideas whose source comment already sits in Tasks.md."""
    lines = split_lines(tasks_content)
    ranges: list[tuple[int, int, Destination]] = []
    for section, destination in (
        (TaskSection.NOW, Destination.NOW),
        (TaskSection.NEXT, Destination.NEXT),
        (TaskSection.LATER, Destination.LATER),
    ):
        span = find_task_section(lines, section)
        if span is not None:
            ranges.append((span.start, span.end, destination))

    updated: list[IdeaTask] = []
    for task in proposals.tasks:
        marker = idea_source_comment(task)
        moved_to = None
        for i, line in enumerate(lines):
            if marker not in line:
                continue
            moved_to = next((dest for start, end, dest in ranges if start <= i < end), None)
            if moved_to is not None:
                break
        updated.append(task.model_copy(update={"moved_to": moved_to}))
    return proposals.model_copy(update={"tasks": updated})


def apply_ideas_groom_selections(
    content: str,
    proposals: IdeasGroomProposals,
    selections: list[Selection],
) -> str:
    """Insert selected ideas into Now/Next/Later, tagged with their source heading."""
    by_id = {t.id: t for t in proposals.tasks}
    additions = []
    for selection in selections:
        task = by_id.get(selection.entity_id)
        if task is None:
            continue
        destination = parse_destination(selection.action, default=task.suggested_destination)
        text = selection.text or task.text
        link = selection.slice_link if selection.slice_link is not None else task.suggested_slice_link
        additions.append((destination, format_task_line(text, link, idea_source_comment(task))))
    return insert_into_destinations(content, additions)
