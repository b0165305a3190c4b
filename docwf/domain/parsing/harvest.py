"""Harvest family: actionable tasks mined from Log.md, Ideas.md and friends."""

import logging

from pydantic import Field

from docwf.domain.models.proposals import HarvestedTask, HarvestProposals, Selection
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.tasks_document import format_task_line, insert_into_destinations, parse_destination
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)


class _HarvestItem(WireModel):
    text: str = Field(min_length=1)
    source_file: str = "unknown"
    source_context: str | None = None
    source_date: str | None = None
    suggested_destination: str | None = None
    slice_link: str | None = None
    reasoning: str | None = None
    existing_similar: str | None = None


def parse_harvest_response(text: str, workflow_name: str = "harvest-tasks") -> HarvestProposals:
    """Parse ``{"tasks": [...], "summary": {...}}``.

    Never raises; an unparseable response comes back with ``success=False``.
    """
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Harvest response not parseable: %s", exc)
        return HarvestProposals(workflow_name=workflow_name, success=False, error=str(exc))

    if not isinstance(data.get("tasks"), list):
        return HarvestProposals(workflow_name=workflow_name, success=False, error="Response missing tasks array")

    tasks = [
        HarvestedTask(
            id=f"harvest-{idx}",
            text=item.text.strip(),
            source_file=item.source_file,
            source_context=optional_text(item.source_context),
            source_date=optional_text(item.source_date),
            suggested_destination=parse_destination(item.suggested_destination),
            slice_link=optional_text(item.slice_link),
            reasoning=optional_text(item.reasoning),
            existing_similar=optional_text(item.existing_similar),
        )
        for idx, item in enumerate(validate_items(data["tasks"], _HarvestItem, "harvest task"))
    ]
    return HarvestProposals(workflow_name=workflow_name, tasks=tasks)


def harvest_source_comment(task: HarvestedTask) -> str:
    if task.source_date:
        return f"<!-- from {task.source_file} {task.source_date} -->"
    return f"<!-- from {task.source_file} -->"


def apply_harvest_selections(content: str, proposals: HarvestProposals, selections: list[Selection]) -> str:
    """Insert each selected task into its chosen Tasks.md section."""
    by_id = {t.id: t for t in proposals.tasks}
    additions = []
    for selection in selections:
        task = by_id.get(selection.entity_id)
        if task is None:
            continue
        destination = parse_destination(selection.action, default=task.suggested_destination)
        text = selection.text or task.text
        link = selection.slice_link if selection.slice_link is not None else task.slice_link
        additions.append((destination, format_task_line(text, link, harvest_source_comment(task))))
    return insert_into_destinations(content, additions)
