"""Plan-work family: enriched tasks from a work description, plus new slices.

Response shape::

    {"tasks": [{"text": ..., "destination": "next", "sliceLink": ...,
                "enrichment": {"why": ..., "considerations": [...], ...}}],
     "suggestedSlices": [{"vsId": "VS4", "name": ..., "milestone": ...}],
     "summary": {"tasksGenerated": 1, "notes": ...}}
"""

import logging
import re

from pydantic import Field, field_validator

from docwf.domain.models.proposals import (
    Destination,
    EnrichmentContent,
    PlannedTask,
    PlanWorkProposals,
    ReviewAction,
    Selection,
    SuggestedSlice,
)
from docwf.domain.parsing.enrich import format_enrichment_block
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.roadmap import append_vertical_slices, next_slice_number, parse_roadmap
from docwf.domain.parsing.tasks_document import format_task_line, insert_into_destinations, parse_destination
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)

_VS_ID_RE = re.compile(r"^(?:VS)?\s*(\d+)$", re.IGNORECASE)


class _Enrichment(WireModel):
    why: str = ""
    considerations: list[str] = Field(default_factory=list)
    acceptance: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class _PlannedItem(WireModel):
    text: str = Field(min_length=1)
    destination: str | None = None
    slice_link: str | None = None
    enrichment: _Enrichment = Field(default_factory=_Enrichment)


class _SliceItem(WireModel):
    vs_id: str | None = None
    vs_number: str | int | None = None
    name: str = Field(min_length=1)
    milestone: str | None = None
    description: str | None = None

    @field_validator("vs_number", mode="before")
    @classmethod
    def _as_text(cls, value):
        return str(value) if value is not None else None


def _normalize_vs_id(raw: str | None) -> str | None:
    if raw is None:
        return None
    m = _VS_ID_RE.match(raw.strip())
    return f"VS{int(m.group(1))}" if m else None


def parse_plan_work_response(
    text: str,
    roadmap_content: str = "",
    workflow_name: str = "plan-work",
) -> PlanWorkProposals:
    """Parse planned tasks and suggested slices.

    A slice without a usable ``VS<n>`` id is numbered after the highest slice
    already in ``roadmap_content``.
    """
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Plan-work response not parseable: %s", exc)
        return PlanWorkProposals(workflow_name=workflow_name, success=False, error=str(exc))

    if not isinstance(data.get("tasks"), list):
        return PlanWorkProposals(workflow_name=workflow_name, success=False, error="Response missing tasks array")

    tasks = [
        PlannedTask(
            id=f"plan-{idx}",
            text=item.text.strip(),
            destination=parse_destination(item.destination, default=Destination.NEXT),
            slice_link=optional_text(item.slice_link),
            enrichment=EnrichmentContent(
                why=item.enrichment.why.strip(),
                considerations=item.enrichment.considerations,
                acceptance=item.enrichment.acceptance,
                constraints=item.enrichment.constraints,
            ),
        )
        for idx, item in enumerate(validate_items(data["tasks"], _PlannedItem, "planned task"))
    ]

    next_number = next_slice_number(parse_roadmap(roadmap_content))
    slices: list[SuggestedSlice] = []
    for idx, item in enumerate(validate_items(data.get("suggestedSlices"), _SliceItem, "suggested slice")):
        vs_id = _normalize_vs_id(item.vs_id) or _normalize_vs_id(item.vs_number)
        if vs_id is None:
            vs_id = f"VS{next_number}"
            next_number += 1
        slices.append(
            SuggestedSlice(
                id=f"slice-{idx}",
                vs_id=vs_id,
                name=item.name.strip(),
                milestone=optional_text(item.milestone),
                description=optional_text(item.description),
            )
        )

    summary = data.get("summary")
    notes = optional_text(summary.get("notes")) if isinstance(summary, dict) else None
    return PlanWorkProposals(workflow_name=workflow_name, tasks=tasks, suggested_slices=slices, notes=notes)


def format_planned_task(task: PlannedTask, slice_link: str | None = None) -> str:
    """Task line followed by its enrichment blockquote."""
    lines = [format_task_line(task.text, slice_link)]
    if task.enrichment.why or task.enrichment.considerations or task.enrichment.acceptance:
        lines.append("")
        lines.extend(format_enrichment_block(task.enrichment))
        lines.append("")
    return "\n".join(lines)


def apply_planned_tasks(content: str, proposals: PlanWorkProposals, selections: list[Selection]) -> str:
    """Insert selected tasks into Tasks.md; the action is the destination."""
    by_id = {t.id: t for t in proposals.tasks}
    additions = []
    for selection in selections:
        task = by_id.get(selection.entity_id)
        if task is None:
            continue
        destination = parse_destination(selection.action, default=task.destination)
        link = selection.slice_link if selection.slice_link is not None else task.slice_link
        additions.append((destination, format_planned_task(task, link)))
    return insert_into_destinations(content, additions)


def apply_suggested_slices(roadmap_content: str, proposals: PlanWorkProposals, selections: list[Selection]) -> str:
    accepted = {s.entity_id for s in selections if s.action == ReviewAction.ACCEPT.value}
    chosen = [s for s in proposals.suggested_slices if s.id in accepted]
    if not chosen:
        return roadmap_content
    return append_vertical_slices(roadmap_content, chosen)
