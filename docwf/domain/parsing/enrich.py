"""Enrich family: add a blockquote of handoff context under existing tasks.

An enriched task looks like::

    - [ ] Add OAuth login [[Roadmap#VS2 — Auth]]

    > **Why:** ...
    > **Considerations:**
    > - ...

A task whose next non-blank line starts with ``>`` counts as enriched and is
never enriched again.
"""

import logging

from pydantic import Field

from docwf.domain.models.proposals import (
    EnrichmentContent,
    EnrichProposals,
    ReviewAction,
    Selection,
    TaskEnrichment,
)
from docwf.domain.parsing.json_extractor import JsonExtractionError, extract_json_object
from docwf.domain.parsing.markdown import split_lines
from docwf.domain.parsing.recognizers import (
    extract_task_text,
    is_task_line,
    match_unchecked_task,
    normalize_task_text,
)
from docwf.domain.parsing.wire import WireModel, optional_text, validate_items

logger = logging.getLogger(__name__)


class _EnrichmentBody(WireModel):
    why: str = ""
    considerations: list[str] = Field(default_factory=list)
    acceptance: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    prompt: str = ""


class _EnrichmentItem(WireModel):
    original_task: str = ""
    task_text: str = Field(min_length=1)
    slice_link: str | None = None
    enrichment: _EnrichmentBody = Field(default_factory=_EnrichmentBody)
    confidence_score: float = 0.0
    confidence_note: str | None = None


def _to_content(body: _EnrichmentBody) -> EnrichmentContent:
    return EnrichmentContent(
        why=body.why.strip(),
        considerations=body.considerations,
        acceptance=body.acceptance,
        constraints=body.constraints,
        prompt=body.prompt,
    )


def parse_enrich_tasks_response(text: str, workflow_name: str = "enrich-tasks") -> EnrichProposals:
    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Enrich response not parseable: %s", exc)
        return EnrichProposals(workflow_name=workflow_name, success=False, error=str(exc))

    if not isinstance(data.get("enrichments"), list):
        return EnrichProposals(workflow_name=workflow_name, success=False, error="Response missing enrichments array")

    enrichments = [
        TaskEnrichment(
            id=f"enrich-{idx}",
            original_task=item.original_task,
            task_text=item.task_text.strip(),
            slice_link=optional_text(item.slice_link),
            enrichment=_to_content(item.enrichment),
            confidence_score=min(max(item.confidence_score, 0.0), 1.0),
            confidence_note=optional_text(item.confidence_note),
        )
        for idx, item in enumerate(validate_items(data["enrichments"], _EnrichmentItem, "enrichment"))
    ]
    summary = data.get("summary")
    raw_reasons = summary.get("skipReasons") if isinstance(summary, dict) else None
    skip_reasons = [str(r) for r in raw_reasons if r] if isinstance(raw_reasons, list) else []
    return EnrichProposals(workflow_name=workflow_name, enrichments=enrichments, skip_reasons=skip_reasons)


def _has_blockquote_after(lines: list[str], index: int) -> bool:
    j = index + 1
    while j < len(lines):
        candidate = lines[j].strip()
        if candidate == "":
            j += 1
            continue
        return candidate.startswith(">")
    return False


def detect_existing_enrichments(content: str) -> set[str]:
    """Texts of tasks that already carry an enrichment blockquote."""
    lines = split_lines(content)
    found: set[str] = set()
    for i, line in enumerate(lines):
        if not is_task_line(line) or not _has_blockquote_after(lines, i):
            continue
        text = extract_task_text(line)
        if text:
            found.add(text)
    return found


def find_unenriched_tasks(content: str) -> list[str]:
    """Open tasks still lacking an enrichment block, in document order."""
    lines = split_lines(content)
    tasks: list[str] = []
    for i, line in enumerate(lines):
        if match_unchecked_task(line) is None or _has_blockquote_after(lines, i):
            continue
        text = extract_task_text(line)
        if text:
            tasks.append(text)
    return tasks


def format_enrichment_block(content: EnrichmentContent) -> list[str]:
    block = [f"> **Why:** {content.why}"]
    if content.considerations:
        block.append("> **Considerations:**")
        block.extend(f"> - {item}" for item in content.considerations)
    if content.acceptance:
        block.append("> **Acceptance:**")
        block.extend(f"> - {item}" for item in content.acceptance)
    if content.constraints:
        block.append(f"> **Constraints:** {'; '.join(content.constraints)}")
    if content.prompt:
        block.extend([">", "> <details><summary><strong>Execution Prompt</strong></summary>", ">"])
        block.extend(f"> {line}" for line in content.prompt.split("\n"))
        block.extend([">", "> </details>"])
    return block


def apply_enrichments(content: str, proposals: EnrichProposals, selections: list[Selection]) -> str:
    """Insert each accepted enrichment under the task it describes.

    Tasks are matched on normalised text; an already-enriched task is left
    alone.
    """
    accepted = {s.entity_id for s in selections if s.action == ReviewAction.ACCEPT.value}
    by_text = {
        normalize_task_text(e.task_text): e for e in proposals.enrichments if e.id in accepted
    }
    if not by_text:
        return content

    lines = split_lines(content)
    result: list[str] = []
    changed = False
    for i, line in enumerate(lines):
        result.append(line)
        if not is_task_line(line):
            continue
        text = extract_task_text(line)
        enrichment = by_text.get(normalize_task_text(text)) if text else None
        if enrichment is None or _has_blockquote_after(lines, i):
            continue
        result.extend(["", *format_enrichment_block(enrichment.enrichment), ""])
        changed = True
    return "\n".join(result) if changed else content
