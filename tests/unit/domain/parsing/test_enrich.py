import json

from docwf.domain.models.proposals import EnrichmentContent, Selection
from docwf.domain.parsing.enrich import (
    apply_enrichments,
    detect_existing_enrichments,
    find_unenriched_tasks,
    format_enrichment_block,
    parse_enrich_tasks_response,
)

TASKS = """## Next
- [ ] Add OAuth login [[Roadmap#VS2 — Auth]]
- [ ] Write docs

> **Why:** Users need docs.

- [x] Old work
"""

RESPONSE = json.dumps(
    {
        "enrichments": [
            {
                "taskText": "Add OAuth login",
                "enrichment": {"why": "Single sign-on.", "considerations": ["Token refresh"], "acceptance": ["Login works"]},
                "confidenceScore": 1.7,
            },
            {"taskText": ""},
        ],
        "summary": {"skipReasons": ["Write docs: already enriched", ""]},
    }
)


def test_parse_clamps_confidence_and_reads_skip_reasons():
    proposals = parse_enrich_tasks_response(RESPONSE)
    assert len(proposals.enrichments) == 1
    enrichment = proposals.enrichments[0]
    assert enrichment.id == "enrich-0"
    assert enrichment.confidence_score == 1.0
    assert enrichment.confidence_label == "High"
    assert proposals.skip_reasons == ["Write docs: already enriched"]


def test_parse_missing_array():
    assert parse_enrich_tasks_response('{"summary": {}}').error == "Response missing enrichments array"


def test_detection_of_enriched_tasks():
    assert detect_existing_enrichments(TASKS) == {"Write docs"}
    assert find_unenriched_tasks(TASKS) == ["Add OAuth login"]


def test_format_enrichment_block():
    block = format_enrichment_block(
        EnrichmentContent(why="Because.", constraints=["No new deps", "Py3.10"], prompt="Do it\ncarefully")
    )
    assert block[0] == "> **Why:** Because."
    assert "> **Constraints:** No new deps; Py3.10" in block
    assert "> Do it" in block
    assert block[-1] == "> </details>"


def test_apply_inserts_block_under_task():
    proposals = parse_enrich_tasks_response(RESPONSE)
    result = apply_enrichments(TASKS, proposals, proposals.default_selections())
    assert "- [ ] Add OAuth login [[Roadmap#VS2 — Auth]]\n\n> **Why:** Single sign-on.\n> **Considerations:**\n> - Token refresh" in result
    assert find_unenriched_tasks(result) == []


def test_apply_skips_rejected_and_enriched():
    proposals = parse_enrich_tasks_response(RESPONSE)
    rejected = [Selection(entity_id="enrich-0", action="reject")]
    assert apply_enrichments(TASKS, proposals, rejected) is TASKS
    once = apply_enrichments(TASKS, proposals, proposals.default_selections())
    assert apply_enrichments(once, proposals, proposals.default_selections()) == once
