import json

from docwf.domain.models.proposals import Destination, Selection
from docwf.domain.parsing.plan_work import (
    apply_planned_tasks,
    apply_suggested_slices,
    format_planned_task,
    parse_plan_work_response,
)

ROADMAP = "# Roadmap\n\n### M1 — Start\n**Status:** active\n\n#### VS1 — Core\n#### VS2 — Storage\n"
TASKS = "# Tasks\n\n## Now\n\n## Next\n- [ ] Existing\n"

RESPONSE = json.dumps(
    {
        "tasks": [
            {
                "text": "Add export endpoint",
                "destination": "now",
                "sliceLink": "[[Roadmap#VS3 — Export]]",
                "enrichment": {"why": "Users want CSV.", "acceptance": ["CSV downloads"]},
            },
            {"text": "Write export docs"},
        ],
        "suggestedSlices": [
            {"vsId": "vs 7", "name": "Export"},
            {"vsNumber": 9, "name": "Import"},
            {"name": "Sharing", "milestone": "M1"},
        ],
        "summary": {"tasksGenerated": 2, "notes": "Split into two tasks."},
    }
)


def test_parse_tasks_and_slices():
    proposals = parse_plan_work_response(RESPONSE, ROADMAP)
    assert [t.destination for t in proposals.tasks] == [Destination.NOW, Destination.NEXT]
    assert [s.vs_id for s in proposals.suggested_slices] == ["VS7", "VS9", "VS3"]
    assert proposals.notes == "Split into two tasks."
    assert proposals.entity_ids() == ["plan-0", "plan-1", "slice-0", "slice-1", "slice-2"]


def test_parse_failure():
    assert not parse_plan_work_response("nope").success


def test_format_planned_task_with_enrichment():
    task = parse_plan_work_response(RESPONSE).tasks[0]
    assert format_planned_task(task, task.slice_link) == (
        "- [ ] Add export endpoint [[Roadmap#VS3 — Export]]\n"
        "\n"
        "> **Why:** Users want CSV.\n"
        "> **Acceptance:**\n"
        "> - CSV downloads\n"
    )
    plain = parse_plan_work_response(RESPONSE).tasks[1]
    assert format_planned_task(plain) == "- [ ] Write export docs"


def test_apply_planned_tasks_uses_destination_and_discard():
    proposals = parse_plan_work_response(RESPONSE)
    selections = [
        Selection(entity_id="plan-0", action="now"),
        Selection(entity_id="plan-1", action="discard"),
    ]
    result = apply_planned_tasks(TASKS, proposals, selections)
    assert result.index("Add export endpoint") < result.index("## Next")
    assert "Write export docs" not in result


def test_apply_suggested_slices_only_accepted():
    proposals = parse_plan_work_response(RESPONSE, ROADMAP)
    selections = [
        Selection(entity_id="slice-0", action="accept"),
        Selection(entity_id="slice-1", action="reject"),
    ]
    result = apply_suggested_slices(ROADMAP, proposals, selections)
    assert "#### VS7 — Export" in result
    assert "Import" not in result
    assert apply_suggested_slices(ROADMAP, proposals, []) is ROADMAP
