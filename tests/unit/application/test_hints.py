import pytest

from docwf.application.hints import hint_for


@pytest.mark.parametrize(
    "count,message",
    [
        (1, "1 task added! Enrich them for AI handoff?"),
        (3, "3 tasks added! Enrich them for AI handoff?"),
    ],
)
def test_plan_work_suggests_enrich(count, message):
    hint = hint_for("plan-work", count)
    assert hint.next_workflow == "enrich-tasks"
    assert hint.message == message


def test_init_suggests_plan_work():
    assert hint_for("init-from-summary").next_workflow == "plan-work"


def test_no_hint_for_other_workflows():
    assert hint_for("archive-completed", 5) is None
