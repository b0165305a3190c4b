"""Follow-up workflow suggestions shown after a workflow applies."""

from collections.abc import Callable
from dataclasses import dataclass

from docwf.domain.models.results import WorkflowHint


@dataclass(frozen=True, slots=True)
class _HintConfig:
    next_workflow: str
    message: Callable[[int], str]


def _tasks_added(count: int) -> str:
    return f"{count} task{'' if count == 1 else 's'} added! Enrich them for AI handoff?"


_HINTS: dict[str, _HintConfig] = {
    "plan-work": _HintConfig("enrich-tasks", _tasks_added),
    "init-from-summary": _HintConfig("plan-work", lambda _count: "Project initialized! Plan your first tasks?"),
}


def hint_for(completed_workflow: str, affected_count: int = 0) -> WorkflowHint | None:
    config = _HINTS.get(completed_workflow)
    if config is None:
        return None
    return WorkflowHint(next_workflow=config.next_workflow, message=config.message(affected_count))
