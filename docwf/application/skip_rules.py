"""Named preconditions that let a combined step be skipped.

Each predicate returns a human-readable reason when the step should be
skipped, or None when it should run.
"""

from collections.abc import Callable
from dataclasses import dataclass

from docwf.domain.errors import MissingFile
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.workflow_definition import SkipPredicate, WorkflowDefinition
from docwf.domain.parsing.potential_tasks import has_actionable_potential_tasks
from docwf.domain.parsing.promote_next import has_active_now_task

NO_REPOSITORY_REASON = "No GitHub repository configured"
NOW_HAS_TASKS_REASON = "Current section already has tasks"
NO_POTENTIAL_TASKS_REASON = (
    'No actionable potential tasks found in Log.md. Run "Generate Tasks" first to create some.'
)


@dataclass(frozen=True, slots=True)
class SkipContext:
    github_repo: str | None
    read_document: Callable[[DocumentName], str]

    def read_or_empty(self, name: DocumentName) -> str:
        try:
            return self.read_document(name)
        except MissingFile:
            return ""


def _no_repository(ctx: SkipContext) -> str | None:
    return None if ctx.github_repo else NO_REPOSITORY_REASON


def _now_section_has_tasks(ctx: SkipContext) -> str | None:
    return NOW_HAS_TASKS_REASON if has_active_now_task(ctx.read_or_empty(DocumentName.TASKS)) else None


def _no_actionable_potential_tasks(ctx: SkipContext) -> str | None:
    if has_actionable_potential_tasks(ctx.read_or_empty(DocumentName.LOG)):
        return None
    return NO_POTENTIAL_TASKS_REASON


SKIP_RULES: dict[SkipPredicate, Callable[[SkipContext], str | None]] = {
    SkipPredicate.NO_REPOSITORY: _no_repository,
    SkipPredicate.NOW_SECTION_HAS_TASKS: _now_section_has_tasks,
    SkipPredicate.NO_ACTIONABLE_POTENTIAL_TASKS: _no_actionable_potential_tasks,
}


def evaluate_skip(definition: WorkflowDefinition, step_name: str, ctx: SkipContext) -> str | None:
    """First matching skip reason for a step of a combined workflow, if any."""
    for predicate in definition.skip_when.get(step_name, ()):
        reason = SKIP_RULES[predicate](ctx)
        if reason is not None:
            return reason
    return None
