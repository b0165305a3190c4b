"""Execution-mode and family selection for workflow definitions."""

from enum import Enum

from docwf.domain.errors import DefinitionNotFound
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import WorkflowFamily
from docwf.domain.models.workflow_definition import WorkflowDefinition


class ExecutionMode(str, Enum):
    NON_AI = "non_ai"                # local parse of existing content
    COMBINED = "combined"            # steps run through the combined stepper
    FOCUSED_FILE = "focused_file"    # guided fill of one document via diffs
    INPUT_MODAL = "input_modal"      # needs user input before generation
    STANDARD_AI = "standard_ai"      # one generation call, one proposal set


FOCUSED_FILE_WORKFLOWS: dict[str, DocumentName] = {
    "fill-overview": DocumentName.OVERVIEW,
    "roadmap-fill": DocumentName.ROADMAP,
    "tasks-fill": DocumentName.TASKS,
}
INPUT_MODAL_WORKFLOWS = frozenset({"init-from-summary", "plan-work"})

_FAMILIES: dict[str, WorkflowFamily] = {
    "title-entries": WorkflowFamily.FILE_DIFF,
    "generate-tasks": WorkflowFamily.FILE_DIFF,
    "fill-overview": WorkflowFamily.FILE_DIFF,
    "roadmap-fill": WorkflowFamily.FILE_DIFF,
    "tasks-fill": WorkflowFamily.FILE_DIFF,
    "groom-tasks": WorkflowFamily.POTENTIAL_TASKS,
    "harvest-tasks": WorkflowFamily.HARVEST,
    "ideas-groom": WorkflowFamily.IDEAS_GROOM,
    "sync-commits": WorkflowFamily.SYNC_COMMITS,
    "archive-completed": WorkflowFamily.ARCHIVE_COMPLETED,
    "promote-next-task": WorkflowFamily.PROMOTE_NEXT,
    "enrich-tasks": WorkflowFamily.ENRICH,
    "plan-work": WorkflowFamily.PLAN_WORK,
    "init-from-summary": WorkflowFamily.INIT_SUMMARY,
}


def determine_execution_mode(definition: WorkflowDefinition) -> ExecutionMode:
    if not definition.uses_ai:
        return ExecutionMode.NON_AI
    if definition.is_combined:
        return ExecutionMode.COMBINED
    if definition.name in FOCUSED_FILE_WORKFLOWS:
        return ExecutionMode.FOCUSED_FILE
    if definition.name in INPUT_MODAL_WORKFLOWS:
        return ExecutionMode.INPUT_MODAL
    return ExecutionMode.STANDARD_AI


def family_for(name: str) -> WorkflowFamily:
    """Map a single (non-combined) workflow onto its parser/applier family.

    Raises:
        DefinitionNotFound: If no family handles the name
    """
    try:
        return _FAMILIES[name]
    except KeyError:
        raise DefinitionNotFound(name) from None
