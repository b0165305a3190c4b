"""Workflow event types for observer pattern notifications."""

from enum import Enum


class WorkflowEventType(str, Enum):
    """Typed engine events for progress reporting."""

    # Workflow lifecycle
    WORKFLOW_STARTED = "workflow_started"
    WORKFLOW_COMPLETED = "workflow_completed"
    WORKFLOW_CANCELLED = "workflow_cancelled"
    WORKFLOW_FAILED = "workflow_failed"

    # Proposals
    PROPOSALS_READY = "proposals_ready"
    SELECTIONS_APPLIED = "selections_applied"

    # Combined workflow steps
    STEP_STARTED = "step_started"
    STEP_SKIPPED = "step_skipped"
    STEP_COMPLETED = "step_completed"
