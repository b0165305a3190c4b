"""Domain models for the planning-document workflow engine."""

from .documents import DocumentName
from .workflow_definition import Confirmation, Risk, SkipPredicate, WorkflowDefinition
from .combined_state import (
    CombinedSummary,
    CombinedWorkflowState,
    CombinedWorkflowStep,
    StepStatus,
)
from .proposals import ProposalSet, Selection, WorkflowFamily
from .results import EngineResult, EngineStatus, WorkflowHint, WorkflowRequest


__all__ = [
    "DocumentName",
    "Confirmation",
    "Risk",
    "SkipPredicate",
    "WorkflowDefinition",
    "CombinedSummary",
    "CombinedWorkflowState",
    "CombinedWorkflowStep",
    "StepStatus",
    "ProposalSet",
    "Selection",
    "WorkflowFamily",
    "EngineResult",
    "EngineStatus",
    "WorkflowHint",
    "WorkflowRequest",
]
