from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from docwf.domain.models.combined_state import CombinedSummary
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import ProposalSet


class EngineStatus(str, Enum):
    """Where the engine stands after an operation returns."""

    AWAITING_RESPONSE = "awaiting_response"          # text generation needed
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # proposals pending review
    APPLIED = "applied"                              # selections written
    NOTHING_FOUND = "nothing_found"                  # parse yielded no entities
    COMPLETED = "completed"                          # combined workflow finished
    CANCELLED = "cancelled"                          # user declined or cancelled
    FAILED = "failed"                                # missing file / provider error


class WorkflowRequest(BaseModel):
    """What the engine hands to the text-generation collaborator.

    ``instruction`` is the workflow intent selected for this step; prompt
    wording beyond that belongs to the collaborator. ``documents`` holds the
    current content of the files the workflow reads.
    """

    workflow_name: str
    step_name: str
    instruction: str
    rules: list[str] = Field(default_factory=list)
    documents: dict[str, str] = Field(default_factory=dict)
    user_input: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class WorkflowHint(BaseModel):
    model_config = {"frozen": True}

    next_workflow: str
    message: str


class EngineResult(BaseModel):
    workflow_name: str
    status: EngineStatus
    step_name: str | None = None
    request: WorkflowRequest | None = None
    proposals: ProposalSet | None = None
    messages: list[str] = Field(default_factory=list)
    written_files: list[DocumentName] = Field(default_factory=list)
    summary: CombinedSummary | None = None
    hint: WorkflowHint | None = None
    error_message: str | None = None
