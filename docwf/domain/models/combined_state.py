from enum import Enum

from pydantic import BaseModel, Field


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class CombinedWorkflowStep(BaseModel):
    workflow_name: str
    status: StepStatus = StepStatus.PENDING
    skip_reason: str | None = None


class CombinedWorkflowState(BaseModel):
    """In-memory progress of one combined workflow.

    Never persisted; owned by a single engine instance.
    """

    combined_name: str
    display_name: str
    steps: list[CombinedWorkflowStep] = Field(default_factory=list)
    current_step_index: int = 0

    @property
    def current_step(self) -> CombinedWorkflowStep | None:
        if self.current_step_index >= len(self.steps):
            return None
        return self.steps[self.current_step_index]


class CombinedSummary(BaseModel):
    """User-facing report produced when a combined workflow finishes."""

    model_config = {"frozen": True}

    combined_name: str
    display_name: str
    completed: int
    skipped: int
    skip_reasons: dict[str, str] = Field(default_factory=dict)

    @property
    def message(self) -> str:
        if self.skipped == 0:
            return f"Completed {self.display_name}"
        return (
            f"Completed {self.display_name}: "
            f"{self.completed} steps completed, {self.skipped} skipped"
        )
