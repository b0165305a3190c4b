"""Declarative state machine for combined workflow steps.

Key concepts:
- (step status, command) -> StepTransition
- Steps run strictly in order; a skipped step counts as handled
- skip() only marks the current step; advance() moves the cursor
- The stepper never looks at document content; skip decisions come in
  from outside with their reason
"""

import logging
from dataclasses import dataclass
from enum import Enum

from docwf.domain.errors import InvalidDefinition
from docwf.domain.models.combined_state import (
    CombinedSummary,
    CombinedWorkflowState,
    CombinedWorkflowStep,
    StepStatus,
)
from docwf.domain.models.workflow_definition import WorkflowDefinition

logger = logging.getLogger(__name__)


class StepCommand(str, Enum):
    RUN = "run"
    SKIP = "skip"
    ADVANCE = "advance"


@dataclass(frozen=True, slots=True)
class StepTransition:
    """Result of a step command.

    Attributes:
        status: Status the current step moves to
        move_next: Whether the cursor moves to the following step
    """

    status: StepStatus
    move_next: bool


_TransitionKey = tuple[StepStatus, StepCommand]


class CombinedStepper:
    """Walks one combined workflow's steps.

    Usage:
        stepper = CombinedStepper()
        stepper.init(definition)
        stepper.mark_running()
        ...
        stepper.advance()   # or stepper.skip("reason"), then stepper.advance()
    """

    _TRANSITIONS: dict[_TransitionKey, StepTransition] = {
        # === PENDING ===
        (StepStatus.PENDING, StepCommand.RUN): StepTransition(StepStatus.RUNNING, move_next=False),
        (StepStatus.PENDING, StepCommand.SKIP): StepTransition(StepStatus.SKIPPED, move_next=False),
        (StepStatus.PENDING, StepCommand.ADVANCE): StepTransition(StepStatus.PENDING, move_next=True),
        # === RUNNING ===
        (StepStatus.RUNNING, StepCommand.RUN): StepTransition(StepStatus.RUNNING, move_next=False),
        (StepStatus.RUNNING, StepCommand.SKIP): StepTransition(StepStatus.SKIPPED, move_next=False),
        (StepStatus.RUNNING, StepCommand.ADVANCE): StepTransition(StepStatus.COMPLETED, move_next=True),
        # === COMPLETED: terminal, RUN is a no-op ===
        (StepStatus.COMPLETED, StepCommand.RUN): StepTransition(StepStatus.COMPLETED, move_next=False),
        # === SKIPPED: RUN is a no-op, ADVANCE moves past it ===
        (StepStatus.SKIPPED, StepCommand.RUN): StepTransition(StepStatus.SKIPPED, move_next=False),
        (StepStatus.SKIPPED, StepCommand.ADVANCE): StepTransition(StepStatus.SKIPPED, move_next=True),
    }

    def __init__(self) -> None:
        self._state: CombinedWorkflowState | None = None

    @classmethod
    def get_transition(cls, status: StepStatus, command: StepCommand) -> StepTransition | None:
        return cls._TRANSITIONS.get((status, command))

    @property
    def state(self) -> CombinedWorkflowState | None:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._state is not None and not self.is_complete()

    def init(self, definition: WorkflowDefinition) -> CombinedWorkflowState:
        """
        Start tracking a combined workflow, replacing any previous one.

        Raises:
            InvalidDefinition: If the definition has no combined steps
        """
        if not definition.combined_steps:
            raise InvalidDefinition(f"Workflow '{definition.name}' has no combined steps")
        self._state = CombinedWorkflowState(
            combined_name=definition.name,
            display_name=definition.display_name,
            steps=[CombinedWorkflowStep(workflow_name=name) for name in definition.combined_steps],
        )
        logger.info("Combined workflow %s started with %d steps", definition.name, len(self._state.steps))
        return self._state

    def reset(self) -> None:
        self._state = None

    def current_step(self) -> CombinedWorkflowStep | None:
        return self._state.current_step if self._state else None

    def step_label(self) -> str | None:
        """``Step i of n`` for the current step."""
        if self._state is None or self._state.current_step is None:
            return None
        return f"Step {self._state.current_step_index + 1} of {len(self._state.steps)}"

    def _apply(self, command: StepCommand, reason: str | None = None) -> CombinedWorkflowStep | None:
        step = self.current_step()
        if step is None:
            return None
        transition = self.get_transition(step.status, command)
        if transition is None:
            raise InvalidDefinition(f"Cannot {command.value} step '{step.workflow_name}' in status {step.status.value}")
        step.status = transition.status
        if command == StepCommand.SKIP:
            step.skip_reason = reason
        if transition.move_next:
            self._state.current_step_index += 1
        return step

    def mark_running(self) -> CombinedWorkflowStep | None:
        return self._apply(StepCommand.RUN)

    def skip(self, reason: str) -> CombinedWorkflowStep | None:
        step = self._apply(StepCommand.SKIP, reason)
        if step is not None:
            logger.info("Skipped step %s: %s", step.workflow_name, reason)
        return step

    def advance(self) -> CombinedWorkflowStep | None:
        return self._apply(StepCommand.ADVANCE)

    def is_complete(self) -> bool:
        return self._state is not None and self._state.current_step_index >= len(self._state.steps)

    def summary(self) -> CombinedSummary | None:
        if self._state is None:
            return None
        steps = self._state.steps
        return CombinedSummary(
            combined_name=self._state.combined_name,
            display_name=self._state.display_name,
            completed=sum(1 for s in steps if s.status == StepStatus.COMPLETED),
            skipped=sum(1 for s in steps if s.status == StepStatus.SKIPPED),
            skip_reasons={s.workflow_name: s.skip_reason for s in steps if s.skip_reason},
        )
