from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from docwf.domain.models.documents import DocumentName


class Risk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Confirmation(str, Enum):
    """How much human confirmation a workflow needs before files change."""

    NONE = "none"
    PREVIEW = "preview"
    CONFIRM = "confirm"


class SkipPredicate(str, Enum):
    """Named preconditions that let a combined step be skipped."""

    NO_REPOSITORY = "no_repository"
    NOW_SECTION_HAS_TASKS = "now_section_has_tasks"
    NO_ACTIONABLE_POTENTIAL_TASKS = "no_actionable_potential_tasks"


class WorkflowDefinition(BaseModel):
    """Immutable catalog entry describing one workflow.

    Combined workflows list the names of their constituent steps in
    ``combined_steps``; ``skip_when`` maps a step name to the predicates
    that allow that step to be skipped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    display_name: str
    description: str = ""
    intent: str = ""
    read_files: tuple[DocumentName, ...] = ()
    write_files: tuple[DocumentName, ...] = ()
    risk: Risk = Risk.LOW
    confirmation: Confirmation = Confirmation.PREVIEW
    allows_delete: bool = False
    allows_cross_file_move: bool = False
    uses_ai: bool = True
    rules: tuple[str, ...] = ()
    combined_steps: tuple[str, ...] = ()
    skip_when: dict[str, tuple[SkipPredicate, ...]] = Field(default_factory=dict)
    hidden: bool = False

    @field_validator("name", "display_name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("must be non-empty")
        return v2

    @model_validator(mode="after")
    def _skip_rules_reference_steps(self) -> "WorkflowDefinition":
        unknown = set(self.skip_when) - set(self.combined_steps)
        if unknown:
            raise ValueError(f"skip_when references steps not in combined_steps: {sorted(unknown)}")
        return self

    @property
    def is_combined(self) -> bool:
        return len(self.combined_steps) > 0
