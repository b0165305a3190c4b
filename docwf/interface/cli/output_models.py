from typing import Any, Literal

from pydantic import BaseModel, Field


class BaseOutput(BaseModel):
    schema_version: int = 1
    command: Literal["workflows", "show", "run", "detect", "providers"]
    exit_code: int
    error: str | None = None


class WorkflowSummary(BaseModel):
    """One catalog entry for list output."""
    name: str
    display_name: str
    description: str
    combined: bool = False
    hidden: bool = False


class WorkflowsOutput(BaseOutput):
    command: Literal["workflows"] = "workflows"
    workflows: list[WorkflowSummary] = Field(default_factory=list)
    total: int = 0


class WorkflowDetail(BaseModel):
    name: str
    display_name: str
    description: str
    intent: str
    execution_mode: str
    family: str | None = None
    read_files: list[str] = Field(default_factory=list)
    write_files: list[str] = Field(default_factory=list)
    risk: str
    confirmation: str
    uses_ai: bool
    combined_steps: list[str] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)


class ShowOutput(BaseOutput):
    command: Literal["show"] = "show"
    workflow: WorkflowDetail | None = None


class RunOutput(BaseOutput):
    command: Literal["run"] = "run"
    workflow: str
    status: str | None = None
    step: str | None = None
    messages: list[str] = Field(default_factory=list)
    written_files: list[str] = Field(default_factory=list)
    hint: str | None = None
    next_workflow: str | None = None
    awaiting_instruction: str | None = None


class DetectOutput(BaseOutput):
    command: Literal["detect"] = "detect"
    message: str
    workflow: str | None = None


class ProviderSummary(BaseModel):
    name: str
    description: str
    requires_config: bool = False
    config_keys: list[str] = Field(default_factory=list)


class ProvidersOutput(BaseOutput):
    command: Literal["providers"] = "providers"
    providers: list[ProviderSummary] = Field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: list[dict[str, Any]]) -> "ProvidersOutput":
        return cls(exit_code=0, providers=[ProviderSummary(**m) for m in metadata])
