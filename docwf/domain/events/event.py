"""Workflow event payload model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from docwf.domain.events.event_types import WorkflowEventType


class WorkflowEvent(BaseModel):
    """Immutable event payload for workflow notifications."""

    model_config = {"frozen": True}

    event_type: WorkflowEventType
    workflow_name: str
    timestamp: datetime
    step_name: str | None = None
    step_label: str | None = None
    document: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
