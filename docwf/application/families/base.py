"""Base class and context for workflow family handlers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from docwf.application.config_models import EngineConfig
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import ProposalSet, Selection, WorkflowFamily
from docwf.domain.models.results import WorkflowRequest
from docwf.domain.models.workflow_definition import WorkflowDefinition
from docwf.domain.providers.commit_feed import CommitFeed


@dataclass
class FamilyContext:
    """Everything a handler sees for one workflow run.

    ``documents`` is the snapshot read when the workflow started; appliers
    work against it so line numbers recorded at parse time stay valid.
    ``extras`` carries handler-private data between request and apply
    (e.g. the fetched commits).
    """

    definition: WorkflowDefinition
    documents: dict[DocumentName, str]
    config: EngineConfig
    user_input: str | None = None
    commit_feed: CommitFeed | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def doc(self, name: DocumentName) -> str:
        return self.documents.get(name, "")


@dataclass
class ApplyOutcome:
    """Replacement document texts plus user-facing notes."""

    updated: dict[DocumentName, str] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    affected_count: int = 0

    def set(self, ctx: FamilyContext, name: DocumentName, text: str) -> None:
        """Record ``text`` only when it differs from the snapshot."""
        if text != ctx.documents.get(name):
            self.updated[name] = text


class FamilyHandler(ABC):
    """One parser/applier pair plus the request it needs.

    Subclasses set ``family`` and ``required_documents``; documents outside
    ``required_documents`` are read when present and treated as empty
    otherwise.
    """

    family: WorkflowFamily
    required_documents: tuple[DocumentName, ...] = ()

    def precheck(self, ctx: FamilyContext) -> str | None:
        """Reason the workflow has nothing to do, or None to proceed."""
        return None

    def parse_local(self, ctx: FamilyContext) -> ProposalSet | None:
        """Proposals built from documents alone, for workflows without generation."""
        return None

    def request_documents(self, ctx: FamilyContext) -> dict[str, str]:
        return {name.value: text for name, text in ctx.documents.items()}

    def build_request(self, ctx: FamilyContext) -> WorkflowRequest:
        definition = ctx.definition
        return WorkflowRequest(
            workflow_name=definition.name,
            step_name=definition.name,
            instruction=definition.intent,
            rules=list(definition.rules),
            documents=self.request_documents(ctx),
            user_input=ctx.user_input,
            metadata=self.request_metadata(ctx),
        )

    def request_metadata(self, ctx: FamilyContext) -> dict[str, Any]:
        return {}

    @abstractmethod
    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        """Turn generated text into proposals. Never raises."""
        ...

    @abstractmethod
    def apply(self, proposals: ProposalSet, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        """Apply confirmed selections to the snapshot."""
        ...

    def empty_message(self, proposals: ProposalSet) -> str:
        """Shown when a parse succeeds but proposes nothing."""
        return "Nothing found to apply."
