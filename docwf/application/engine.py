"""Workflow execution engine.

The engine owns the only mutable workflow state of a session: at most one
pending proposal set and at most one combined workflow in progress. It is
driven by three calls:

- ``start(name)`` begins a workflow and runs until it needs a response or a
  confirmation
- ``receive_response(text)`` hands in generated text the engine asked for
- ``apply(selections, confirmed)`` writes (or declines) the pending proposals

Combined workflows continue to their next step automatically after each
apply; a step with nothing to do is skipped with its reason.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from docwf.application.catalog import WorkflowCatalog
from docwf.application.combined_stepper import CombinedStepper
from docwf.application.config_models import EngineConfig
from docwf.application.dispatch import ExecutionMode, determine_execution_mode, family_for
from docwf.application.families import FamilyContext, FamilyHandler, handler_for
from docwf.application.hints import hint_for
from docwf.application.skip_rules import SkipContext, evaluate_skip
from docwf.domain.errors import MissingFile, NoPendingProposals, ProviderError
from docwf.domain.events.emitter import WorkflowEventEmitter
from docwf.domain.events.event import WorkflowEvent
from docwf.domain.events.event_types import WorkflowEventType
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import ProposalSet, Selection
from docwf.domain.models.results import EngineResult, EngineStatus, WorkflowRequest
from docwf.domain.models.workflow_definition import WorkflowDefinition
from docwf.domain.persistence.document_store import DocumentStore
from docwf.domain.providers.ai_provider import AIProvider
from docwf.domain.providers.commit_feed import CommitFeed

logger = logging.getLogger(__name__)

DECLINED_STEP_REASON = "Skipped by user"


class ConfirmationDecision(Protocol):
    confirmed: bool
    selections: list[Selection] | None


class ConfirmationSurface(Protocol):
    """Presents pending proposals to a human and returns the decision."""

    def review(self, workflow_name: str, proposals: ProposalSet) -> ConfirmationDecision:
        ...


@dataclass
class _ActiveStep:
    """A single workflow (or one combined step) the engine is working on."""

    definition: WorkflowDefinition
    handler: FamilyHandler
    ctx: FamilyContext
    request: WorkflowRequest | None = None
    proposals: ProposalSet | None = None


@dataclass
class _RunState:
    """Bookkeeping for the top-level workflow across its steps."""

    definition: WorkflowDefinition
    user_input: str | None = None
    messages: list[str] = field(default_factory=list)
    written: list[DocumentName] = field(default_factory=list)


class WorkflowEngine:
    """Runs catalog workflows against a document store."""

    def __init__(
        self,
        catalog: WorkflowCatalog,
        store: DocumentStore,
        provider: AIProvider | None = None,
        commit_feed: CommitFeed | None = None,
        config: EngineConfig | None = None,
        emitter: WorkflowEventEmitter | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.provider = provider
        self.commit_feed = commit_feed
        self.config = config or EngineConfig()
        self.emitter = emitter or WorkflowEventEmitter()
        self._stepper = CombinedStepper()
        self._run: _RunState | None = None
        self._active: _ActiveStep | None = None

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def pending_proposals(self) -> ProposalSet | None:
        return self._active.proposals if self._active else None

    @property
    def active_workflow(self) -> str | None:
        return self._run.definition.name if self._run else None

    @property
    def active_step(self) -> str | None:
        return self._active.definition.name if self._active else None

    @property
    def combined_in_progress(self) -> bool:
        return self._stepper.in_progress

    # ========================================================================
    # Commands
    # ========================================================================

    def start(self, name: str, user_input: str | None = None) -> EngineResult:
        """Begin a workflow, discarding any pending work.

        Args:
            name: Catalog workflow name
            user_input: Free text for input-driven workflows (plan-work, init-from-summary)

        Returns:
            Result describing what the engine needs next

        Raises:
            DefinitionNotFound: If the name is not in the catalog
        """
        definition = self.catalog.get_definition(name)
        if self._run is not None:
            logger.info("Discarding in-progress workflow %s", self._run.definition.name)
        self._clear()
        self._run = _RunState(definition=definition, user_input=user_input)
        logger.info("Starting workflow %s", name)
        self._emit(WorkflowEventType.WORKFLOW_STARTED, metadata={"mode": determine_execution_mode(definition).value})

        if definition.is_combined:
            self._stepper.init(definition)
            return self._run_next_step()
        return self._finish_if_done(self._begin(definition))

    def receive_response(self, text: str) -> EngineResult:
        """Parse generated text for the step awaiting a response.

        Raises:
            NoPendingProposals: If no step is waiting for a response
        """
        active = self._active
        if active is None or active.request is None or active.proposals is not None:
            raise NoPendingProposals("No workflow step is awaiting a response")
        return self._continue(self._parse(active, text))

    def apply(self, selections: list[Selection] | None = None, confirmed: bool = True) -> EngineResult:
        """Apply (or decline) the pending proposals.

        Args:
            selections: Decisions per entity; None applies the proposals' defaults
            confirmed: False declines without touching any file

        Returns:
            Result of the apply, or of the next combined step

        Raises:
            NoPendingProposals: If nothing is pending
        """
        active = self._active
        if active is None or active.proposals is None:
            raise NoPendingProposals("No proposals are pending")

        if not confirmed:
            return self._decline(active)

        proposals = active.proposals
        chosen = proposals.default_selections() if selections is None else selections
        outcome = active.handler.apply(proposals, chosen, active.ctx)
        for document, text in outcome.updated.items():
            try:
                self.store.write(document, text)
            except OSError as e:
                written = ", ".join(d.value for d in self._run.written) or "none"
                return self._fail(
                    active.definition, f"Failed to write {document.value}: {e} (already written: {written})"
                )
            if document not in self._run.written:
                self._run.written.append(document)
        logger.info(
            "Applied %d selection(s) for %s; wrote %s",
            len(chosen),
            active.definition.name,
            [d.value for d in outcome.updated] or "nothing",
        )
        self._emit(
            WorkflowEventType.SELECTIONS_APPLIED,
            step_name=active.definition.name,
            metadata={"selections": len(chosen), "written": [d.value for d in outcome.updated]},
        )
        result = self._result(
            active, EngineStatus.APPLIED, messages=outcome.messages, written_files=list(outcome.updated)
        )
        if self.config.hints_enabled:
            result.hint = hint_for(active.definition.name, outcome.affected_count)

        if self._stepper.in_progress:
            self._run.messages.extend(outcome.messages)
            self._emit(WorkflowEventType.STEP_COMPLETED, step_name=active.definition.name)
            self._stepper.advance()
            self._active = None
            return self._run_next_step()

        return self._finish_if_done(result)

    def review_and_apply(self, surface: ConfirmationSurface) -> EngineResult:
        """Hand the pending proposals to ``surface`` and apply its decision."""
        active = self._active
        if active is None or active.proposals is None:
            raise NoPendingProposals("No proposals are pending")
        decision = surface.review(active.definition.name, active.proposals)
        return self.apply(decision.selections, confirmed=decision.confirmed)

    def cancel(self) -> EngineResult:
        """Abandon the current workflow. A no-op when nothing is running."""
        name = self._run.definition.name if self._run else ""
        if self._run is not None:
            self._emit(WorkflowEventType.WORKFLOW_CANCELLED)
            logger.info("Cancelled workflow %s", name)
        self._clear()
        return EngineResult(workflow_name=name, status=EngineStatus.CANCELLED)

    # ========================================================================
    # Internal
    # ========================================================================

    def _clear(self) -> None:
        self._stepper.reset()
        self._run = None
        self._active = None

    def _run_next_step(self) -> EngineResult:
        """Run combined steps until one needs input or the workflow completes."""
        combined = self._run.definition
        while True:
            step = self._stepper.current_step()
            if step is None:
                return self._complete_combined()

            skip_ctx = SkipContext(github_repo=self.config.github_repo, read_document=self.store.read)
            reason = evaluate_skip(combined, step.workflow_name, skip_ctx)
            if reason is not None:
                self._skip_step(step.workflow_name, reason)
                continue

            self._stepper.mark_running()
            self._emit(WorkflowEventType.STEP_STARTED, step_name=step.workflow_name)
            result = self._begin(self.catalog.get_definition(step.workflow_name))
            if result.status == EngineStatus.NOTHING_FOUND:
                self._skip_step(step.workflow_name, result.error_message or "Nothing to do")
                continue
            return result

    def _skip_step(self, step_name: str, reason: str) -> None:
        self._emit(WorkflowEventType.STEP_SKIPPED, step_name=step_name, metadata={"reason": reason})
        self._stepper.skip(reason)
        self._stepper.advance()
        self._active = None

    def _complete_combined(self) -> EngineResult:
        summary = self._stepper.summary()
        run = self._run
        result = EngineResult(
            workflow_name=run.definition.name,
            status=EngineStatus.COMPLETED,
            messages=[*run.messages, summary.message],
            written_files=list(run.written),
            summary=summary,
        )
        logger.info(summary.message)
        self._emit(WorkflowEventType.WORKFLOW_COMPLETED, metadata={"completed": summary.completed, "skipped": summary.skipped})
        self._clear()
        return result

    def _finish_if_done(self, result: EngineResult) -> EngineResult:
        """Close out a single workflow once it no longer waits on anything."""
        if result.status in (EngineStatus.AWAITING_RESPONSE, EngineStatus.AWAITING_CONFIRMATION):
            return result
        if result.status in (EngineStatus.APPLIED, EngineStatus.NOTHING_FOUND):
            self._emit(WorkflowEventType.WORKFLOW_COMPLETED, metadata={"status": result.status.value})
        self._clear()
        return result

    def _continue(self, result: EngineResult) -> EngineResult:
        """Route a response-parse result through single or combined handling."""
        if self._stepper.in_progress:
            if result.status == EngineStatus.NOTHING_FOUND:
                self._skip_step(result.step_name, result.error_message or "Nothing to do")
                return self._run_next_step()
            return result
        return self._finish_if_done(result)

    def _read_documents(self, definition: WorkflowDefinition, handler: FamilyHandler) -> dict[DocumentName, str]:
        names = list(dict.fromkeys([*definition.read_files, *definition.write_files, *handler.required_documents]))
        documents: dict[DocumentName, str] = {}
        for name in names:
            if name in handler.required_documents or self.store.exists(name):
                documents[name] = self.store.read(name)
        return documents

    def _begin(self, definition: WorkflowDefinition) -> EngineResult:
        """Load documents, run prechecks and either parse locally or request text."""
        handler = handler_for(family_for(definition.name))
        mode = determine_execution_mode(definition)
        user_input = self._run.user_input

        if mode == ExecutionMode.INPUT_MODAL and not (user_input and user_input.strip()):
            return self._fail(definition, f"Workflow '{definition.name}' needs input text")
        try:
            documents = self._read_documents(definition, handler)
        except MissingFile as e:
            return self._fail(definition, str(e))

        ctx = FamilyContext(
            definition=definition,
            documents=documents,
            config=self.config,
            user_input=user_input,
            commit_feed=self.commit_feed,
        )
        active = _ActiveStep(definition=definition, handler=handler, ctx=ctx)
        self._active = active

        try:
            reason = handler.precheck(ctx)
        except ProviderError as e:
            return self._fail(definition, str(e))
        if reason is not None:
            logger.info("Nothing to do for %s: %s", definition.name, reason)
            return self._result(active, EngineStatus.NOTHING_FOUND, error_message=reason)

        if mode == ExecutionMode.NON_AI:
            proposals = handler.parse_local(ctx)
            return self._proposals_result(active, proposals)

        request = handler.build_request(ctx)
        request = request.model_copy(update={"workflow_name": self._run.definition.name})
        active.request = request
        if self.provider is None:
            return self._result(active, EngineStatus.AWAITING_RESPONSE)
        try:
            text = self.provider.generate(request.instruction, context=request.model_dump(mode="json"))
        except ProviderError as e:
            return self._fail(definition, str(e))
        if text is None:
            return self._result(active, EngineStatus.AWAITING_RESPONSE)
        return self._parse(active, text)

    def _parse(self, active: _ActiveStep, text: str) -> EngineResult:
        proposals = active.handler.parse_response(text, active.ctx)
        return self._proposals_result(active, proposals)

    def _proposals_result(self, active: _ActiveStep, proposals: ProposalSet) -> EngineResult:
        if not proposals.success:
            logger.warning("Parse failed for %s: %s", active.definition.name, proposals.error)
            return self._result(active, EngineStatus.NOTHING_FOUND, proposals=proposals, error_message=proposals.error)
        if proposals.is_empty:
            message = active.handler.empty_message(proposals)
            return self._result(active, EngineStatus.NOTHING_FOUND, proposals=proposals, error_message=message)

        active.proposals = proposals
        self._emit(
            WorkflowEventType.PROPOSALS_READY,
            step_name=active.definition.name,
            metadata={"family": proposals.family.value, "count": len(proposals.entity_ids())},
        )
        return self._result(active, EngineStatus.AWAITING_CONFIRMATION, proposals=proposals)

    def _decline(self, active: _ActiveStep) -> EngineResult:
        if self._stepper.in_progress:
            self._skip_step(active.definition.name, DECLINED_STEP_REASON)
            return self._run_next_step()
        logger.info("Declined proposals for %s", active.definition.name)
        return self.cancel()

    def _fail(self, definition: WorkflowDefinition, message: str) -> EngineResult:
        logger.warning("Workflow %s failed: %s", definition.name, message)
        result = EngineResult(
            workflow_name=self._run.definition.name,
            status=EngineStatus.FAILED,
            step_name=definition.name,
            messages=list(self._run.messages),
            written_files=list(self._run.written),
            error_message=message,
        )
        self._emit(WorkflowEventType.WORKFLOW_FAILED, step_name=definition.name, metadata={"error": message})
        self._clear()
        return result

    def _result(self, active: _ActiveStep, status: EngineStatus, **kwargs: Any) -> EngineResult:
        return EngineResult(
            workflow_name=self._run.definition.name,
            status=status,
            step_name=active.definition.name,
            request=active.request,
            **kwargs,
        )

    def _step_label(self, step_name: str | None) -> str | None:
        label = self._stepper.step_label()
        if label is None or step_name is None or not self.catalog.has(step_name):
            return None
        return f"{label}: {self.catalog.get_definition(step_name).display_name}"

    def _emit(
        self,
        event_type: WorkflowEventType,
        step_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self._run is None:
            return
        self.emitter.emit(
            WorkflowEvent(
                event_type=event_type,
                workflow_name=self._run.definition.name,
                timestamp=datetime.now(timezone.utc),
                step_name=step_name,
                step_label=self._step_label(step_name) if self._stepper.in_progress else None,
                metadata=metadata or {},
            )
        )
