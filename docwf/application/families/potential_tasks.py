from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.application.skip_rules import NO_POTENTIAL_TASKS_REASON
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import PotentialTaskProposals, ProposalSet, Selection, WorkflowFamily
from docwf.domain.parsing.potential_tasks import (
    append_future_tasks,
    apply_potential_task_selections,
    find_potential_task_blocks,
)


class PotentialTasksHandler(FamilyHandler):
    """Groom the potential-tasks blocks of Log.md. Runs without generation."""

    family = WorkflowFamily.POTENTIAL_TASKS
    required_documents = (DocumentName.LOG,)

    def parse_local(self, ctx: FamilyContext) -> ProposalSet:
        return find_potential_task_blocks(ctx.doc(DocumentName.LOG), ctx.definition.name)

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return self.parse_local(ctx)

    def apply(
        self, proposals: PotentialTaskProposals, selections: list[Selection], ctx: FamilyContext
    ) -> ApplyOutcome:
        update = apply_potential_task_selections(ctx.doc(DocumentName.LOG), proposals, selections)
        outcome = ApplyOutcome(affected_count=len(update.moved) + update.rejected)
        outcome.set(ctx, DocumentName.LOG, update.content)
        if update.moved:
            outcome.set(ctx, DocumentName.TASKS, append_future_tasks(ctx.doc(DocumentName.TASKS), update.moved))
            outcome.messages.append(f"Moved {len(update.moved)} task(s) to Tasks.md")
        if update.rejected:
            outcome.messages.append(f"Rejected {update.rejected} task(s)")
        if update.blocks_removed:
            outcome.messages.append(f"Removed {update.blocks_removed} empty block(s)")
        return outcome

    def empty_message(self, proposals: ProposalSet) -> str:
        return NO_POTENTIAL_TASKS_REASON
