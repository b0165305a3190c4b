from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import (
    PromoteStatus,
    PromotionProposals,
    ProposalSet,
    Selection,
    WorkflowFamily,
)
from docwf.domain.parsing.promote_next import (
    apply_task_promotion,
    parse_promote_next_response,
    resolve_promotion,
)
from docwf.domain.parsing.roadmap import apply_roadmap_changes


class PromoteNextHandler(FamilyHandler):
    """Promote one task from Next/Later to Now, optionally moving the Roadmap focus."""

    family = WorkflowFamily.PROMOTE_NEXT
    required_documents = (DocumentName.TASKS,)

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        proposals = parse_promote_next_response(text, ctx.definition.name)
        if not proposals.success:
            return proposals
        return resolve_promotion(proposals, ctx.doc(DocumentName.TASKS))

    def apply(
        self, proposals: PromotionProposals, selections: list[Selection], ctx: FamilyContext
    ) -> ApplyOutcome:
        outcome = ApplyOutcome()
        promoted = apply_task_promotion(ctx.doc(DocumentName.TASKS), proposals, selections)
        outcome.set(ctx, DocumentName.TASKS, promoted)
        if DocumentName.TASKS not in outcome.updated:
            return outcome

        outcome.affected_count = 1
        outcome.messages.append(f"Promoted to Now: {proposals.selected_task.text}")
        if ctx.documents.get(DocumentName.ROADMAP):
            roadmap = apply_roadmap_changes(ctx.doc(DocumentName.ROADMAP), proposals.roadmap_changes)
            outcome.set(ctx, DocumentName.ROADMAP, roadmap)
            if DocumentName.ROADMAP in outcome.updated:
                outcome.messages.append("Updated Roadmap focus")
        return outcome

    def empty_message(self, proposals: PromotionProposals) -> str:
        if proposals.message:
            return proposals.message
        if proposals.status == PromoteStatus.ALREADY_ACTIVE:
            current = f": {proposals.current_now_task}" if proposals.current_now_task else ""
            return f"A task is already active in Now{current}"
        return "No tasks available to promote."
