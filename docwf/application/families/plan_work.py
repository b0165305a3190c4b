from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import (
    Destination,
    PlanWorkProposals,
    ProposalSet,
    ReviewAction,
    Selection,
    WorkflowFamily,
)
from docwf.domain.parsing.plan_work import apply_planned_tasks, apply_suggested_slices, parse_plan_work_response


class PlanWorkHandler(FamilyHandler):
    """Turn a free-text work description into enriched tasks and new slices."""

    family = WorkflowFamily.PLAN_WORK

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return parse_plan_work_response(text, ctx.doc(DocumentName.ROADMAP), ctx.definition.name)

    def apply(self, proposals: PlanWorkProposals, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        task_ids = {t.id for t in proposals.tasks}
        slice_ids = {s.id for s in proposals.suggested_slices}
        task_selections = [
            s for s in selections if s.entity_id in task_ids and s.action != Destination.DISCARD.value
        ]
        slice_selections = [s for s in selections if s.entity_id in slice_ids]

        outcome = ApplyOutcome(affected_count=len(task_selections))
        outcome.set(ctx, DocumentName.TASKS, apply_planned_tasks(ctx.doc(DocumentName.TASKS), proposals, task_selections))
        outcome.set(
            ctx,
            DocumentName.ROADMAP,
            apply_suggested_slices(ctx.doc(DocumentName.ROADMAP), proposals, slice_selections),
        )
        if task_selections:
            outcome.messages.append(f"Added {len(task_selections)} task(s) to Tasks.md")
        slices_added = sum(1 for s in slice_selections if s.action == ReviewAction.ACCEPT.value)
        if slices_added and DocumentName.ROADMAP in outcome.updated:
            outcome.messages.append(f"Added {slices_added} slice(s) to Roadmap.md")
        return outcome

    def empty_message(self, proposals: PlanWorkProposals) -> str:
        return proposals.notes or "No tasks planned."
