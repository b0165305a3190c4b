"""Harvest and ideas-groom: JSON task suggestions inserted into Tasks.md."""

from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import (
    Destination,
    HarvestProposals,
    IdeasGroomProposals,
    ProposalSet,
    Selection,
    WorkflowFamily,
)
from docwf.domain.parsing.harvest import apply_harvest_selections, parse_harvest_response
from docwf.domain.parsing.ideas_groom import (
    apply_ideas_groom_selections,
    detect_moved_ideas,
    parse_ideas_groom_response,
)

NO_IDEAS_REASON = "Ideas.md is empty."


def _added(ids: list[str], selections: list[Selection]) -> int:
    known = set(ids)
    return sum(1 for s in selections if s.entity_id in known and s.action != Destination.DISCARD.value)


class HarvestHandler(FamilyHandler):
    family = WorkflowFamily.HARVEST

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return parse_harvest_response(text, ctx.definition.name)

    def apply(self, proposals: HarvestProposals, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        updated = apply_harvest_selections(ctx.doc(DocumentName.TASKS), proposals, selections)
        outcome = ApplyOutcome()
        outcome.set(ctx, DocumentName.TASKS, updated)
        if DocumentName.TASKS in outcome.updated:
            outcome.affected_count = _added(proposals.entity_ids(), selections)
            outcome.messages.append(f"Added {outcome.affected_count} task(s) to Tasks.md")
        return outcome

    def empty_message(self, proposals: ProposalSet) -> str:
        return "No new tasks found."


class IdeasGroomHandler(FamilyHandler):
    family = WorkflowFamily.IDEAS_GROOM

    def precheck(self, ctx: FamilyContext) -> str | None:
        if not ctx.doc(DocumentName.IDEAS).strip():
            return NO_IDEAS_REASON
        return None

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        proposals = parse_ideas_groom_response(text, ctx.definition.name)
        if not proposals.success:
            return proposals
        return detect_moved_ideas(proposals, ctx.doc(DocumentName.TASKS))

    def apply(
        self, proposals: IdeasGroomProposals, selections: list[Selection], ctx: FamilyContext
    ) -> ApplyOutcome:
        updated = apply_ideas_groom_selections(ctx.doc(DocumentName.TASKS), proposals, selections)
        outcome = ApplyOutcome()
        outcome.set(ctx, DocumentName.TASKS, updated)
        if DocumentName.TASKS in outcome.updated:
            outcome.affected_count = _added(proposals.entity_ids(), selections)
            outcome.messages.append(f"Added {outcome.affected_count} idea(s) to Tasks.md")
        return outcome

    def empty_message(self, proposals: ProposalSet) -> str:
        return "No actionable ideas found."
