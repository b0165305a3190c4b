from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import EnrichProposals, ProposalSet, Selection, WorkflowFamily
from docwf.domain.parsing.enrich import apply_enrichments, find_unenriched_tasks, parse_enrich_tasks_response

ALL_ENRICHED_REASON = "All open tasks are already enriched."


class EnrichHandler(FamilyHandler):
    family = WorkflowFamily.ENRICH
    required_documents = (DocumentName.TASKS,)

    def precheck(self, ctx: FamilyContext) -> str | None:
        if not find_unenriched_tasks(ctx.doc(DocumentName.TASKS)):
            return ALL_ENRICHED_REASON
        return None

    def request_metadata(self, ctx: FamilyContext) -> dict:
        return {"unenriched_tasks": find_unenriched_tasks(ctx.doc(DocumentName.TASKS))}

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return parse_enrich_tasks_response(text, ctx.definition.name)

    def apply(self, proposals: EnrichProposals, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        before = len(find_unenriched_tasks(ctx.doc(DocumentName.TASKS)))
        updated = apply_enrichments(ctx.doc(DocumentName.TASKS), proposals, selections)
        outcome = ApplyOutcome(affected_count=before - len(find_unenriched_tasks(updated)))
        outcome.set(ctx, DocumentName.TASKS, updated)
        if outcome.affected_count:
            outcome.messages.append(f"Enriched {outcome.affected_count} task(s)")
        return outcome

    def empty_message(self, proposals: EnrichProposals) -> str:
        if proposals.skip_reasons:
            return "No enrichments proposed: " + "; ".join(proposals.skip_reasons)
        return "No enrichments proposed."
