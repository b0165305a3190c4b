from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.proposals import InitSummaryProposals, ProposalSet, Selection, WorkflowFamily
from docwf.domain.parsing.diff import apply_file_diff_selections
from docwf.domain.parsing.init_summary import parse_init_summary_response, summarize_batch


class InitSummaryHandler(FamilyHandler):
    """Batch-fill Overview, Roadmap and Tasks from a design summary."""

    family = WorkflowFamily.INIT_SUMMARY

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return parse_init_summary_response(text, ctx.definition.name)

    def apply(
        self, proposals: InitSummaryProposals, selections: list[Selection], ctx: FamilyContext
    ) -> ApplyOutcome:
        application = apply_file_diff_selections(ctx.documents, proposals.diffs, selections)
        outcome = ApplyOutcome(updated=dict(application.updated), affected_count=len(application.updated))
        outcome.messages.extend(f"Diff not applied: {failure}" for failure in application.failures)
        summary = summarize_batch(proposals)
        if application.updated and summary is not None:
            names = ", ".join(doc.value for doc in application.updated)
            outcome.messages.append(
                f"Initialized {names} (+{summary.total_additions}/-{summary.total_deletions} lines proposed)"
            )
        return outcome

    def empty_message(self, proposals: InitSummaryProposals) -> str:
        if proposals.has_questions:
            return proposals.question_content or "More information is needed before documents can be generated."
        return "No diffs proposed."
