from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import ArchiveProposals, ProposalSet, Selection, WorkflowFamily
from docwf.domain.parsing.archive_completed import (
    NO_COMPLETED_TASKS,
    apply_archive_additions,
    apply_archive_removal,
    build_archive_additions,
    find_completed_tasks,
    parse_archive_completed_response,
)


class ArchiveCompletedHandler(FamilyHandler):
    """Move ``- [x]`` tasks from Tasks.md into Archive.md, grouped by slice."""

    family = WorkflowFamily.ARCHIVE_COMPLETED
    required_documents = (DocumentName.TASKS,)

    def precheck(self, ctx: FamilyContext) -> str | None:
        if not find_completed_tasks(ctx.doc(DocumentName.TASKS)):
            return NO_COMPLETED_TASKS
        return None

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        return parse_archive_completed_response(text, ctx.doc(DocumentName.TASKS), ctx.definition.name)

    def apply(self, proposals: ArchiveProposals, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        additions = build_archive_additions(proposals, selections)
        outcome = ApplyOutcome(affected_count=sum(len(units) for units in additions.values()))
        if not additions:
            return outcome
        outcome.set(ctx, DocumentName.TASKS, apply_archive_removal(ctx.doc(DocumentName.TASKS), proposals, selections))
        outcome.set(ctx, DocumentName.ARCHIVE, apply_archive_additions(ctx.doc(DocumentName.ARCHIVE), additions))
        outcome.messages.append(f"Archived {outcome.affected_count} task(s)")
        return outcome

    def empty_message(self, proposals: ProposalSet) -> str:
        return NO_COMPLETED_TASKS
