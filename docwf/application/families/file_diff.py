"""Diff-based workflows: log titling, task generation and guided document fills."""

import logging

from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import FileDiffProposals, ProposalSet, Selection, WorkflowFamily
from docwf.domain.parsing.diff import apply_file_diff_selections, parse_file_diff_response
from docwf.domain.parsing.log_parser import filter_log_for_title_entries, parse_log_entries, trim_log_content
from docwf.domain.parsing.potential_tasks import entries_with_task_blocks

logger = logging.getLogger(__name__)

ALL_TITLED_REASON = "All log entries already have titles."
ALL_HAVE_TASKS_REASON = "Every log entry already has a potential-tasks block."
NO_LOG_ENTRIES_REASON = "No log entries found in Log.md."


class FileDiffHandler(FamilyHandler):
    family = WorkflowFamily.FILE_DIFF

    def precheck(self, ctx: FamilyContext) -> str | None:
        name = ctx.definition.name
        if name == "title-entries":
            if filter_log_for_title_entries(ctx.doc(DocumentName.LOG)).all_summarized:
                return ALL_TITLED_REASON
        elif name == "generate-tasks":
            log = ctx.doc(DocumentName.LOG)
            entries = parse_log_entries(log).entries
            if not entries:
                return NO_LOG_ENTRIES_REASON
            if len(entries_with_task_blocks(log)) == len(entries):
                return ALL_HAVE_TASKS_REASON
        return None

    def request_documents(self, ctx: FamilyContext) -> dict[str, str]:
        documents = super().request_documents(ctx)
        name = ctx.definition.name
        log = ctx.documents.get(DocumentName.LOG)
        if log is None:
            return documents
        if name == "title-entries":
            filtered = filter_log_for_title_entries(log)
            documents[DocumentName.LOG.value] = filtered.content
        elif name == "generate-tasks":
            trimmed = trim_log_content(log, ctx.config.log_trim_threshold)
            if trimmed.was_trimmed:
                logger.info("Log trimmed for generation: %s", trimmed.trim_summary)
            documents[DocumentName.LOG.value] = trimmed.content
        return documents

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        write_files = ctx.definition.write_files
        return parse_file_diff_response(
            text,
            workflow_name=ctx.definition.name,
            allowed_documents=write_files,
            default_document=write_files[0] if len(write_files) == 1 else None,
        )

    def apply(self, proposals: FileDiffProposals, selections: list[Selection], ctx: FamilyContext) -> ApplyOutcome:
        application = apply_file_diff_selections(ctx.documents, proposals.diffs, selections)
        outcome = ApplyOutcome(updated=dict(application.updated), affected_count=len(application.updated))
        outcome.messages.extend(f"Diff not applied: {failure}" for failure in application.failures)
        if application.updated:
            names = ", ".join(doc.value for doc in application.updated)
            outcome.messages.append(f"Updated {names}")
        return outcome

    def empty_message(self, proposals: ProposalSet) -> str:
        return "No changes proposed."
