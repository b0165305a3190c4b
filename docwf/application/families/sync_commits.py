"""Sync-commits: match recent commits to open tasks."""

import logging

from docwf.application.families.base import ApplyOutcome, FamilyContext, FamilyHandler
from docwf.application.skip_rules import NO_REPOSITORY_REASON
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import (
    Commit,
    ProposalSet,
    Selection,
    SyncAction,
    SyncCommitsProposals,
    WorkflowFamily,
)
from docwf.domain.parsing.sync_commits import (
    apply_archive_entries,
    apply_task_completions,
    build_archive_entries,
    exclude_completed_matches,
    parse_sync_commits_response,
)
from docwf.domain.parsing.tasks_document import extract_unchecked_tasks

logger = logging.getLogger(__name__)

NO_COMMIT_FEED_REASON = "No commit source configured"
NO_COMMITS_REASON = "No recent commits found"
NO_OPEN_TASKS_REASON = "No open tasks to match commits against"

COMMITS_KEY = "commits"


class SyncCommitsHandler(FamilyHandler):
    family = WorkflowFamily.SYNC_COMMITS
    required_documents = (DocumentName.TASKS,)

    def precheck(self, ctx: FamilyContext) -> str | None:
        """Fetch commits up front; ProviderError from the feed propagates."""
        repo = ctx.config.github_repo
        if not repo:
            return NO_REPOSITORY_REASON
        if ctx.commit_feed is None:
            return NO_COMMIT_FEED_REASON
        if not extract_unchecked_tasks(ctx.doc(DocumentName.TASKS)):
            return NO_OPEN_TASKS_REASON
        commits = ctx.commit_feed.list_recent_commits(repo, ctx.config.commit_limit)
        if not commits:
            return NO_COMMITS_REASON
        logger.debug("Fetched %d commits from %s", len(commits), repo)
        ctx.extras[COMMITS_KEY] = commits
        return None

    def request_metadata(self, ctx: FamilyContext) -> dict:
        commits: list[Commit] = ctx.extras.get(COMMITS_KEY, [])
        return {
            "repository": ctx.config.github_repo,
            "commits": [c.model_dump() for c in commits],
            "open_tasks": [
                {"text": t.text, "section": t.section.value}
                for t in extract_unchecked_tasks(ctx.doc(DocumentName.TASKS))
            ],
        }

    def parse_response(self, text: str, ctx: FamilyContext) -> ProposalSet:
        proposals = parse_sync_commits_response(text, ctx.extras.get(COMMITS_KEY, []), ctx.definition.name)
        if not proposals.success:
            return proposals
        return exclude_completed_matches(proposals, ctx.doc(DocumentName.TASKS))

    def apply(
        self, proposals: SyncCommitsProposals, selections: list[Selection], ctx: FamilyContext
    ) -> ApplyOutcome:
        outcome = ApplyOutcome()
        outcome.set(ctx, DocumentName.TASKS, apply_task_completions(ctx.doc(DocumentName.TASKS), proposals, selections))
        entries = build_archive_entries(proposals, selections)
        outcome.set(ctx, DocumentName.ARCHIVE, apply_archive_entries(ctx.doc(DocumentName.ARCHIVE), entries))

        known = set(proposals.entity_ids())
        completed = [s for s in selections if s.entity_id in known and s.action != SyncAction.SKIP.value]
        archived = [s for s in completed if s.action == SyncAction.MARK_ARCHIVE.value]
        outcome.affected_count = len(completed)
        if completed:
            outcome.messages.append(f"Marked {len(completed)} task(s) complete")
        if archived and DocumentName.ARCHIVE in outcome.updated:
            outcome.messages.append(f"Logged {len(archived)} commit(s) in Archive.md")
        return outcome

    def empty_message(self, proposals: SyncCommitsProposals) -> str:
        if proposals.excluded_completed:
            return f"No open tasks matched; {proposals.excluded_completed} match(es) were already complete."
        return "No commits matched open tasks."
