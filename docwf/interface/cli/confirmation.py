"""Terminal confirmation surfaces for pending proposals."""

from dataclasses import dataclass

import click

from docwf.domain.models.proposals import (
    ArchiveProposals,
    EnrichProposals,
    FileDiffProposals,
    HarvestProposals,
    IdeasGroomProposals,
    InitSummaryProposals,
    PlanWorkProposals,
    PotentialTaskProposals,
    PromotionProposals,
    ProposalSet,
    Selection,
    SyncCommitsProposals,
    WorkflowFamily,
)
from docwf.domain.models.workflow_definition import Confirmation, WorkflowDefinition

CONFIRM_KEYWORDS = frozenset({"PROMOTE", "YES", "CONFIRM", "Y"})
DECLINE_KEYWORD = "SKIP"

NO_AUTO_APPLY_FAMILIES = frozenset({WorkflowFamily.SYNC_COMMITS})


@dataclass(frozen=True, slots=True)
class ConfirmationDecision:
    confirmed: bool
    selections: list[Selection] | None = None


def describe_proposals(proposals: ProposalSet) -> list[str]:
    """One line per entity: ``<id>  <summary>``."""
    if isinstance(proposals, PotentialTaskProposals):
        return [f"{t.id}  {t.text}  ({t.log_entry_header or 'log'})" for t in proposals.actionable_tasks]
    if isinstance(proposals, (HarvestProposals, IdeasGroomProposals)):
        return [f"{t.id}  [{t.suggested_destination.value}] {t.text}" for t in proposals.tasks]
    if isinstance(proposals, SyncCommitsProposals):
        return [
            f"{m.id}  {m.short_sha} {m.title} -> {m.task_text} ({m.confidence.value})"
            for m in proposals.matches
        ]
    if isinstance(proposals, ArchiveProposals):
        return [f"{t.id}  {g.heading}: {t.text}" for g in proposals.groups for t in g.tasks]
    if isinstance(proposals, PromotionProposals):
        if proposals.selected_task is None:
            return []
        line = f"{proposals.selected_task.id}  {proposals.selected_task.text}"
        if proposals.reasoning:
            line += f"  ({proposals.reasoning})"
        return [line]
    if isinstance(proposals, EnrichProposals):
        return [f"{e.id}  {e.task_text} [{e.confidence_label}]" for e in proposals.enrichments]
    if isinstance(proposals, PlanWorkProposals):
        lines = [f"{t.id}  [{t.destination.value}] {t.text}" for t in proposals.tasks]
        lines.extend(f"{s.id}  {s.vs_id} — {s.name}" for s in proposals.suggested_slices)
        return lines
    if isinstance(proposals, (FileDiffProposals, InitSummaryProposals)):
        return [f"{d.id}  {d.file_name} (+{d.additions}/-{d.deletions})" for d in proposals.diffs]
    return [f"{entity_id}" for entity_id in proposals.entity_ids()]


def merge_selections(proposals: ProposalSet, overrides: dict[str, str]) -> list[Selection]:
    """Default selections with the actions named in ``overrides`` swapped in."""
    merged = []
    for selection in proposals.default_selections():
        action = overrides.get(selection.entity_id)
        merged.append(selection if action is None else selection.model_copy(update={"action": action}))
    return merged


class AutoConfirmation:
    """Non-interactive surface used with ``--yes``.

    Commit matches always need a human decision and are declined.
    """

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self.overrides = overrides or {}

    def review(self, workflow_name: str, proposals: ProposalSet) -> ConfirmationDecision:
        if proposals.family in NO_AUTO_APPLY_FAMILIES:
            click.echo(f"{workflow_name}: commit matches need interactive review; skipped", err=True)
            return ConfirmationDecision(confirmed=False)
        return ConfirmationDecision(confirmed=True, selections=merge_selections(proposals, self.overrides))


class InteractiveConfirmation:
    """Prompts on stderr so stdout stays clean for ``--json``."""

    def __init__(self, definitions: dict[str, WorkflowDefinition], overrides: dict[str, str] | None = None) -> None:
        self.definitions = definitions
        self.overrides = overrides or {}

    def review(self, workflow_name: str, proposals: ProposalSet) -> ConfirmationDecision:
        definition = self.definitions.get(workflow_name)
        selections = merge_selections(proposals, self.overrides)
        actions = {s.entity_id: s.action for s in selections}

        click.echo(f"\n{definition.display_name if definition else workflow_name}:", err=True)
        for line in describe_proposals(proposals):
            entity_id = line.split("  ", 1)[0]
            action = actions.get(entity_id)
            click.echo(f"  {line}" + (f"  => {action}" if action else ""), err=True)

        if definition is not None and definition.confirmation == Confirmation.CONFIRM:
            answer = click.prompt(
                f"Type PROMOTE to confirm or {DECLINE_KEYWORD} to decline",
                default=DECLINE_KEYWORD,
                err=True,
            )
            confirmed = answer.strip().upper() in CONFIRM_KEYWORDS
        else:
            confirmed = click.confirm("Apply these changes?", default=False, err=True)
        return ConfirmationDecision(confirmed=confirmed, selections=selections if confirmed else None)
