"""Typed proposal entities produced by the extraction parsers.

Each workflow family has one ``*Proposals`` model carrying a ``family``
discriminator, so the engine's single pending slot is a closed union
(``ProposalSet``) rather than a bag of per-family fields.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from docwf.domain.constants import STANDALONE_ARCHIVE_HEADING
from docwf.domain.models.documents import DocumentName


class WorkflowFamily(str, Enum):
    """Closed set of parser/applier pairs."""

    POTENTIAL_TASKS = "potential-tasks"
    HARVEST = "harvest"
    IDEAS_GROOM = "ideas-groom"
    SYNC_COMMITS = "sync-commits"
    ARCHIVE_COMPLETED = "archive-completed"
    PROMOTE_NEXT = "promote-next"
    ENRICH = "enrich"
    PLAN_WORK = "plan-work"
    INIT_SUMMARY = "init-summary"
    FILE_DIFF = "file-diff"


# --------------------------------------------------------------------------
# Selection actions
# --------------------------------------------------------------------------


class PotentialTaskAction(str, Enum):
    KEEP = "keep"
    REJECT = "reject"
    MOVE_TO_FUTURE = "move-to-future"


class Destination(str, Enum):
    """Where a harvested/groomed/planned task lands in Tasks.md."""

    DISCARD = "discard"
    NOW = "now"
    NEXT = "next"
    LATER = "later"


class SyncAction(str, Enum):
    MARK_COMPLETE = "mark-complete"
    MARK_ARCHIVE = "mark-archive"
    SKIP = "skip"


class ArchiveAction(str, Enum):
    ARCHIVE = "archive"
    KEEP = "keep"


class ReviewAction(str, Enum):
    """Accept/reject decision for families without richer actions."""

    ACCEPT = "accept"
    REJECT = "reject"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskSection(str, Enum):
    NOW = "now"
    NEXT = "next"
    BLOCKED = "blocked"
    LATER = "later"
    DONE = "done"
    UNKNOWN = "unknown"


class Selection(BaseModel):
    """A human decision over one proposal entity.

    ``action`` holds the family's action value (see the enums above);
    ``slice_link`` and ``text`` optionally override the proposal's own.
    """

    model_config = ConfigDict(frozen=True)

    entity_id: str
    action: str
    slice_link: str | None = None
    text: str | None = None


# --------------------------------------------------------------------------
# Entities
# --------------------------------------------------------------------------


class PotentialTask(BaseModel):
    id: str
    text: str
    is_rejected: bool = False
    block_index: int
    block_start_line: int
    block_end_line: int
    line_number: int
    log_entry_header: str | None = None
    log_date: str | None = None


class PotentialTaskBlock(BaseModel):
    start_line: int
    end_line: int
    tasks: list[PotentialTask] = Field(default_factory=list)
    log_entry_header: str | None = None
    log_date: str | None = None

    @property
    def actionable_tasks(self) -> list[PotentialTask]:
        return [t for t in self.tasks if not t.is_rejected]


class HarvestedTask(BaseModel):
    id: str
    text: str
    source_file: str
    source_context: str | None = None
    source_date: str | None = None
    suggested_destination: Destination = Destination.LATER
    slice_link: str | None = None
    reasoning: str | None = None
    existing_similar: str | None = None


class IdeaTask(BaseModel):
    id: str
    text: str
    idea_heading: str
    idea_context: str | None = None
    suggested_destination: Destination = Destination.LATER
    suggested_slice_link: str | None = None
    reasoning: str | None = None
    existing_similar: str | None = None
    moved_to: Destination | None = None


class Commit(BaseModel):
    """A commit as delivered by the commit feed."""

    sha: str
    message: str
    date: str = ""
    url: str | None = None


class CommitMatch(BaseModel):
    id: str
    commit_sha: str
    short_sha: str
    message: str
    title: str
    date: str = ""
    url: str | None = None
    task_text: str
    task_section: TaskSection = TaskSection.NEXT
    confidence: Confidence = Confidence.MEDIUM
    reasoning: str | None = None

    @property
    def default_action(self) -> SyncAction:
        return {
            Confidence.HIGH: SyncAction.MARK_ARCHIVE,
            Confidence.MEDIUM: SyncAction.MARK_COMPLETE,
            Confidence.LOW: SyncAction.SKIP,
        }[self.confidence]


class UnmatchedCommit(BaseModel):
    commit_sha: str
    short_sha: str
    title: str
    date: str = ""
    reasoning: str | None = None


class CompletedTask(BaseModel):
    id: str
    text: str
    full_line: str
    line_number: int
    slice_ref: str | None = None
    slice_name: str | None = None
    section: TaskSection = TaskSection.UNKNOWN
    sub_items: list[str] = Field(default_factory=list)


class ArchiveGroup(BaseModel):
    """Completed tasks sharing a slice reference; ``slice_ref`` None is standalone."""

    slice_ref: str | None = None
    slice_name: str | None = None
    tasks: list[CompletedTask] = Field(default_factory=list)
    summary: str | None = None

    @property
    def heading(self) -> str:
        if self.slice_ref is None:
            return STANDALONE_ARCHIVE_HEADING
        return f"### {self.slice_ref}"


class PromoteStatus(str, Enum):
    SUCCESS = "success"
    ALREADY_ACTIVE = "already_active"
    NO_TASKS = "no_tasks"


class SelectedTask(BaseModel):
    id: str = "promote-0"
    text: str
    source_section: TaskSection = TaskSection.NEXT
    slice_link: str | None = None
    line_number: int | None = None
    sub_item_count: int = 0


class CandidateTask(BaseModel):
    text: str
    source_section: TaskSection = TaskSection.NEXT
    slice_link: str | None = None
    score: int = 0
    note: str = ""


class MilestoneStatusChange(BaseModel):
    milestone: str
    from_status: str = Field(default="planned", alias="from")
    to_status: str = Field(default="active", alias="to")

    model_config = ConfigDict(populate_by_name=True)


class RoadmapChanges(BaseModel):
    should_update_current_focus: bool = False
    new_focus_milestone: str | None = None
    milestone_status_change: MilestoneStatusChange | None = None


class EnrichmentContent(BaseModel):
    why: str = ""
    considerations: list[str] = Field(default_factory=list)
    acceptance: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    prompt: str = ""


class TaskEnrichment(BaseModel):
    id: str
    original_task: str = ""
    task_text: str
    slice_link: str | None = None
    enrichment: EnrichmentContent = Field(default_factory=EnrichmentContent)
    confidence_score: float = 0.0
    confidence_note: str | None = None

    @property
    def confidence_label(self) -> str:
        if self.confidence_score >= 0.7:
            return "High"
        if self.confidence_score >= 0.4:
            return "Medium"
        return "Low"


class PlannedTask(BaseModel):
    id: str
    text: str
    destination: Destination = Destination.NEXT
    slice_link: str | None = None
    enrichment: EnrichmentContent = Field(default_factory=EnrichmentContent)


class SuggestedSlice(BaseModel):
    id: str
    vs_id: str
    name: str
    milestone: str | None = None
    description: str | None = None

    @property
    def link(self) -> str:
        return f"[[Roadmap#{self.vs_id} — {self.name}]]"


class DiffLineKind(str, Enum):
    CONTEXT = "context"
    ADD = "add"
    REMOVE = "remove"


class DiffLine(BaseModel):
    kind: DiffLineKind
    content: str


class DiffHunk(BaseModel):
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[DiffLine] = Field(default_factory=list)


class FileDiff(BaseModel):
    id: str
    file_name: str
    document: DocumentName | None = None
    hunks: list[DiffHunk] = Field(default_factory=list)
    raw_diff: str = ""

    @property
    def additions(self) -> int:
        return sum(1 for h in self.hunks for line in h.lines if line.kind == DiffLineKind.ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for h in self.hunks for line in h.lines if line.kind == DiffLineKind.REMOVE)


# --------------------------------------------------------------------------
# Proposal sets
# --------------------------------------------------------------------------


class _ProposalSetBase(BaseModel):
    """Shared shape of every parse result.

    Parsers never raise; ``success`` False plus ``error`` carries a parse
    failure, an empty entity list carries "nothing found".
    """

    workflow_name: str = ""
    success: bool = True
    error: str | None = None

    def entity_ids(self) -> list[str]:
        raise NotImplementedError

    def default_selections(self) -> list[Selection]:
        raise NotImplementedError

    @property
    def is_empty(self) -> bool:
        return len(self.entity_ids()) == 0


class PotentialTaskProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.POTENTIAL_TASKS] = WorkflowFamily.POTENTIAL_TASKS
    blocks: list[PotentialTaskBlock] = Field(default_factory=list)

    @property
    def actionable_tasks(self) -> list[PotentialTask]:
        return [t for b in self.blocks for t in b.actionable_tasks]

    @property
    def total_task_count(self) -> int:
        return sum(len(b.tasks) for b in self.blocks)

    def entity_ids(self) -> list[str]:
        return [t.id for t in self.actionable_tasks]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=t.id, action=PotentialTaskAction.KEEP.value) for t in self.actionable_tasks]


class HarvestProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.HARVEST] = WorkflowFamily.HARVEST
    tasks: list[HarvestedTask] = Field(default_factory=list)

    def entity_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    def default_selections(self) -> list[Selection]:
        return [
            Selection(entity_id=t.id, action=t.suggested_destination.value, slice_link=t.slice_link)
            for t in self.tasks
        ]


class IdeasGroomProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.IDEAS_GROOM] = WorkflowFamily.IDEAS_GROOM
    tasks: list[IdeaTask] = Field(default_factory=list)

    def entity_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    def default_selections(self) -> list[Selection]:
        return [
            Selection(
                entity_id=t.id,
                action=t.suggested_destination.value,
                slice_link=t.suggested_slice_link,
            )
            for t in self.tasks
        ]


class SyncCommitsProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.SYNC_COMMITS] = WorkflowFamily.SYNC_COMMITS
    matches: list[CommitMatch] = Field(default_factory=list)
    unmatched_commits: list[UnmatchedCommit] = Field(default_factory=list)
    excluded_completed: int = 0

    def entity_ids(self) -> list[str]:
        return [m.id for m in self.matches]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=m.id, action=m.default_action.value) for m in self.matches]


class ArchiveProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.ARCHIVE_COMPLETED] = WorkflowFamily.ARCHIVE_COMPLETED
    groups: list[ArchiveGroup] = Field(default_factory=list)

    @property
    def slice_groups(self) -> list[ArchiveGroup]:
        return [g for g in self.groups if g.slice_ref is not None]

    @property
    def standalone(self) -> ArchiveGroup | None:
        for g in self.groups:
            if g.slice_ref is None:
                return g
        return None

    @property
    def all_tasks(self) -> list[CompletedTask]:
        return [t for g in self.groups for t in g.tasks]

    def entity_ids(self) -> list[str]:
        return [t.id for t in self.all_tasks]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=t.id, action=ArchiveAction.ARCHIVE.value) for t in self.all_tasks]


class PromotionProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.PROMOTE_NEXT] = WorkflowFamily.PROMOTE_NEXT
    status: PromoteStatus = PromoteStatus.NO_TASKS
    selected_task: SelectedTask | None = None
    reasoning: str | None = None
    candidates: list[CandidateTask] = Field(default_factory=list)
    current_now_task: str | None = None
    message: str | None = None
    roadmap_changes: RoadmapChanges | None = None

    def entity_ids(self) -> list[str]:
        if self.status != PromoteStatus.SUCCESS or self.selected_task is None:
            return []
        return [self.selected_task.id]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=i, action=ReviewAction.ACCEPT.value) for i in self.entity_ids()]


class EnrichProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.ENRICH] = WorkflowFamily.ENRICH
    enrichments: list[TaskEnrichment] = Field(default_factory=list)
    skip_reasons: list[str] = Field(default_factory=list)

    def entity_ids(self) -> list[str]:
        return [e.id for e in self.enrichments]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=e.id, action=ReviewAction.ACCEPT.value) for e in self.enrichments]


class PlanWorkProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.PLAN_WORK] = WorkflowFamily.PLAN_WORK
    tasks: list[PlannedTask] = Field(default_factory=list)
    suggested_slices: list[SuggestedSlice] = Field(default_factory=list)
    notes: str | None = None

    def entity_ids(self) -> list[str]:
        return [t.id for t in self.tasks] + [s.id for s in self.suggested_slices]

    def default_selections(self) -> list[Selection]:
        selections = [
            Selection(entity_id=t.id, action=t.destination.value, slice_link=t.slice_link)
            for t in self.tasks
        ]
        selections.extend(
            Selection(entity_id=s.id, action=ReviewAction.ACCEPT.value) for s in self.suggested_slices
        )
        return selections


class InitSummaryProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.INIT_SUMMARY] = WorkflowFamily.INIT_SUMMARY
    diffs: list[FileDiff] = Field(default_factory=list)
    missing_files: list[DocumentName] = Field(default_factory=list)
    has_questions: bool = False
    question_content: str | None = None

    def entity_ids(self) -> list[str]:
        return [d.id for d in self.diffs]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=d.id, action=ReviewAction.ACCEPT.value) for d in self.diffs]


class FileDiffProposals(_ProposalSetBase):
    family: Literal[WorkflowFamily.FILE_DIFF] = WorkflowFamily.FILE_DIFF
    diffs: list[FileDiff] = Field(default_factory=list)

    def entity_ids(self) -> list[str]:
        return [d.id for d in self.diffs]

    def default_selections(self) -> list[Selection]:
        return [Selection(entity_id=d.id, action=ReviewAction.ACCEPT.value) for d in self.diffs]


ProposalSet = Annotated[
    Union[
        PotentialTaskProposals,
        HarvestProposals,
        IdeasGroomProposals,
        SyncCommitsProposals,
        ArchiveProposals,
        PromotionProposals,
        EnrichProposals,
        PlanWorkProposals,
        InitSummaryProposals,
        FileDiffProposals,
    ],
    Field(discriminator="family"),
]
