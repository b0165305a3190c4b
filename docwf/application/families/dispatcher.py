"""Maps a WorkflowFamily to its handler."""

from docwf.domain.models.proposals import WorkflowFamily

from .archive_completed import ArchiveCompletedHandler
from .base import FamilyHandler
from .enrich import EnrichHandler
from .file_diff import FileDiffHandler
from .harvest import HarvestHandler, IdeasGroomHandler
from .init_summary import InitSummaryHandler
from .plan_work import PlanWorkHandler
from .potential_tasks import PotentialTasksHandler
from .promote_next import PromoteNextHandler
from .sync_commits import SyncCommitsHandler


def handler_for(family: WorkflowFamily) -> FamilyHandler:
    """Return a fresh handler for ``family``.

    Raises:
        ValueError: If the family has no handler
    """
    if family == WorkflowFamily.FILE_DIFF:
        return FileDiffHandler()
    elif family == WorkflowFamily.POTENTIAL_TASKS:
        return PotentialTasksHandler()
    elif family == WorkflowFamily.HARVEST:
        return HarvestHandler()
    elif family == WorkflowFamily.IDEAS_GROOM:
        return IdeasGroomHandler()
    elif family == WorkflowFamily.SYNC_COMMITS:
        return SyncCommitsHandler()
    elif family == WorkflowFamily.ARCHIVE_COMPLETED:
        return ArchiveCompletedHandler()
    elif family == WorkflowFamily.PROMOTE_NEXT:
        return PromoteNextHandler()
    elif family == WorkflowFamily.ENRICH:
        return EnrichHandler()
    elif family == WorkflowFamily.PLAN_WORK:
        return PlanWorkHandler()
    elif family == WorkflowFamily.INIT_SUMMARY:
        return InitSummaryHandler()
    else:
        raise ValueError(f"No handler for family: {family}")
