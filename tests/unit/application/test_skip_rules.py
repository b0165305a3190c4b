"""Tests for named skip predicates of combined steps."""

from docwf.application.skip_rules import (
    NO_POTENTIAL_TASKS_REASON,
    NO_REPOSITORY_REASON,
    NOW_HAS_TASKS_REASON,
    SkipContext,
    evaluate_skip,
)
from docwf.domain.models.documents import DocumentName
from docwf.domain.persistence.document_store import InMemoryDocumentStore

BLOCK = (
    "## 2024-01-15\n\n9:00am\n#### Potential tasks (AI-generated)\n"
    "<!-- AI: potential-tasks start -->\n- [ ] Do it\n<!-- AI: potential-tasks end -->\n"
)


def _ctx(repo=None, **documents):
    store = InMemoryDocumentStore({DocumentName[k.upper()]: v for k, v in documents.items()})
    return SkipContext(github_repo=repo, read_document=store.read)


def test_no_repository(catalog):
    maintenance = catalog.get_definition("tasks-maintenance")
    assert evaluate_skip(maintenance, "sync-commits", _ctx()) == NO_REPOSITORY_REASON
    assert evaluate_skip(maintenance, "sync-commits", _ctx(repo="me/project")) is None


def test_now_section_has_tasks(catalog):
    maintenance = catalog.get_definition("tasks-maintenance")
    busy = _ctx(tasks="## Now\n- [ ] Busy\n")
    idle = _ctx(tasks="## Now\n\n## Next\n- [ ] Later\n")
    assert evaluate_skip(maintenance, "promote-next-task", busy) == NOW_HAS_TASKS_REASON
    assert evaluate_skip(maintenance, "promote-next-task", idle) is None


def test_no_actionable_potential_tasks(catalog):
    refine = catalog.get_definition("log-refine")
    assert evaluate_skip(refine, "groom-tasks", _ctx(log=BLOCK)) is None
    assert evaluate_skip(refine, "groom-tasks", _ctx(log="## 2024-01-15\n")) == NO_POTENTIAL_TASKS_REASON


def test_missing_document_reads_as_empty(catalog):
    refine = catalog.get_definition("log-refine")
    assert evaluate_skip(refine, "groom-tasks", _ctx()) == NO_POTENTIAL_TASKS_REASON


def test_steps_without_rules_never_skip(catalog):
    maintenance = catalog.get_definition("tasks-maintenance")
    assert evaluate_skip(maintenance, "archive-completed", _ctx()) is None
