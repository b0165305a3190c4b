"""Tests for family handlers: prechecks, requests and apply outcomes."""

import json

import pytest

from docwf.application.config_models import EngineConfig
from docwf.application.families import FamilyContext, handler_for
from docwf.application.families.file_diff import ALL_TITLED_REASON, NO_LOG_ENTRIES_REASON
from docwf.application.families.sync_commits import (
    NO_COMMIT_FEED_REASON,
    NO_COMMITS_REASON,
    NO_OPEN_TASKS_REASON,
)
from docwf.application.dispatch import family_for
from docwf.application.skip_rules import NO_REPOSITORY_REASON
from docwf.domain.errors import ProviderError
from docwf.domain.models.documents import DocumentName
from docwf.domain.models.proposals import Commit, Selection, WorkflowFamily
from docwf.domain.providers.commit_feed import StaticCommitFeed


class FailingFeed:
    def list_recent_commits(self, repo, limit=20):
        raise ProviderError("git log failed")


def _ctx(catalog, name, documents, **kwargs):
    config = kwargs.pop("config", EngineConfig())
    return FamilyContext(definition=catalog.get_definition(name), documents=dict(documents), config=config, **kwargs)


@pytest.mark.parametrize("family", list(WorkflowFamily))
def test_handler_for_every_family(family):
    assert handler_for(family).family == family


def test_handler_for_unknown_family():
    with pytest.raises(ValueError, match="No handler"):
        handler_for("nonsense")


class TestFileDiff:
    def test_title_entries_precheck(self, catalog, project_documents):
        handler = handler_for(WorkflowFamily.FILE_DIFF)
        ctx = _ctx(catalog, "title-entries", project_documents)
        assert handler.precheck(ctx) is None

        titled = {DocumentName.LOG: "## 2024-01-15\n\n9:00am - Kickoff\nPlanned.\n"}
        assert handler.precheck(_ctx(catalog, "title-entries", titled)) == ALL_TITLED_REASON

    def test_generate_tasks_without_entries(self, catalog):
        handler = handler_for(WorkflowFamily.FILE_DIFF)
        ctx = _ctx(catalog, "generate-tasks", {DocumentName.LOG: "# Log\n"})
        assert handler.precheck(ctx) == NO_LOG_ENTRIES_REASON

    def test_title_entries_request_holds_only_untitled_entries(self, catalog, project_documents):
        handler = handler_for(WorkflowFamily.FILE_DIFF)
        request = handler.build_request(_ctx(catalog, "title-entries", project_documents))
        assert request.step_name == "title-entries"
        assert "Started the MCP server." in request.documents["Log.md"]
        assert "Wrote the README." not in request.documents["Log.md"]

    def test_apply_reports_failures(self, catalog, project_documents):
        handler = handler_for(WorkflowFamily.FILE_DIFF)
        ctx = _ctx(catalog, "title-entries", project_documents)
        response = (
            "```diff\n--- a/Log.md\n+++ b/Log.md\n@@ -5,2 +5,2 @@\n-11:48am\n+11:48am - MCP Server\n"
            " Started the MCP server.\n```\n"
            "```diff\n--- a/Log.md\n+++ b/Log.md\n@@ -900,1 +900,1 @@\n-No such line\n+x\n```"
        )
        proposals = handler.parse_response(response, ctx)
        outcome = handler.apply(proposals, proposals.default_selections(), ctx)
        assert "11:48am - MCP Server" in outcome.updated[DocumentName.LOG]
        assert outcome.affected_count == 1
        assert any(m.startswith("Diff not applied") for m in outcome.messages)


class TestSyncCommits:
    COMMITS = [Commit(sha="abc1234def", message="Add caching layer", date="2024-01-16")]

    @pytest.fixture
    def config(self):
        return EngineConfig(github_repo="me/project")

    def test_precheck_order(self, catalog, project_documents, config):
        handler = handler_for(WorkflowFamily.SYNC_COMMITS)
        feed = StaticCommitFeed(self.COMMITS)
        assert handler.precheck(_ctx(catalog, "sync-commits", project_documents, commit_feed=feed)) == NO_REPOSITORY_REASON
        assert handler.precheck(_ctx(catalog, "sync-commits", project_documents, config=config)) == NO_COMMIT_FEED_REASON
        closed = {DocumentName.TASKS: "## Next\n- [x] Done\n"}
        assert handler.precheck(_ctx(catalog, "sync-commits", closed, config=config, commit_feed=feed)) == NO_OPEN_TASKS_REASON
        empty_feed = StaticCommitFeed([])
        assert (
            handler.precheck(_ctx(catalog, "sync-commits", project_documents, config=config, commit_feed=empty_feed))
            == NO_COMMITS_REASON
        )

    def test_feed_errors_propagate(self, catalog, project_documents, config):
        handler = handler_for(WorkflowFamily.SYNC_COMMITS)
        ctx = _ctx(catalog, "sync-commits", project_documents, config=config, commit_feed=FailingFeed())
        with pytest.raises(ProviderError):
            handler.precheck(ctx)

    def test_request_and_apply(self, catalog, project_documents, config):
        handler = handler_for(WorkflowFamily.SYNC_COMMITS)
        ctx = _ctx(catalog, "sync-commits", project_documents, config=config, commit_feed=StaticCommitFeed(self.COMMITS))
        assert handler.precheck(ctx) is None

        metadata = handler.build_request(ctx).metadata
        assert metadata["repository"] == "me/project"
        assert metadata["commits"][0]["sha"] == "abc1234def"
        assert {"text": "Add caching [[Roadmap#VS1 — Core]]", "section": "next"} in metadata["open_tasks"]

        response = json.dumps(
            {"matches": [{"commitSha": "abc1234def", "taskText": "Add caching", "confidence": "high"}]}
        )
        proposals = handler.parse_response(response, ctx)
        outcome = handler.apply(proposals, proposals.default_selections(), ctx)
        assert "- [x] Add caching" in outcome.updated[DocumentName.TASKS]
        assert "Add caching layer" not in outcome.updated[DocumentName.ARCHIVE]
        assert "**What:** Add caching" in outcome.updated[DocumentName.ARCHIVE]
        assert outcome.messages == ["Marked 1 task(s) complete", "Logged 1 commit(s) in Archive.md"]


class TestPotentialTasks:
    LOG = (
        "## 2024-01-15\n\n9:00am - Kickoff\nPlanned.\n\n#### Potential tasks (AI-generated)\n"
        "<!-- AI: potential-tasks start -->\n- [ ] Keep me\n- [ ] Move me\n<!-- AI: potential-tasks end -->\n"
    )

    def test_local_parse_and_move(self, catalog, project_documents):
        handler = handler_for(family_for("groom-tasks"))
        documents = {**project_documents, DocumentName.LOG: self.LOG}
        ctx = _ctx(catalog, "groom-tasks", documents)
        proposals = handler.parse_local(ctx)
        move_id = proposals.actionable_tasks[1].id
        selections = [Selection(entity_id=move_id, action="move-to-future")]
        outcome = handler.apply(proposals, selections, ctx)
        assert "Move me" not in outcome.updated[DocumentName.LOG]
        assert "- [ ] Move me <!-- from Log.md 2024-01-15 -->" in outcome.updated[DocumentName.TASKS]
        assert outcome.affected_count == 1
