"""Tests for the git-log commit feed."""

import subprocess
from pathlib import Path

import pytest

from docwf.domain.errors import ProviderError
from docwf.domain.models.proposals import Commit
from docwf.domain.providers.commit_feed import GitLogCommitFeed, StaticCommitFeed, parse_git_log

FS, RS = "\x1f", "\x1e"


def _record(sha: str, date: str, message: str) -> str:
    return f"{sha}{FS}{date}{FS}{message}{RS}"


class TestParseGitLog:
    def test_multi_line_messages(self) -> None:
        output = _record("abc123", "2024-01-16T10:00:00+00:00", "Add caching\n\nUses LRU.\n") + "\n"
        output += _record("def456", "2024-01-15T09:00:00+00:00", "Initial commit\n")
        commits = parse_git_log(output, "me/project")
        assert [c.sha for c in commits] == ["abc123", "def456"]
        assert commits[0].message == "Add caching\n\nUses LRU."
        assert commits[0].url == "https://github.com/me/project/commit/abc123"

    def test_without_repo_has_no_urls(self) -> None:
        commits = parse_git_log(_record("abc123", "2024-01-16", "x"))
        assert commits[0].url is None

    def test_malformed_records_are_skipped(self) -> None:
        assert parse_git_log(f"garbage{RS}\n{RS}") == []


class TestGitLogCommitFeed:
    def test_runs_git_log(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        seen = {}

        def fake_run(args, **kwargs):
            seen["args"] = args
            seen["cwd"] = kwargs["cwd"]
            return subprocess.CompletedProcess(args, 0, stdout=_record("abc123", "2024-01-16", "x"), stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        commits = GitLogCommitFeed(tmp_path).list_recent_commits("me/project", limit=5)
        assert seen["args"][:3] == ["git", "log", "-n5"]
        assert seen["cwd"] == tmp_path
        assert commits[0].sha == "abc123"

    def test_git_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda args, **kwargs: subprocess.CompletedProcess(args, 128, stdout="", stderr="not a git repository"),
        )
        with pytest.raises(ProviderError, match="not a git repository"):
            GitLogCommitFeed(tmp_path).list_recent_commits("me/project")

    def test_git_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def missing(args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(subprocess, "run", missing)
        with pytest.raises(ProviderError, match="git not found"):
            GitLogCommitFeed(tmp_path).list_recent_commits("me/project")


def test_static_feed_limits() -> None:
    feed = StaticCommitFeed([Commit(sha=str(i), message="m") for i in range(5)])
    assert len(feed.list_recent_commits("me/project", limit=2)) == 2
