"""Recent-commit source for the sync-commits workflow."""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from docwf.domain.constants import DEFAULT_COMMIT_LIMIT
from docwf.domain.errors import ProviderError
from docwf.domain.models.proposals import Commit

logger = logging.getLogger(__name__)

# Unit and record separators keep multi-line messages intact.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_GIT_FORMAT = f"%H{_FIELD_SEP}%aI{_FIELD_SEP}%B{_RECORD_SEP}"
DEFAULT_TIMEOUT = 30


class CommitFeed(Protocol):
    def list_recent_commits(self, repo: str, limit: int = DEFAULT_COMMIT_LIMIT) -> list[Commit]:
        """Newest first. Raises ProviderError when the feed is unavailable."""
        ...


class GitLogCommitFeed:
    """Reads commits from a local clone with ``git log``.

    ``repo`` is the configured ``owner/name``; it is only used to build
    commit URLs.
    """

    def __init__(self, repo_dir: Path | str = ".", timeout: int = DEFAULT_TIMEOUT) -> None:
        self.repo_dir = Path(repo_dir)
        self.timeout = timeout

    def list_recent_commits(self, repo: str, limit: int = DEFAULT_COMMIT_LIMIT) -> list[Commit]:
        args = ["git", "log", f"-n{limit}", f"--format={_GIT_FORMAT}"]
        try:
            completed = subprocess.run(
                args,
                cwd=self.repo_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise ProviderError("git not found on PATH")
        except subprocess.TimeoutExpired:
            raise ProviderError(f"git log timed out after {self.timeout}s")

        if completed.returncode != 0:
            raise ProviderError(f"git log failed: {completed.stderr.strip()}")

        commits = parse_git_log(completed.stdout, repo)
        logger.debug("Read %d commit(s) from %s", len(commits), self.repo_dir)
        return commits


def parse_git_log(output: str, repo: str | None = None) -> list[Commit]:
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_FIELD_SEP, 2)
        if len(fields) != 3:
            continue
        sha, date, message = fields
        url = f"https://github.com/{repo}/commit/{sha}" if repo else None
        commits.append(Commit(sha=sha.strip(), message=message.strip(), date=date.strip(), url=url))
    return commits


class StaticCommitFeed:
    """Fixed commit list, for tests and offline runs."""

    def __init__(self, commits: list[Commit]) -> None:
        self.commits = list(commits)

    def list_recent_commits(self, repo: str, limit: int = DEFAULT_COMMIT_LIMIT) -> list[Commit]:
        return self.commits[:limit]
