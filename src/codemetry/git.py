"""Read commit activity from a git repository via the ``git`` CLI.

One ``git log --numstat`` call per window yields every commit with its
line counts and touched paths.  Records are separated with an ASCII
record separator so subjects containing tabs or newlines cannot break
parsing.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from codemetry.errors import GitCommandError, InvalidRepoError
from codemetry.windows import AnalysisWindow

logger = logging.getLogger(__name__)

_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%x1e%H%x09%an%x09%ae%x09%ad%x09%s"


@dataclass(frozen=True)
class CommitInfo:
    """A single commit with its numstat totals."""

    hash: str
    author_name: str
    author_email: str
    authored_at: datetime
    subject: str
    insertions: int = 0
    deletions: int = 0
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "authored_at": self.authored_at.isoformat(),
            "subject": self.subject,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "files": list(self.files),
        }


@dataclass(frozen=True)
class RepoSnapshot:
    """Aggregated activity for one window."""

    window: AnalysisWindow
    commits: tuple[CommitInfo, ...] = ()
    files_touched: tuple[str, ...] = ()
    added: int = 0
    deleted: int = 0

    @property
    def commits_count(self) -> int:
        return len(self.commits)

    @property
    def files_touched_count(self) -> int:
        return len(self.files_touched)

    @property
    def churn(self) -> int:
        return self.added + self.deleted

    @classmethod
    def from_commits(cls, window: AnalysisWindow, commits: list[CommitInfo]) -> RepoSnapshot:
        """Total up insertions/deletions and de-duplicate touched files."""
        files: dict[str, None] = {}
        added = 0
        deleted = 0
        for commit in commits:
            added += commit.insertions
            deleted += commit.deletions
            for path in commit.files:
                files.setdefault(path, None)
        return cls(
            window=window,
            commits=tuple(commits),
            files_touched=tuple(files),
            added=added,
            deleted=deleted,
        )

    def to_dict(self) -> dict:
        return {
            "window": self.window.to_dict(),
            "commits": [c.to_dict() for c in self.commits],
            "files_touched": list(self.files_touched),
            "totals": {
                "commits_count": self.commits_count,
                "files_touched_count": self.files_touched_count,
                "added": self.added,
                "deleted": self.deleted,
                "churn": self.churn,
            },
        }


def _parse_timestamp(value: str) -> datetime:
    # git's iso-strict uses a trailing "Z" for UTC
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def parse_log_output(output: str) -> list[CommitInfo]:
    """Parse ``git log --numstat`` output produced with :data:`_LOG_FORMAT`."""
    commits: list[CommitInfo] = []
    for record in output.split(_RECORD_SEP):
        lines = record.strip("\n").splitlines()
        if not lines or not lines[0].strip():
            continue

        parts = lines[0].split("\t", 4)
        if len(parts) < 5:
            continue
        sha, author_name, author_email, authored_at, subject = parts

        insertions = 0
        deletions = 0
        files: list[str] = []
        for line in lines[1:]:
            cols = line.split("\t", 2)
            if len(cols) < 3:
                continue
            added, removed, path = cols
            # Binary files report "-" for both counts
            if added != "-":
                insertions += int(added)
            if removed != "-":
                deletions += int(removed)
            files.append(path)

        commits.append(
            CommitInfo(
                hash=sha,
                author_name=author_name,
                author_email=author_email,
                authored_at=_parse_timestamp(authored_at),
                subject=subject,
                insertions=insertions,
                deletions=deletions,
                files=tuple(files),
            )
        )
    return commits


class GitRepoReader:
    """Thin wrapper over the ``git`` executable."""

    def __init__(self, git_binary: str = "git"):
        self.git_binary = git_binary

    def validate_repo(self, repo_path: str) -> None:
        """Raise :class:`InvalidRepoError` unless *repo_path* is a work tree."""
        if not Path(repo_path).is_dir():
            raise InvalidRepoError.path_not_found(repo_path)
        try:
            out = self._run(["rev-parse", "--is-inside-work-tree"], repo_path)
        except GitCommandError as exc:
            raise InvalidRepoError.not_a_git_repo(repo_path) from exc
        if out != "true":
            raise InvalidRepoError.not_a_git_repo(repo_path)

    def get_commits(
        self,
        repo_path: str,
        window: AnalysisWindow,
        author: str | None = None,
        branch: str | None = None,
    ) -> list[CommitInfo]:
        """Commits in *window*, newest first.

        git filters on committer date and treats ``--until`` as inclusive.
        Dates have one-second resolution, so the upper bound is pulled back
        one second to keep the window half-open.
        """
        until = window.end - timedelta(seconds=1)
        args = [
            "log",
            f"--since={window.start.isoformat()}",
            f"--until={until.isoformat()}",
            "--date=iso-strict",
            "--numstat",
            f"--pretty=format:{_LOG_FORMAT}",
        ]
        if author is not None:
            args.append(f"--author={author}")
        if branch is not None:
            args.append(branch)
        args.append("--")

        output = self._run(args, repo_path)
        if not output:
            return []
        return parse_log_output(output)

    def build_snapshot(
        self,
        repo_path: str,
        window: AnalysisWindow,
        author: str | None = None,
        branch: str | None = None,
    ) -> RepoSnapshot:
        commits = self.get_commits(repo_path, window, author, branch)
        return RepoSnapshot.from_commits(window, commits)

    def _run(self, args: list[str], cwd: str) -> str:
        cmd = [self.git_binary, *args]
        logger.debug("Running %s in %s", " ".join(cmd), cwd)
        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise GitCommandError(" ".join(cmd), str(exc)) from exc

        if proc.returncode != 0:
            raise GitCommandError(" ".join(cmd), proc.stderr)
        return proc.stdout.strip()
