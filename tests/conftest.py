"""Shared fixtures and helpers for the codemetry test suite."""

from __future__ import annotations

import itertools
import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone

import pytest

from codemetry.analytics.normalize import NormalizedFeatureSet, pctl_key
from codemetry.errors import InvalidRepoError
from codemetry.git import CommitInfo, GitRepoReader, RepoSnapshot
from codemetry.signals.base import SignalSet, numeric
from codemetry.windows import AnalysisWindow

_sha = itertools.count(1)


# ---------------------------------------------------------------------------
# Commit / window helpers
# ---------------------------------------------------------------------------


def make_commit(
    day: str,
    subject: str = "Add feature",
    files: tuple[str, ...] = ("src/app.py",),
    insertions: int = 10,
    deletions: int = 2,
    hour: int = 12,
    author: str = "Ada",
) -> CommitInfo:
    """Build a commit authored at *hour*:00 UTC on *day* (YYYY-MM-DD)."""
    authored_at = datetime.fromisoformat(day).replace(hour=hour, tzinfo=timezone.utc)
    return CommitInfo(
        hash=f"{next(_sha):040x}",
        author_name=author,
        author_email=f"{author.lower()}@example.com",
        authored_at=authored_at,
        subject=subject,
        insertions=insertions,
        deletions=deletions,
        files=tuple(files),
    )


def make_window(label: str = "2024-01-15") -> AnalysisWindow:
    """A UTC midnight-to-midnight window for *label*."""
    start = datetime.fromisoformat(label).replace(tzinfo=timezone.utc)
    return AnalysisWindow(start=start, end=start + timedelta(days=1), label=label)


def make_snapshot(commits: list[CommitInfo], label: str = "2024-01-15") -> RepoSnapshot:
    return RepoSnapshot.from_commits(make_window(label), commits)


def make_features(
    percentiles: dict[str, float] | None = None,
    raw: dict[str, float] | None = None,
    label: str = "2024-01-15",
) -> NormalizedFeatureSet:
    """Features with explicit percentile ranks and raw values.

    Only the listed keys exist, which lets a test trigger exactly one
    scoring rule.
    """
    raw_signals = SignalSet.of(label, *(numeric(k, v) for k, v in (raw or {}).items()))
    normalized = {pctl_key(k): v for k, v in (percentiles or {}).items()}
    return NormalizedFeatureSet(raw_signals=raw_signals, normalized=normalized)


# ---------------------------------------------------------------------------
# Fake git reader
# ---------------------------------------------------------------------------


class FakeReader(GitRepoReader):
    """In-memory reader: serves a fixed commit list by authored time."""

    def __init__(self, commits: list[CommitInfo] | None = None, valid: bool = True):
        super().__init__()
        self.commits = list(commits or [])
        self.valid = valid
        self.calls: list[str] = []

    def validate_repo(self, repo_path: str) -> None:
        if not self.valid:
            raise InvalidRepoError.not_a_git_repo(repo_path)

    def get_commits(self, repo_path, window, author=None, branch=None):
        self.calls.append(window.label)
        found = [
            c for c in self.commits
            if window.start <= c.authored_at < window.end
            and (author is None or author in c.author_name)
        ]
        return sorted(found, key=lambda c: c.authored_at, reverse=True)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def repo_dir(tmp_path):
    """A directory that looks like a work tree (has a writable ``.git``)."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture
def history() -> list[CommitInfo]:
    """Three weeks of ordinary activity followed by one rough day."""
    commits: list[CommitInfo] = []
    start = datetime(2024, 1, 1)
    for offset in range(21):
        day = (start + timedelta(days=offset)).strftime("%Y-%m-%d")
        commits.append(make_commit(day, "Add feature", ("src/app.py",), 10 + offset % 5, 2))
        if offset % 3 == 0:
            commits.append(make_commit(day, "Update docs", ("docs/index.md",), 4, 1, hour=15))

    rough = "2024-01-22"
    commits.append(make_commit(
        rough, "Rewrite storage layer",
        ("src/store/a.py", "src/store/b.py", "lib/c.py", "tools/d.py", "web/e.js"),
        900, 400, hour=10,
    ))
    commits.append(make_commit(rough, 'Revert "Rewrite storage layer"', ("src/store/a.py",), 5, 5, hour=11))
    commits.append(make_commit("2024-01-23", "Fix crash in storage", ("src/store/a.py",), 3, 1))
    return commits


# ---------------------------------------------------------------------------
# Real git repository
# ---------------------------------------------------------------------------

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def run_git(repo, *args, when: str | None = None) -> None:
    """Run git in *repo*; *when* pins both author and committer dates."""
    env = dict(os.environ)
    if when is not None:
        env["GIT_AUTHOR_DATE"] = when
        env["GIT_COMMITTER_DATE"] = when
    subprocess.run(
        ["git", "-c", "user.name=Ada", "-c", "user.email=ada@example.com", *args],
        cwd=repo, env=env, check=True, capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path):
    """Two commits: an initial one on 2024-01-15 and a fix on 2024-01-16."""
    repo = tmp_path / "work"
    repo.mkdir()
    run_git(repo, "init", "-q")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("a = 1\nb = 2\n")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "Initial commit", when="2024-01-15T10:00:00+00:00")
    (repo / "src" / "app.py").write_text("a = 1\nb = 3\n")
    run_git(repo, "commit", "-q", "-am", "Fix b", when="2024-01-16T10:00:00+00:00")
    return repo
