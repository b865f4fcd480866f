"""Size and spread of the change set in a window."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from codemetry.signals.base import ProviderContext, SignalProvider, SignalSet, numeric

if TYPE_CHECKING:
    from codemetry.git import RepoSnapshot


def scatter(files: tuple[str, ...] | list[str]) -> int:
    """Number of distinct parent directories among *files*."""
    return len({posixpath.dirname(f) or "." for f in files})


class ChangeShapeProvider(SignalProvider):
    """Lines added/deleted, churn, commit and file counts, directory scatter."""

    provider_id = "change_shape"

    def provide(self, snapshot: RepoSnapshot, ctx: ProviderContext) -> SignalSet:
        commits = snapshot.commits_count
        churn_per_commit = round(snapshot.churn / commits, 2) if commits > 0 else 0.0

        return SignalSet.of(
            snapshot.window.label,
            numeric("change.added", snapshot.added, "Total lines added"),
            numeric("change.deleted", snapshot.deleted, "Total lines deleted"),
            numeric("change.churn", snapshot.churn, "Total lines added + deleted"),
            numeric("change.commits_count", commits, "Number of commits in window"),
            numeric(
                "change.files_touched",
                snapshot.files_touched_count,
                "Number of unique files touched",
            ),
            numeric("change.churn_per_commit", churn_per_commit, "Average churn per commit"),
            numeric(
                "change.scatter",
                scatter(snapshot.files_touched),
                "Number of unique directories touched",
            ),
        )
