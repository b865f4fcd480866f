"""Follow-up fix density.

Looks *ahead* of the window: commits in the following ``horizon`` days
that touch a file changed in the window and carry a fix keyword suggest
the window's work needed repair.  Density is normalised by the window's
churn so large days are not penalised just for being large.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from codemetry.signals.base import ProviderContext, SignalProvider, SignalSet, numeric
from codemetry.windows import AnalysisWindow

if TYPE_CHECKING:
    from codemetry.git import RepoSnapshot


def _signals(label: str, horizon_days: int, touching: int, fixes: int, density: float) -> SignalSet:
    return SignalSet.of(
        label,
        numeric("followup.horizon_days", horizon_days, "Number of days scanned after window"),
        numeric(
            "followup.touching_commits", touching,
            "Horizon commits touching files from window",
        ),
        numeric(
            "followup.fix_commits", fixes,
            "Horizon commits with fix keywords touching window files",
        ),
        numeric("followup.fix_density", density, "Fix commits / max(1, churn)"),
    )


class FollowUpFixProvider(SignalProvider):
    """Fix commits in the horizon after a window that revisit its files."""

    provider_id = "follow_up_fix"

    def provide(self, snapshot: RepoSnapshot, ctx: ProviderContext) -> SignalSet:
        horizon_days = ctx.config.follow_up_horizon_days
        label = snapshot.window.label

        if ctx.reader is None or snapshot.files_touched_count == 0 or horizon_days <= 0:
            return _signals(label, horizon_days, 0, 0, 0.0)

        horizon = AnalysisWindow(
            start=snapshot.window.end,
            end=snapshot.window.end + timedelta(days=horizon_days),
            label=f"{label}+horizon",
        )
        horizon_commits = ctx.reader.get_commits(ctx.repo_path, horizon)

        window_files = set(snapshot.files_touched)
        fix_re = ctx.config.keywords.fix_regex
        touching = 0
        fixes = 0
        for commit in horizon_commits:
            if not window_files.intersection(commit.files):
                continue
            touching += 1
            if fix_re.search(commit.subject):
                fixes += 1

        density = round(fixes / max(1, snapshot.churn), 6)
        return _signals(label, horizon_days, touching, fixes, density)
