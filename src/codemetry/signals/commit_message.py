"""Keyword counts over commit subjects (fix / revert / WIP)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codemetry.signals.base import ProviderContext, SignalProvider, SignalSet, numeric

if TYPE_CHECKING:
    from codemetry.git import RepoSnapshot


class CommitMessageProvider(SignalProvider):
    """Counts subjects matching the configured keyword patterns."""

    provider_id = "commit_message"

    def provide(self, snapshot: RepoSnapshot, ctx: ProviderContext) -> SignalSet:
        keywords = ctx.config.keywords
        fix_re = keywords.fix_regex
        revert_re = keywords.revert_regex
        wip_re = keywords.wip_regex

        fix_count = 0
        revert_count = 0
        wip_count = 0
        for commit in snapshot.commits:
            if fix_re.search(commit.subject):
                fix_count += 1
            if revert_re.search(commit.subject):
                revert_count += 1
            if wip_re.search(commit.subject):
                wip_count += 1

        commits = snapshot.commits_count
        fix_ratio = round(fix_count / commits, 4) if commits > 0 else 0.0

        return SignalSet.of(
            snapshot.window.label,
            numeric("msg.fix_keyword_count", fix_count, "Commits matching fix keywords"),
            numeric("msg.revert_count", revert_count, "Commits matching revert keyword"),
            numeric("msg.wip_count", wip_count, "Commits matching WIP keywords"),
            numeric("msg.fix_ratio", fix_ratio, "Ratio of fix commits to total commits"),
        )
