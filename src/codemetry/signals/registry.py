"""Ordered provider registry with per-provider failure isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codemetry.signals.base import ProviderContext, SignalProvider, SignalSet

if TYPE_CHECKING:
    from codemetry.git import RepoSnapshot

logger = logging.getLogger(__name__)

PROVIDER_SKIPPED_PREFIX = "provider_skipped:"


def provider_skipped(provider_id: str) -> str:
    """Confounder emitted when a provider raised and was dropped."""
    return f"{PROVIDER_SKIPPED_PREFIX}{provider_id}"


@dataclass
class CollectedSignals:
    """Merged signals for a window plus any skip confounders."""

    signals: SignalSet
    confounders: list[str] = field(default_factory=list)


class ProviderRegistry:
    """Providers keyed by id, run in registration order.

    Re-registering an id replaces the earlier provider but keeps its
    original position.
    """

    def __init__(self, providers: list[SignalProvider] | None = None):
        self._providers: dict[str, SignalProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: SignalProvider) -> None:
        self._providers[provider.id()] = provider

    def ids(self) -> list[str]:
        return list(self._providers)

    def providers(self) -> list[SignalProvider]:
        return list(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def collect(self, snapshot: RepoSnapshot, ctx: ProviderContext) -> CollectedSignals:
        """Run every provider and merge their output.

        A provider that raises contributes nothing for this window; a
        ``provider_skipped:<id>`` confounder takes its place.
        """
        merged = SignalSet(snapshot.window.label)
        confounders: list[str] = []

        for provider_id, provider in self._providers.items():
            try:
                signals = provider.provide(snapshot, ctx)
            except Exception:
                logger.warning(
                    "Provider %s failed for window %s; skipping",
                    provider_id, snapshot.window.label, exc_info=True,
                )
                confounders.append(provider_skipped(provider_id))
                continue
            merged = merged.merge(signals)

        return CollectedSignals(signals=merged, confounders=confounders)


def default_registry() -> ProviderRegistry:
    """Registry with the built-in providers."""
    from codemetry.signals.change_shape import ChangeShapeProvider
    from codemetry.signals.commit_message import CommitMessageProvider
    from codemetry.signals.follow_up import FollowUpFixProvider

    return ProviderRegistry([
        ChangeShapeProvider(),
        CommitMessageProvider(),
        FollowUpFixProvider(),
    ])
