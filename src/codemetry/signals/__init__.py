"""Pluggable signal providers.

Modules:
    base            -- Signal, SignalSet, ProviderContext, SignalProvider
    registry        -- ProviderRegistry with failure isolation
    change_shape    -- churn, file and directory spread
    commit_message  -- fix / revert / WIP keyword counts
    follow_up       -- fix commits in the days after a window
"""

from codemetry.signals.base import (
    Signal,
    SignalType,
    SignalSet,
    ProviderContext,
    SignalProvider,
    numeric,
)
from codemetry.signals.registry import (
    ProviderRegistry,
    CollectedSignals,
    default_registry,
    provider_skipped,
)
from codemetry.signals.change_shape import ChangeShapeProvider
from codemetry.signals.commit_message import CommitMessageProvider
from codemetry.signals.follow_up import FollowUpFixProvider

__all__ = [
    # base
    "Signal",
    "SignalType",
    "SignalSet",
    "ProviderContext",
    "SignalProvider",
    "numeric",
    # registry
    "ProviderRegistry",
    "CollectedSignals",
    "default_registry",
    "provider_skipped",
    # providers
    "ChangeShapeProvider",
    "CommitMessageProvider",
    "FollowUpFixProvider",
]
