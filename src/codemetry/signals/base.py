"""Signal types and the provider interface.

A provider turns one window's :class:`RepoSnapshot` into a
:class:`SignalSet`.  Keys are namespaced by provider (``change.*``,
``msg.*``, ``followup.*``) so merged sets rarely collide.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

from codemetry.config import MoodConfig

if TYPE_CHECKING:
    from codemetry.git import GitRepoReader, RepoSnapshot


class SignalType(str, Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    STRING = "string"


@dataclass(frozen=True)
class Signal:
    """A single named metric for a window."""

    key: str
    type: SignalType
    value: Any
    description: str = ""

    @property
    def is_numeric(self) -> bool:
        return (
            self.type is SignalType.NUMERIC
            and isinstance(self.value, (int, float))
            and not isinstance(self.value, bool)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "type": self.type.value,
            "value": self.value,
            "description": self.description,
        }


def numeric(key: str, value: float, description: str = "") -> Signal:
    """Shorthand for a numeric signal."""
    return Signal(key, SignalType.NUMERIC, value, description)


@dataclass(frozen=True)
class SignalSet:
    """Signals for one window, keyed by signal key."""

    window_label: str
    signals: dict[str, Signal] = field(default_factory=dict)

    @classmethod
    def of(cls, window_label: str, *signals: Signal) -> SignalSet:
        return cls(window_label, {s.key: s for s in signals})

    def get(self, key: str) -> Signal | None:
        return self.signals.get(key)

    def has(self, key: str) -> bool:
        return key in self.signals

    def keys(self) -> list[str]:
        return list(self.signals)

    def merge(self, other: SignalSet) -> SignalSet:
        """New set with *other*'s signals layered on top of ours."""
        return SignalSet(self.window_label, {**self.signals, **other.signals})

    def __iter__(self) -> Iterator[Signal]:
        return iter(self.signals.values())

    def __len__(self) -> int:
        return len(self.signals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_label": self.window_label,
            "signals": {k: s.to_dict() for k, s in self.signals.items()},
        }


@dataclass(frozen=True)
class ProviderContext:
    """What a provider may consult beyond the snapshot itself."""

    repo_path: str
    config: MoodConfig = field(default_factory=MoodConfig)
    reader: GitRepoReader | None = None


class SignalProvider(ABC):
    """Pluggable metric extractor.

    Subclasses set :attr:`provider_id` and implement :meth:`provide`.
    Providers must not keep state between windows.
    """

    provider_id: str = ""

    def id(self) -> str:
        return self.provider_id

    @abstractmethod
    def provide(self, snapshot: RepoSnapshot, ctx: ProviderContext) -> SignalSet:
        """Extract this provider's signals for one window."""
