"""Convert raw signals into z-scores and percentile ranks."""

from __future__ import annotations

from dataclasses import dataclass, field

from codemetry.analytics.baseline import Baseline
from codemetry.signals.base import SignalSet


def z_key(signal_key: str) -> str:
    return f"norm.{signal_key}.z"


def pctl_key(signal_key: str) -> str:
    return f"norm.{signal_key}.pctl"


@dataclass(frozen=True)
class NormalizedFeatureSet:
    """Raw signals plus their baseline-relative values."""

    raw_signals: SignalSet
    normalized: dict[str, float] = field(default_factory=dict)

    def z(self, signal_key: str) -> float | None:
        return self.normalized.get(z_key(signal_key))

    def percentile(self, signal_key: str) -> float | None:
        return self.normalized.get(pctl_key(signal_key))

    def raw_value(self, signal_key: str) -> float | None:
        """Numeric value of a raw signal, or None if absent / non-numeric."""
        signal = self.raw_signals.get(signal_key)
        if signal is None or not signal.is_numeric:
            return None
        return signal.value


def normalize(signals: SignalSet, baseline: Baseline) -> NormalizedFeatureSet:
    """Emit ``.z`` and ``.pctl`` for every numeric signal the baseline knows.

    Signals that are non-numeric or have no distribution are skipped.
    """
    normalized: dict[str, float] = {}
    for signal in signals:
        if not signal.is_numeric:
            continue
        dist = baseline.get(signal.key)
        if dist is None:
            continue
        value = float(signal.value)
        normalized[z_key(signal.key)] = dist.z_score(value)
        normalized[pctl_key(signal.key)] = dist.percentile_rank(value)

    return NormalizedFeatureSet(raw_signals=signals, normalized=normalized)
