"""Historical per-signal distributions used to contextualise a window.

The baseline runs the same provider registry as live analysis over the
``N`` days preceding the analysed range and keeps, for every numeric
signal, the observed values.  Flat history (stddev 0) yields z = 0 and an
empty history yields the neutral percentile 50.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from codemetry.config import MoodConfig
from codemetry.signals.base import ProviderContext
from codemetry.windows import trailing_windows

if TYPE_CHECKING:
    from codemetry.git import GitRepoReader
    from codemetry.signals.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Neutral rank returned when there is no history to compare against
EMPTY_PERCENTILE = 50.0


@dataclass(frozen=True)
class Distribution:
    """Summary statistics of one signal across baseline windows."""

    mean: float
    stddev: float
    sorted_values: tuple[float, ...] = ()

    @classmethod
    def from_values(cls, values: Sequence[float]) -> Distribution:
        """Mean, sample stddev (ddof=1) and the ascending value list."""
        if len(values) == 0:
            return cls(0.0, 0.0, ())
        arr = np.sort(np.asarray(values, dtype=np.float64))
        mean = float(np.mean(arr))
        std = float(np.std(arr, ddof=1)) if len(arr) > 1 else 0.0
        return cls(
            mean=round(mean, 6),
            stddev=round(std, 6),
            sorted_values=tuple(float(v) for v in arr),
        )

    @property
    def count(self) -> int:
        return len(self.sorted_values)

    def z_score(self, value: float) -> float:
        if self.stddev == 0.0:
            return 0.0
        return round((float(value) - self.mean) / self.stddev, 4)

    def percentile_rank(self, value: float) -> float:
        """Percentage of baseline values ``<= value``."""
        if not self.sorted_values:
            return EMPTY_PERCENTILE
        at_or_below = int(np.searchsorted(self.sorted_values, float(value), side="right"))
        return round(at_or_below / len(self.sorted_values) * 100.0, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean,
            "stddev": self.stddev,
            "sorted_values": list(self.sorted_values),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Distribution:
        return cls(
            mean=float(data["mean"]),
            stddev=float(data["stddev"]),
            sorted_values=tuple(float(v) for v in data["sorted_values"]),
        )


@dataclass(frozen=True)
class Baseline:
    """Distributions keyed by signal key."""

    distributions: dict[str, Distribution] = field(default_factory=dict)
    window_count: int = 0

    def get(self, key: str) -> Distribution | None:
        return self.distributions.get(key)

    def has(self, key: str) -> bool:
        return key in self.distributions

    def to_dict(self) -> dict[str, Any]:
        return {
            "distributions": {k: d.to_dict() for k, d in self.distributions.items()},
            "window_count": self.window_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Baseline:
        return cls(
            distributions={
                k: Distribution.from_dict(v) for k, v in data["distributions"].items()
            },
            window_count=int(data["window_count"]),
        )


def build_baseline(
    reader: GitRepoReader,
    registry: ProviderRegistry,
    repo_path: str,
    anchor: datetime,
    baseline_days: int,
    config: MoodConfig | None = None,
) -> Baseline:
    """Collect signals over the *baseline_days* preceding *anchor*.

    Args:
        reader: Repository reader used for snapshots (and by providers).
        registry: The same registry used for live analysis.
        repo_path: Repository path.
        anchor: End of the baseline period (usually the first analysed
            window's start).
        baseline_days: Number of trailing daily windows.
        config: Analysis config passed to providers.

    Returns:
        A Baseline with one Distribution per numeric signal key.
    """
    ctx = ProviderContext(repo_path=repo_path, config=config or MoodConfig(), reader=reader)
    windows = trailing_windows(anchor, baseline_days)
    logger.info(
        "Building %d-day baseline ending %s", baseline_days, anchor.isoformat()
    )

    values: dict[str, list[float]] = {}
    for window in windows:
        snapshot = reader.build_snapshot(repo_path, window)
        collected = registry.collect(snapshot, ctx)
        for signal in collected.signals:
            if not signal.is_numeric:
                continue
            values.setdefault(signal.key, []).append(float(signal.value))

    return Baseline(
        distributions={k: Distribution.from_values(v) for k, v in values.items()},
        window_count=len(windows),
    )
