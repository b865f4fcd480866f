"""AI input/output payloads.

:class:`MoodAiInput` is metrics only: it never carries code or diffs,
just numbers, labels and file paths.
"""

from __future__ import annotations

import math
import posixpath
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Mapping

from codemetry.analytics.scoring import MoodLabel, MoodResult, ReasonItem
from codemetry.git import RepoSnapshot

SCORE_DELTA_LIMIT = 10
CONFIDENCE_DELTA_LIMIT = 0.1
TOP_EXTENSIONS = 10
TOP_PATHS = 20


@dataclass(frozen=True)
class MoodAiInput:
    """Everything an engine sees about one window."""

    window_label: str
    mood_label: MoodLabel
    mood_score: int
    confidence: float
    raw_signals: dict[str, Any] = field(default_factory=dict)
    normalized: dict[str, float] = field(default_factory=dict)
    reasons: tuple[ReasonItem, ...] = ()
    confounders: tuple[str, ...] = ()
    commits_count: int = 0
    extension_histogram: dict[str, int] = field(default_factory=dict)
    top_paths: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_label": self.window_label,
            "mood_label": self.mood_label.value,
            "mood_score": self.mood_score,
            "confidence": self.confidence,
            "raw_signals": dict(self.raw_signals),
            "normalized": dict(self.normalized),
            "reasons": [r.to_dict() for r in self.reasons],
            "confounders": list(self.confounders),
            "commits_count": self.commits_count,
            "extension_histogram": dict(self.extension_histogram),
            "top_paths": list(self.top_paths),
        }


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _finite(value: Any, default: float) -> float:
    """*value* as a finite float, else *default*."""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


@dataclass(frozen=True)
class MoodAiSummary:
    """Explanation bullets plus bounded score/confidence adjustments."""

    explanation_bullets: tuple[str, ...] = ()
    score_delta: int = 0
    confidence_delta: float = 0.0
    label_override: MoodLabel | None = None

    def __post_init__(self) -> None:
        score = max(-SCORE_DELTA_LIMIT, min(SCORE_DELTA_LIMIT, int(self.score_delta)))
        conf = max(-CONFIDENCE_DELTA_LIMIT, min(CONFIDENCE_DELTA_LIMIT, float(self.confidence_delta)))
        object.__setattr__(self, "score_delta", score)
        object.__setattr__(self, "confidence_delta", conf)
        object.__setattr__(self, "explanation_bullets", tuple(self.explanation_bullets))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MoodAiSummary:
        """Lenient parse of a model response; deltas are clamped."""
        bullets = _first(data, "explanation_bullets", "explanationBullets", default=[])
        if not isinstance(bullets, list):
            bullets = []

        score_delta = int(_finite(_first(data, "score_delta", "scoreDelta", default=0), 0.0))
        confidence_delta = _finite(_first(data, "confidence_delta", "confidenceDelta", default=0.0), 0.0)

        label_override = None
        raw_label = _first(data, "label_override", "labelOverride")
        if isinstance(raw_label, str):
            try:
                label_override = MoodLabel(raw_label.lower())
            except ValueError:
                label_override = None

        return cls(
            explanation_bullets=tuple(b for b in bullets if isinstance(b, str)),
            score_delta=score_delta,
            confidence_delta=confidence_delta,
            label_override=label_override,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "explanation_bullets": list(self.explanation_bullets),
            "score_delta": self.score_delta,
            "confidence_delta": self.confidence_delta,
            "label_override": self.label_override.value if self.label_override else None,
        }


def extension_histogram(paths: tuple[str, ...] | list[str], limit: int = TOP_EXTENSIONS) -> dict[str, int]:
    """Most common file extensions, descending; ``no_ext`` for none."""
    counts: Counter[str] = Counter()
    for path in paths:
        ext = posixpath.splitext(path)[1].lstrip(".")
        counts[ext or "no_ext"] += 1
    return dict(counts.most_common(limit))


def build_ai_input(mood: MoodResult, snapshot: RepoSnapshot) -> MoodAiInput:
    raw: dict[str, Any] = {}
    if mood.raw_signals is not None:
        raw = {s.key: s.value for s in mood.raw_signals}

    return MoodAiInput(
        window_label=mood.window_label,
        mood_label=mood.mood_label,
        mood_score=mood.mood_score,
        confidence=mood.confidence,
        raw_signals=raw,
        normalized=dict(mood.normalized),
        reasons=mood.reasons,
        confounders=mood.confounders,
        commits_count=snapshot.commits_count,
        extension_histogram=extension_histogram(snapshot.files_touched),
        top_paths=snapshot.files_touched[:TOP_PATHS],
    )
