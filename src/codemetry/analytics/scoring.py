"""Heuristic mood scoring.

A fixed decision table over normalized signals.  Starting from a base of
70, percentile-driven penalties and one reward adjust the score, which is
clamped to 0-100 and mapped to a label.  Confidence reflects how much
evidence was available (commit volume, follow-up coverage, skipped
providers).  The thresholds and weights are part of the output contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

from codemetry.analytics.normalize import NormalizedFeatureSet
from codemetry.signals.base import SignalSet
from codemetry.signals.registry import provider_skipped

if TYPE_CHECKING:
    from codemetry.ai.models import MoodAiSummary


# ---------------------------------------------------------------------------
# Confounders
# ---------------------------------------------------------------------------

AI_UNAVAILABLE = "ai_unavailable"
LARGE_REFACTOR_SUSPECTED = "large_refactor_suspected"
FORMATTING_OR_RENAME_SUSPECTED = "formatting_or_rename_suspected"

# Providers whose absence lowers confidence
KEY_PROVIDERS = ("change_shape", "follow_up_fix", "commit_message")


# ---------------------------------------------------------------------------
# Labels / reasons
# ---------------------------------------------------------------------------


class MoodLabel(str, Enum):
    BAD = "bad"
    MEDIUM = "medium"
    GOOD = "good"

    @classmethod
    def from_score(cls, score: float) -> MoodLabel:
        if score <= 44:
            return cls.BAD
        if score <= 74:
            return cls.MEDIUM
        return cls.GOOD


class Direction(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class ReasonItem:
    """One triggered rule and how much it moved the score."""

    signal_key: str
    direction: Direction
    magnitude: float
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_key": self.signal_key,
            "direction": self.direction.value,
            "magnitude": self.magnitude,
            "summary": self.summary,
        }


def _dedupe(items: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class MoodResult:
    """Scored mood proxy for one window.  Never mutated in place."""

    window_label: str
    mood_label: MoodLabel
    mood_score: int
    confidence: float
    reasons: tuple[ReasonItem, ...] = ()
    confounders: tuple[str, ...] = ()
    raw_signals: SignalSet | None = None
    normalized: dict[str, float] = field(default_factory=dict)
    ai_summary: MoodAiSummary | None = None

    def with_confounder(self, confounder: str) -> MoodResult:
        """Copy with *confounder* appended (no-op if already present)."""
        if confounder in self.confounders:
            return self
        return replace(self, confounders=self.confounders + (confounder,))

    def with_ai_summary(self, summary: MoodAiSummary) -> MoodResult:
        """Copy with the AI's bounded deltas applied and the summary attached."""
        score = int(_clamp(self.mood_score + summary.score_delta, 0, 100))
        confidence = round(_clamp(self.confidence + summary.confidence_delta, 0.0, 1.0), 2)
        label = summary.label_override or MoodLabel.from_score(score)
        return replace(
            self,
            mood_label=label,
            mood_score=score,
            confidence=confidence,
            ai_summary=summary,
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "window_label": self.window_label,
            "mood_label": self.mood_label.value,
            "mood_score": self.mood_score,
            "confidence": self.confidence,
            "reasons": [r.to_dict() for r in self.reasons],
            "confounders": list(self.confounders),
            "raw_signals": self.raw_signals.to_dict() if self.raw_signals else None,
            "normalized": dict(self.normalized),
        }
        if self.ai_summary is not None:
            data["ai_summary"] = self.ai_summary.to_dict()
        return data


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

BASE_SCORE = 70
MAX_REASONS = 6

CHURN_P95_PENALTY = 20
CHURN_P90_PENALTY = 12
SCATTER_P90_PENALTY = 10
FIX_DENSITY_P95_PENALTY = 25
FIX_DENSITY_P90_PENALTY = 15
REVERT_PENALTY = 15
WIP_PENALTY = 8
WIP_RATIO_THRESHOLD = 0.3
LOW_CHURN_LOW_FIX_REWARD = 5

BASE_CONFIDENCE = 0.6


def _penalty(key: str, amount: int, summary: str) -> ReasonItem:
    return ReasonItem(key, Direction.NEGATIVE, float(amount), summary)


def _confidence(features: NormalizedFeatureSet, confounders: Sequence[str]) -> float:
    confidence = BASE_CONFIDENCE
    commits = features.raw_value("change.commits_count")

    if commits is not None and commits >= 3:
        confidence += 0.1
    if features.percentile("followup.fix_density") is not None:
        confidence += 0.1
    if commits is not None and commits <= 1:
        confidence -= 0.2
    for provider_id in KEY_PROVIDERS:
        if provider_skipped(provider_id) in confounders:
            confidence -= 0.1

    return round(_clamp(confidence, 0.0, 1.0), 2)


def _detect_confounders(features: NormalizedFeatureSet) -> list[str]:
    found: list[str] = []
    churn = features.percentile("change.churn")
    fix_density = features.percentile("followup.fix_density")
    files = features.percentile("change.files_touched")

    if churn is not None and churn >= 95 and fix_density is not None and fix_density <= 50:
        found.append(LARGE_REFACTOR_SUSPECTED)

    if (
        churn is not None and churn >= 95
        and files is not None and files >= 90
        and (fix_density is None or fix_density <= 25)
    ):
        found.append(FORMATTING_OR_RENAME_SUSPECTED)

    return found


def score_mood(
    features: NormalizedFeatureSet,
    confounders: Sequence[str] = (),
) -> MoodResult:
    """Score one window.

    Args:
        features: Normalized features for the window.
        confounders: Confounders raised upstream (e.g. skipped providers).

    Returns:
        A MoodResult; identical inputs always give identical output.
    """
    score = BASE_SCORE
    reasons: list[ReasonItem] = []

    # --- Penalties ---
    churn = features.percentile("change.churn")
    if churn is not None:
        if churn >= 95:
            score -= CHURN_P95_PENALTY
            reasons.append(_penalty("change.churn", CHURN_P95_PENALTY, "Churn at p95+"))
        elif churn >= 90:
            score -= CHURN_P90_PENALTY
            reasons.append(_penalty("change.churn", CHURN_P90_PENALTY, "Churn at p90-p95"))

    scatter = features.percentile("change.scatter")
    if scatter is not None and scatter >= 90:
        score -= SCATTER_P90_PENALTY
        reasons.append(_penalty("change.scatter", SCATTER_P90_PENALTY, "High scatter at p90+"))

    fix_density = features.percentile("followup.fix_density")
    if fix_density is not None:
        if fix_density >= 95:
            score -= FIX_DENSITY_P95_PENALTY
            reasons.append(_penalty(
                "followup.fix_density", FIX_DENSITY_P95_PENALTY,
                "Follow-up fix density at p95+",
            ))
        elif fix_density >= 90:
            score -= FIX_DENSITY_P90_PENALTY
            reasons.append(_penalty(
                "followup.fix_density", FIX_DENSITY_P90_PENALTY,
                "Follow-up fix density at p90-p95",
            ))

    reverts = features.raw_value("msg.revert_count")
    if reverts is not None and reverts > 0:
        score -= REVERT_PENALTY
        reasons.append(_penalty("msg.revert_count", REVERT_PENALTY, "Reverts detected"))

    wip = features.raw_value("msg.wip_count")
    commits = features.raw_value("change.commits_count")
    if wip is not None and commits is not None and commits > 0:
        if wip / commits >= WIP_RATIO_THRESHOLD:
            score -= WIP_PENALTY
            reasons.append(_penalty("msg.wip_count", WIP_PENALTY, "High WIP ratio (>= 0.3)"))

    # --- Reward ---
    if churn is not None and churn <= 25 and fix_density is not None and fix_density <= 25:
        score += LOW_CHURN_LOW_FIX_REWARD
        reasons.append(ReasonItem(
            "change.churn", Direction.POSITIVE, float(LOW_CHURN_LOW_FIX_REWARD),
            "Low churn and low fix density",
        ))

    score = int(_clamp(score, 0, 100))

    # Stable sort keeps rule order among equal magnitudes
    reasons.sort(key=lambda r: r.magnitude, reverse=True)

    return MoodResult(
        window_label=features.raw_signals.window_label,
        mood_label=MoodLabel.from_score(score),
        mood_score=score,
        confidence=_confidence(features, confounders),
        reasons=tuple(reasons[:MAX_REASONS]),
        confounders=_dedupe([*confounders, *_detect_confounders(features)]),
        raw_signals=features.raw_signals,
        normalized=dict(features.normalized),
    )
