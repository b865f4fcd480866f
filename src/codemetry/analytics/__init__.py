"""Analytics engine: baselines, normalization and heuristic scoring.

Modules:
    baseline   -- Per-signal historical distributions
    cache      -- Fingerprinted on-disk baseline cache
    normalize  -- z-scores and percentile ranks against a baseline
    scoring    -- Heuristic decision table producing MoodResult
    summary    -- AnalysisRequest and the result document
"""

from codemetry.analytics.baseline import Distribution, Baseline, build_baseline
from codemetry.analytics.cache import BaselineCache, cache_key, repo_id
from codemetry.analytics.normalize import NormalizedFeatureSet, normalize
from codemetry.analytics.scoring import (
    MoodLabel,
    Direction,
    ReasonItem,
    MoodResult,
    score_mood,
    AI_UNAVAILABLE,
    LARGE_REFACTOR_SUSPECTED,
    FORMATTING_OR_RENAME_SUSPECTED,
)
from codemetry.analytics.summary import AnalysisRequest, AnalysisResult, SCHEMA_VERSION

__all__ = [
    # baseline
    "Distribution",
    "Baseline",
    "build_baseline",
    # cache
    "BaselineCache",
    "cache_key",
    "repo_id",
    # normalize
    "NormalizedFeatureSet",
    "normalize",
    # scoring
    "MoodLabel",
    "Direction",
    "ReasonItem",
    "MoodResult",
    "score_mood",
    "AI_UNAVAILABLE",
    "LARGE_REFACTOR_SUSPECTED",
    "FORMATTING_OR_RENAME_SUSPECTED",
    # summary
    "AnalysisRequest",
    "AnalysisResult",
    "SCHEMA_VERSION",
]
