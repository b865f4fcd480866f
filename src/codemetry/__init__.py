"""codemetry: per-day mood proxy for git repositories.

Modules:
    windows    -- Daily window planning
    git        -- Commit/snapshot reader over the git CLI
    signals    -- Pluggable signal providers and registry
    analytics  -- Baseline, normalization, heuristic scoring
    ai         -- Optional AI explanation engines and batching
    analyzer   -- End-to-end pipeline
"""

from codemetry.config import MoodConfig, KeywordConfig, AiConfig, load_config
from codemetry.errors import (
    CodemetryError,
    InvalidRepoError,
    GitCommandError,
    AiEngineError,
    ConfigError,
)
from codemetry.windows import AnalysisWindow, plan_windows
from codemetry.analytics.scoring import MoodLabel, MoodResult, score_mood
from codemetry.analytics.summary import AnalysisRequest, AnalysisResult
from codemetry.analyzer import Analyzer

__version__ = "0.1.0"

__all__ = [
    "MoodConfig",
    "KeywordConfig",
    "AiConfig",
    "load_config",
    "CodemetryError",
    "InvalidRepoError",
    "GitCommandError",
    "AiEngineError",
    "ConfigError",
    "AnalysisWindow",
    "plan_windows",
    "MoodLabel",
    "MoodResult",
    "score_mood",
    "AnalysisRequest",
    "AnalysisResult",
    "Analyzer",
]
