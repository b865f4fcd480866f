"""Analysis request and the JSON-serializable result document."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from codemetry.analytics.scoring import MoodResult

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class AnalysisRequest:
    """What to analyse.  Config-level options live in MoodConfig."""

    since: datetime | None = None
    until: datetime | None = None
    days: int | None = None
    author: str | None = None
    branch: str | None = None
    timezone: str = "UTC"
    baseline_days: int = 56
    follow_up_horizon_days: int | None = None
    ai_enabled: bool = False
    ai_engine: str | None = None
    output_format: str = "json"

    def to_summary(self) -> dict[str, Any]:
        return {
            "since": self.since.isoformat() if self.since else None,
            "until": self.until.isoformat() if self.until else None,
            "days": self.days,
            "author": self.author,
            "branch": self.branch,
            "timezone": self.timezone,
            "baseline_days": self.baseline_days,
            "follow_up_horizon_days": self.follow_up_horizon_days,
            "ai_enabled": self.ai_enabled,
            "ai_engine": self.ai_engine,
            "output_format": self.output_format,
        }


@dataclass
class AnalysisResult:
    """The full per-window report for one repository."""

    repo_id: str
    analyzed_at: datetime
    request_summary: dict[str, Any] = field(default_factory=dict)
    windows: list[MoodResult] = field(default_factory=list)
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return {
            "schema_version": self.schema_version,
            "repo_id": self.repo_id,
            "analyzed_at": self.analyzed_at.isoformat(),
            "request_summary": self.request_summary,
            "windows": [w.to_dict() for w in self.windows],
        }

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"AnalysisResult(repo={self.repo_id[:8]}, "
            f"windows={len(self.windows)}, "
            f"analyzed_at={self.analyzed_at.isoformat()})"
        )
