"""Analysis pipeline: wire the git reader, providers, baseline and scorer.

:meth:`Analyzer.analyze` is the single entry point.  It validates the
repository, plans windows, loads or builds the baseline once, scores every
window in chronological order and finally (if enabled and credentialed)
runs the AI enhancement pass over all windows.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from codemetry.ai.engines import AiEngine, create_engine
from codemetry.ai.enhance import enhance_moods
from codemetry.analytics.baseline import Baseline, build_baseline
from codemetry.analytics.cache import BaselineCache, repo_id
from codemetry.analytics.normalize import normalize
from codemetry.analytics.scoring import MoodResult, score_mood
from codemetry.analytics.summary import AnalysisRequest, AnalysisResult
from codemetry.config import AiConfig, MoodConfig
from codemetry.errors import AiEngineError
from codemetry.git import GitRepoReader, RepoSnapshot
from codemetry.signals.base import ProviderContext
from codemetry.signals.registry import ProviderRegistry, default_registry
from codemetry.windows import AnalysisWindow, plan_windows, resolve_timezone

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str, AiConfig], AiEngine]


class Analyzer:
    """Produces an :class:`AnalysisResult` for one repository."""

    def __init__(
        self,
        reader: GitRepoReader | None = None,
        registry: ProviderRegistry | None = None,
        cache: BaselineCache | None = None,
        engine_factory: EngineFactory | None = None,
    ):
        self.reader = reader or GitRepoReader()
        self.registry = registry or default_registry()
        self.cache = cache or BaselineCache()
        self.engine_factory = engine_factory or create_engine
        self.last_ai_error: str | None = None

    def analyze(
        self,
        repo_path: str,
        request: AnalysisRequest,
        config: MoodConfig | None = None,
        now: datetime | None = None,
    ) -> AnalysisResult:
        """Run the full pipeline.

        Args:
            repo_path: Path inside a git work tree.
            request: Range, filters and AI toggle.
            config: Analysis configuration (defaults if None).
            now: Reference time for open-ended ranges (default: current time).

        Raises:
            InvalidRepoError: *repo_path* is missing or not a repository.
        """
        self.reader.validate_repo(repo_path)
        self.last_ai_error = None

        config = (config or MoodConfig()).with_overrides(
            follow_up_horizon_days=request.follow_up_horizon_days,
            ai_engine=request.ai_engine,
        )
        windows = plan_windows(
            since=request.since,
            until=request.until,
            days=request.days,
            timezone=request.timezone,
            now=now,
        )
        baseline = self._resolve_baseline(repo_path, windows, request, config, now)

        ctx = ProviderContext(repo_path=repo_path, config=config, reader=self.reader)
        moods: list[MoodResult] = []
        snapshots: list[RepoSnapshot] = []
        for window in windows:
            snapshot = self.reader.build_snapshot(
                repo_path, window, request.author, request.branch
            )
            collected = self.registry.collect(snapshot, ctx)
            features = normalize(collected.signals, baseline)
            moods.append(score_mood(features, collected.confounders))
            snapshots.append(snapshot)

        engine = self._resolve_engine(request, config)
        if engine is not None and moods:
            outcome = enhance_moods(engine, moods, snapshots, config.ai.batch_size)
            moods = outcome.results
            self.last_ai_error = outcome.error

        return AnalysisResult(
            repo_id=repo_id(repo_path),
            analyzed_at=datetime.now(timezone.utc),
            request_summary=request.to_summary(),
            windows=moods,
        )

    def _resolve_baseline(
        self,
        repo_path: str,
        windows: list[AnalysisWindow],
        request: AnalysisRequest,
        config: MoodConfig,
        now: datetime | None,
    ) -> Baseline:
        provider_ids = self.registry.ids()
        cached = self.cache.load(repo_path, request.baseline_days, provider_ids, config)
        if cached is not None:
            return cached

        if windows:
            anchor = windows[0].start
        else:
            anchor = (now or datetime.now(timezone.utc)).astimezone(
                resolve_timezone(request.timezone)
            )
        baseline = build_baseline(
            self.reader, self.registry, repo_path, anchor, request.baseline_days, config
        )
        self.cache.save(repo_path, baseline, request.baseline_days, provider_ids, config)
        return baseline

    def _resolve_engine(self, request: AnalysisRequest, config: MoodConfig) -> AiEngine | None:
        if not request.ai_enabled:
            return None
        if not config.ai.has_credentials:
            logger.info("AI enhancement enabled but no API key configured; skipping")
            return None
        try:
            return self.engine_factory(config.ai.engine, config.ai)
        except AiEngineError as exc:
            logger.warning("AI enhancement skipped: %s", exc)
            return None
