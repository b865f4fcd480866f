"""Batched AI enhancement of mood results.

Inputs are sent in fixed-size batches, one batch at a time.  The first
failing batch stops the run: windows that already have a summary keep
it, every other window is marked ``ai_unavailable`` and keeps its
heuristic score.  A label left out of a successful batch is returned
unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from codemetry.ai.engines import AiEngine
from codemetry.ai.models import MoodAiSummary, build_ai_input
from codemetry.analytics.scoring import AI_UNAVAILABLE, MoodResult
from codemetry.config import DEFAULT_BATCH_SIZE
from codemetry.errors import AiEngineError
from codemetry.git import RepoSnapshot

logger = logging.getLogger(__name__)


@dataclass
class EnhancementOutcome:
    """Enhanced results plus the error that stopped batching, if any."""

    results: list[MoodResult]
    error: str | None = None
    batches_sent: int = 0


def _chunks(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def enhance_moods(
    engine: AiEngine,
    moods: list[MoodResult],
    snapshots: list[RepoSnapshot],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> EnhancementOutcome:
    """Apply AI summaries to *moods* (parallel to *snapshots*).

    Args:
        engine: The AI engine to call.
        moods: Heuristic results, one per window.
        snapshots: The snapshot each result was computed from.
        batch_size: Maximum inputs per engine call (at least 1).

    Returns:
        EnhancementOutcome with new MoodResult instances; the inputs are
        not modified.
    """
    if len(moods) != len(snapshots):
        raise ValueError("moods and snapshots must have the same length")

    inputs = [build_ai_input(m, s) for m, s in zip(moods, snapshots)]
    summaries: dict[str, MoodAiSummary] = {}
    error: str | None = None
    sent = 0

    for batch in _chunks(inputs, max(1, batch_size)):
        sent += 1
        try:
            summaries.update(engine.summarize_batch(batch))
        except AiEngineError as exc:
            error = str(exc)
            logger.warning(
                "AI engine %s failed on batch %d; remaining windows keep heuristic scores: %s",
                engine.id(), sent, error,
            )
            break

    results: list[MoodResult] = []
    for mood in moods:
        summary = summaries.get(mood.window_label)
        if summary is not None:
            results.append(mood.with_ai_summary(summary))
        elif error is not None:
            results.append(mood.with_confounder(AI_UNAVAILABLE))
        else:
            results.append(mood)

    return EnhancementOutcome(results=results, error=error, batches_sent=sent)
