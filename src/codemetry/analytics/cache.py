"""Best-effort on-disk cache for baselines.

The cache is keyed by a fingerprint of everything that changes what a
baseline contains: the number of baseline days, the provider ids and the
full configuration.  Any mismatch is a miss.  Read and write failures
are never fatal.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from codemetry.analytics.baseline import Baseline
from codemetry.config import MoodConfig

logger = logging.getLogger(__name__)

CACHE_DIRNAME = "codemetry"
CACHE_FILENAME = "cache-baseline.json"


def repo_id(repo_path: str) -> str:
    """Stable identifier for a repository path."""
    resolved = os.path.realpath(repo_path)
    return hashlib.md5(resolved.encode("utf-8")).hexdigest()


def cache_key(baseline_days: int, provider_ids: list[str], config: MoodConfig) -> str:
    """SHA-256 over the canonical JSON of days, sorted providers and config."""
    payload = {
        "baseline_days": baseline_days,
        "providers": sorted(provider_ids),
        "config": config.to_dict(),
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


class BaselineCache:
    """Stores one baseline per repository.

    Location: ``<repo>/.git/codemetry/cache-baseline.json`` when ``.git``
    is a writable directory, else
    ``<temp_root>/codemetry/<repo_id>/cache-baseline.json``.
    """

    def __init__(self, temp_root: str | Path | None = None):
        self.temp_root = Path(temp_root) if temp_root is not None else Path(tempfile.gettempdir())

    def path_for(self, repo_path: str) -> Path:
        git_dir = Path(repo_path) / ".git"
        if git_dir.is_dir() and os.access(git_dir, os.W_OK):
            return git_dir / CACHE_DIRNAME / CACHE_FILENAME
        return self.temp_root / CACHE_DIRNAME / repo_id(repo_path) / CACHE_FILENAME

    def load(
        self,
        repo_path: str,
        baseline_days: int,
        provider_ids: list[str],
        config: MoodConfig,
    ) -> Baseline | None:
        """Return the cached baseline if its fingerprint matches, else None."""
        path = self.path_for(repo_path)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("No baseline cache at %s", path)
            return None
        except (OSError, ValueError):
            logger.debug("Unreadable baseline cache at %s", path, exc_info=True)
            return None

        if not isinstance(data, dict):
            return None
        if data.get("cache_key") != cache_key(baseline_days, provider_ids, config):
            logger.debug("Baseline cache key mismatch at %s", path)
            return None

        try:
            baseline = Baseline.from_dict(data["baseline"])
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.debug("Malformed baseline cache at %s", path, exc_info=True)
            return None
        logger.debug("Baseline cache hit at %s", path)
        return baseline

    def save(
        self,
        repo_path: str,
        baseline: Baseline,
        baseline_days: int,
        provider_ids: list[str],
        config: MoodConfig,
    ) -> None:
        path = self.path_for(repo_path)
        data = {
            "cache_key": cache_key(baseline_days, provider_ids, config),
            "cached_at": datetime.now(timezone.utc).isoformat(),
            "baseline": baseline.to_dict(),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError:
            logger.debug("Could not write baseline cache to %s", path, exc_info=True)
