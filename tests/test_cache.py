"""Tests for codemetry.analytics.cache -- fingerprinted baseline cache."""

import json

import pytest

from codemetry.analytics.baseline import Baseline, Distribution
from codemetry.analytics.cache import BaselineCache, cache_key, repo_id
from codemetry.config import AiConfig, MoodConfig

PROVIDERS = ["change_shape", "commit_message", "follow_up_fix"]


@pytest.fixture
def baseline():
    return Baseline(
        distributions={"change.churn": Distribution.from_values([10, 20, 30])},
        window_count=3,
    )


@pytest.fixture
def cache(tmp_path):
    return BaselineCache(temp_root=tmp_path / "tmp")


class TestCacheKey:
    def test_stable(self):
        assert cache_key(56, PROVIDERS, MoodConfig()) == cache_key(56, PROVIDERS, MoodConfig())

    def test_provider_order_irrelevant(self):
        assert cache_key(56, PROVIDERS, MoodConfig()) == cache_key(56, PROVIDERS[::-1], MoodConfig())

    def test_inputs_change_key(self):
        base = cache_key(56, PROVIDERS, MoodConfig())
        assert cache_key(28, PROVIDERS, MoodConfig()) != base
        assert cache_key(56, PROVIDERS[:2], MoodConfig()) != base
        assert cache_key(56, PROVIDERS, MoodConfig(follow_up_horizon_days=5)) != base


class TestBaselineCache:
    def test_path_inside_git_dir(self, cache, repo_dir):
        path = cache.path_for(str(repo_dir))
        assert path == repo_dir / ".git" / "codemetry" / "cache-baseline.json"

    def test_path_falls_back_to_temp(self, cache, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        path = cache.path_for(str(plain))
        assert path == tmp_path / "tmp" / "codemetry" / repo_id(str(plain)) / "cache-baseline.json"

    def test_round_trip(self, cache, repo_dir, baseline):
        config = MoodConfig()
        cache.save(str(repo_dir), baseline, 56, PROVIDERS, config)
        assert cache.load(str(repo_dir), 56, PROVIDERS, config) == baseline

    def test_file_layout(self, cache, repo_dir, baseline):
        cache.save(str(repo_dir), baseline, 56, PROVIDERS, MoodConfig())
        data = json.loads(cache.path_for(str(repo_dir)).read_text())
        assert set(data) == {"cache_key", "cached_at", "baseline"}
        assert data["baseline"]["window_count"] == 3

    def test_mismatch_is_miss(self, cache, repo_dir, baseline):
        config = MoodConfig()
        cache.save(str(repo_dir), baseline, 56, PROVIDERS, config)
        assert cache.load(str(repo_dir), 28, PROVIDERS, config) is None
        assert cache.load(str(repo_dir), 56, PROVIDERS[:1], config) is None
        other = MoodConfig(ai=AiConfig(engine="google"))
        assert cache.load(str(repo_dir), 56, PROVIDERS, other) is None

    def test_missing_file(self, cache, repo_dir):
        assert cache.load(str(repo_dir), 56, PROVIDERS, MoodConfig()) is None

    def test_corrupt_file(self, cache, repo_dir):
        path = cache.path_for(str(repo_dir))
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        assert cache.load(str(repo_dir), 56, PROVIDERS, MoodConfig()) is None

    def test_malformed_baseline(self, cache, repo_dir):
        path = cache.path_for(str(repo_dir))
        path.parent.mkdir(parents=True)
        key = cache_key(56, PROVIDERS, MoodConfig())
        path.write_text(json.dumps({"cache_key": key, "baseline": {"oops": 1}}))
        assert cache.load(str(repo_dir), 56, PROVIDERS, MoodConfig()) is None

    def test_unwritable_location_is_ignored(self, tmp_path, baseline):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        cache = BaselineCache(temp_root=blocker)
        plain = tmp_path / "plain"
        plain.mkdir()
        cache.save(str(plain), baseline, 56, PROVIDERS, MoodConfig())
        assert cache.load(str(plain), 56, PROVIDERS, MoodConfig()) is None


class TestRepoId:
    def test_stable_for_same_path(self, tmp_path):
        assert repo_id(str(tmp_path)) == repo_id(str(tmp_path) + "/")

    def test_differs_between_paths(self, tmp_path):
        assert repo_id(str(tmp_path / "a")) != repo_id(str(tmp_path / "b"))
