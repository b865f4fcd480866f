"""Tests for codemetry.analytics.normalize and scoring -- the decision table."""

import pytest

from codemetry.ai.models import MoodAiSummary
from codemetry.analytics.baseline import Baseline, Distribution
from codemetry.analytics.normalize import normalize, pctl_key, z_key
from codemetry.analytics.scoring import (
    FORMATTING_OR_RENAME_SUSPECTED,
    LARGE_REFACTOR_SUSPECTED,
    MAX_REASONS,
    Direction,
    MoodLabel,
    score_mood,
)
from codemetry.signals.base import Signal, SignalSet, SignalType, numeric
from codemetry.signals.registry import provider_skipped

from tests.conftest import make_features


class TestNormalize:
    @pytest.fixture
    def baseline(self):
        return Baseline(
            distributions={"change.churn": Distribution.from_values([10, 20, 30, 40])},
            window_count=4,
        )

    def test_known_numeric_signal(self, baseline):
        signals = SignalSet.of("d", numeric("change.churn", 40))
        features = normalize(signals, baseline)
        assert features.percentile("change.churn") == 100.0
        assert features.z("change.churn") == features.normalized[z_key("change.churn")]
        assert features.z("change.churn") > 0

    def test_unknown_and_non_numeric_skipped(self, baseline):
        signals = SignalSet.of(
            "d",
            numeric("change.churn", 15),
            numeric("custom.metric", 3),
            Signal("note", SignalType.STRING, "hello"),
        )
        features = normalize(signals, baseline)
        assert set(features.normalized) == {z_key("change.churn"), pctl_key("change.churn")}
        assert features.percentile("custom.metric") is None
        assert features.raw_value("custom.metric") == 3
        assert features.raw_value("note") is None

    def test_raw_signals_preserved(self, baseline):
        signals = SignalSet.of("d", numeric("change.churn", 15))
        assert normalize(signals, baseline).raw_signals is signals


class TestMoodLabel:
    @pytest.mark.parametrize("score,label", [
        (0, MoodLabel.BAD), (44, MoodLabel.BAD),
        (45, MoodLabel.MEDIUM), (74, MoodLabel.MEDIUM),
        (75, MoodLabel.GOOD), (100, MoodLabel.GOOD),
    ])
    def test_boundaries(self, score, label):
        assert MoodLabel.from_score(score) is label


class TestScoreMood:
    def test_high_churn(self):
        result = score_mood(make_features({"change.churn": 96}, {"change.commits_count": 5}))
        assert result.mood_score == 50
        assert result.mood_label is MoodLabel.MEDIUM
        assert result.confidence == 0.7
        assert result.reasons[0].signal_key == "change.churn"
        assert result.reasons[0].magnitude == 20.0

    def test_revert(self):
        result = score_mood(make_features(raw={"msg.revert_count": 1, "change.commits_count": 5}))
        assert result.mood_score == 55
        assert result.mood_label is MoodLabel.MEDIUM
        assert result.confidence == 0.7

    def test_quiet_clean_day(self):
        result = score_mood(make_features({"change.churn": 20, "followup.fix_density": 15}))
        assert result.mood_score == 75
        assert result.mood_label is MoodLabel.GOOD
        assert result.reasons[0].direction is Direction.POSITIVE

    def test_no_signals_is_base(self):
        result = score_mood(make_features())
        assert result.mood_score == 70
        assert result.reasons == ()
        assert result.confidence == 0.6

    def test_churn_p90_band(self):
        assert score_mood(make_features({"change.churn": 92})).mood_score == 58

    def test_fix_density_bands(self):
        assert score_mood(make_features({"followup.fix_density": 96})).mood_score == 45
        assert score_mood(make_features({"followup.fix_density": 90})).mood_score == 55

    def test_wip_ratio_threshold(self):
        hit = make_features(raw={"msg.wip_count": 1, "change.commits_count": 3})
        miss = make_features(raw={"msg.wip_count": 1, "change.commits_count": 4})
        assert score_mood(hit).mood_score == 62
        assert score_mood(miss).mood_score == 70

    def test_score_clamped_at_zero(self):
        features = make_features(
            {"change.churn": 99, "change.scatter": 95, "followup.fix_density": 99},
            {"msg.revert_count": 2, "msg.wip_count": 3, "change.commits_count": 5},
        )
        result = score_mood(features)
        assert result.mood_score == 0
        assert result.mood_label is MoodLabel.BAD
        assert [r.magnitude for r in result.reasons] == [25.0, 20.0, 15.0, 10.0, 8.0]
        assert len(result.reasons) <= MAX_REASONS

    def test_equal_magnitudes_keep_rule_order(self):
        features = make_features(
            {"followup.fix_density": 91},
            {"msg.revert_count": 1, "change.commits_count": 5},
        )
        keys = [r.signal_key for r in score_mood(features).reasons]
        assert keys == ["followup.fix_density", "msg.revert_count"]

    def test_large_refactor_confounder(self):
        result = score_mood(make_features({"change.churn": 97, "followup.fix_density": 40}))
        assert LARGE_REFACTOR_SUSPECTED in result.confounders
        assert FORMATTING_OR_RENAME_SUSPECTED not in result.confounders

    def test_formatting_confounder(self):
        result = score_mood(make_features({"change.churn": 97, "change.files_touched": 95}))
        assert result.confounders == (FORMATTING_OR_RENAME_SUSPECTED,)

    def test_both_confounders(self):
        features = make_features(
            {"change.churn": 97, "change.files_touched": 95, "followup.fix_density": 20}
        )
        assert score_mood(features).confounders == (
            LARGE_REFACTOR_SUSPECTED,
            FORMATTING_OR_RENAME_SUSPECTED,
        )

    def test_upstream_confounders_first_and_deduped(self):
        skipped = provider_skipped("follow_up_fix")
        result = score_mood(
            make_features({"change.churn": 97, "followup.fix_density": 40}),
            [skipped, skipped],
        )
        assert result.confounders == (skipped, LARGE_REFACTOR_SUSPECTED)

    def test_confidence_adjustments(self):
        single = make_features(raw={"change.commits_count": 1})
        assert score_mood(single).confidence == 0.4

        busy = make_features({"followup.fix_density": 10}, {"change.commits_count": 4})
        assert score_mood(busy).confidence == 0.8

        skipped = [provider_skipped("change_shape"), provider_skipped("commit_message")]
        assert score_mood(make_features(), skipped).confidence == 0.4

    def test_unknown_skipped_provider_does_not_lower_confidence(self):
        assert score_mood(make_features(), [provider_skipped("custom")]).confidence == 0.6

    def test_deterministic(self):
        features = make_features({"change.churn": 93, "change.scatter": 91}, {"change.commits_count": 2})
        assert score_mood(features) == score_mood(features)

    def test_bounds(self):
        for churn in (0, 50, 90, 95, 100):
            for fix in (0, 25, 90, 95, 100):
                r = score_mood(make_features({"change.churn": churn, "followup.fix_density": fix}))
                assert 0 <= r.mood_score <= 100
                assert 0.0 <= r.confidence <= 1.0


class TestMoodResultAdjustments:
    @pytest.fixture
    def result(self):
        return score_mood(make_features({"change.churn": 96}, {"change.commits_count": 5}))

    def test_with_confounder_idempotent(self, result):
        once = result.with_confounder("ai_unavailable")
        assert once.confounders.count("ai_unavailable") == 1
        assert once.with_confounder("ai_unavailable") is once
        assert "ai_unavailable" not in result.confounders

    def test_ai_summary_applied(self, result):
        enhanced = result.with_ai_summary(MoodAiSummary(("Big day",), score_delta=8, confidence_delta=0.05))
        assert enhanced.mood_score == 58
        assert enhanced.confidence == 0.75
        assert enhanced.mood_label is MoodLabel.MEDIUM
        assert enhanced.ai_summary.explanation_bullets == ("Big day",)
        assert result.ai_summary is None

    def test_ai_summary_clamped(self):
        high = score_mood(make_features({"change.churn": 10, "followup.fix_density": 10}))
        enhanced = high.with_ai_summary(MoodAiSummary(score_delta=50, confidence_delta=0.5))
        assert enhanced.mood_score == 85
        assert enhanced.confidence == 0.8

    def test_label_override(self, result):
        enhanced = result.with_ai_summary(MoodAiSummary(label_override=MoodLabel.BAD))
        assert enhanced.mood_score == 50
        assert enhanced.mood_label is MoodLabel.BAD

    def test_to_dict(self, result):
        d = result.to_dict()
        assert d["mood_label"] == "medium"
        assert "ai_summary" not in d
        assert d["reasons"][0]["direction"] == "negative"
        enhanced = result.with_ai_summary(MoodAiSummary(("x",)))
        assert enhanced.to_dict()["ai_summary"]["explanation_bullets"] == ["x"]
