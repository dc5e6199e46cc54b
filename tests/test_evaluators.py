"""Tests for the export risk evaluators"""
from datetime import datetime, timedelta

import pytest

from conftest import NOW, make_event
from exportguard import MonitorSettings, ThresholdConfig
from exportguard.evaluators import (
    BurstEvaluator,
    EvaluationContext,
    FormatVariationEvaluator,
    FrequencyEvaluator,
    OffHoursEvaluator,
    OriginNoveltyEvaluator,
    VolumeEvaluator,
    count_exports,
    default_evaluators,
)


def context_for(history, fmt="csv", records=10, now=NOW, ip=None, known_ips=()):
    """Build an evaluation context for a candidate export at `now`"""
    candidate = make_event(timedelta(0), fmt=fmt, records=records, now=now, ip=ip)
    return EvaluationContext(
        candidate=candidate,
        history=history,
        now=now,
        known_ips=frozenset(known_ips)
    )


@pytest.fixture
def thresholds():
    return ThresholdConfig()


class TestFrequencyEvaluator:
    """Test cases for FrequencyEvaluator"""

    def test_first_export_is_low_pressure(self, thresholds):
        result = FrequencyEvaluator(thresholds).evaluate(context_for([]))

        assert result.score == pytest.approx(1 / 3 * 0.5)
        assert result.suspicious is False
        assert result.pattern is None

    def test_hourly_cap_counts_current_export(self, thresholds):
        """Two earlier exports plus the current one reach a cap of three"""
        history = [make_event(timedelta(minutes=10)), make_event(timedelta(minutes=40))]
        result = FrequencyEvaluator(thresholds).evaluate(context_for(history))

        assert result.score == 1.0
        assert result.suspicious is True
        assert result.pattern == "excessive_exports_per_hour"

    def test_daily_cap(self, thresholds):
        history = [make_event(timedelta(hours=h)) for h in (2, 3, 4, 5)]
        result = FrequencyEvaluator(thresholds).evaluate(context_for(history))

        assert result.score == 0.8
        assert result.pattern == "excessive_exports_per_day"

    def test_pressure_uses_highest_ratio(self, thresholds):
        history = [make_event(timedelta(hours=2))]
        result = FrequencyEvaluator(thresholds).evaluate(context_for(history))

        # hourly 1/3, daily 2/5
        assert result.score == pytest.approx(0.4 * 0.5)
        assert result.suspicious is False

    def test_events_older_than_an_hour_are_outside_the_hourly_window(self, thresholds):
        history = [make_event(timedelta(minutes=60)), make_event(timedelta(minutes=61))]
        result = FrequencyEvaluator(thresholds).evaluate(context_for(history))

        assert result.pattern is None

    def test_count_exports_includes_current_attempt(self):
        history = [
            make_event(timedelta(minutes=5)),
            make_event(timedelta(hours=5)),
            make_event(timedelta(days=3)),
        ]
        counts = count_exports(history, NOW)

        assert (counts.hourly, counts.daily, counts.weekly) == (2, 3, 4)


class TestVolumeEvaluator:
    """Test cases for VolumeEvaluator"""

    def test_small_export(self, thresholds):
        result = VolumeEvaluator(thresholds).evaluate(context_for([], records=10))

        assert result.score == pytest.approx(0.1 * 0.6)
        assert result.suspicious is False

    def test_hourly_record_cap(self, thresholds):
        history = [make_event(timedelta(minutes=10), records=60)]
        result = VolumeEvaluator(thresholds).evaluate(context_for(history, records=41))

        assert result.score == 1.0
        assert result.pattern == "excessive_data_volume_per_hour"

    def test_reaching_the_cap_exactly_is_not_excessive(self, thresholds):
        history = [make_event(timedelta(minutes=10), records=60)]
        result = VolumeEvaluator(thresholds).evaluate(context_for(history, records=40))

        assert result.suspicious is False
        assert result.score == pytest.approx(0.6)

    def test_daily_record_cap(self, thresholds):
        history = [make_event(timedelta(hours=3), records=200)]
        result = VolumeEvaluator(thresholds).evaluate(context_for(history, records=51))

        assert result.score == 0.8
        assert result.pattern == "excessive_data_volume_per_day"

    def test_score_never_decreases_with_record_count(self, thresholds):
        """More records in the current export never lower the volume score"""
        evaluator = VolumeEvaluator(thresholds)
        history = [
            make_event(timedelta(minutes=20), records=30),
            make_event(timedelta(hours=6), records=120),
        ]

        scores = [
            evaluator.evaluate(context_for(history, records=count)).score
            for count in range(0, 400, 7)
        ]

        assert scores == sorted(scores)
        assert scores[-1] == 1.0


class TestBurstEvaluator:
    """Test cases for BurstEvaluator"""

    def test_single_export(self, thresholds):
        result = BurstEvaluator(thresholds).evaluate(context_for([]))

        assert result.score == pytest.approx(0.15)
        assert result.suspicious is False

    def test_two_exports_within_a_minute(self, thresholds):
        history = [make_event(timedelta(seconds=59))]
        result = BurstEvaluator(thresholds).evaluate(context_for(history))

        assert result.score == 0.9
        assert result.pattern == "rapid_sequential_exports"

    def test_window_is_exclusive(self, thresholds):
        history = [make_event(timedelta(seconds=60))]
        result = BurstEvaluator(thresholds).evaluate(context_for(history))

        assert result.suspicious is False

    def test_custom_burst_window(self, thresholds):
        settings = MonitorSettings(burst_window=timedelta(minutes=5))
        history = [make_event(timedelta(minutes=4))]
        result = BurstEvaluator(thresholds, settings).evaluate(context_for(history))

        assert result.suspicious is True


class TestFormatVariationEvaluator:
    """Test cases for FormatVariationEvaluator"""

    def test_single_format(self, thresholds):
        history = [make_event(timedelta(minutes=15), fmt="csv")]
        result = FormatVariationEvaluator(thresholds).evaluate(context_for(history, fmt="csv"))

        assert result.score == pytest.approx(0.1)
        assert result.suspicious is False

    def test_format_hopping(self, thresholds):
        history = [make_event(timedelta(minutes=15), fmt="csv")]
        result = FormatVariationEvaluator(thresholds).evaluate(context_for(history, fmt="excel"))

        assert result.score == 0.7
        assert result.pattern == "multiple_format_exports"

    def test_formats_older_than_an_hour_are_ignored(self, thresholds):
        history = [make_event(timedelta(hours=2), fmt="json")]
        result = FormatVariationEvaluator(thresholds).evaluate(context_for(history, fmt="csv"))

        assert result.suspicious is False


class TestOffHoursEvaluator:
    """Test cases for OffHoursEvaluator"""

    @pytest.fixture
    def history(self):
        return [make_event(timedelta(days=d)) for d in (1, 2, 3)]

    @pytest.mark.parametrize("hour,minute", [(23, 30), (0, 0), (5, 59)])
    def test_night_export_with_history(self, thresholds, history, hour, minute):
        now = NOW.replace(hour=hour, minute=minute)
        result = OffHoursEvaluator(thresholds).evaluate(context_for(history, now=now))

        assert result.score == 0.4
        assert result.pattern == "unusual_hour_export"

    @pytest.mark.parametrize("hour", [6, 14, 22])
    def test_working_hours(self, thresholds, history, hour):
        now = NOW.replace(hour=hour, minute=30)
        result = OffHoursEvaluator(thresholds).evaluate(context_for(history, now=now))

        assert result.score == 0
        assert result.suspicious is False

    def test_needs_established_history(self, thresholds, history):
        now = NOW.replace(hour=23)
        result = OffHoursEvaluator(thresholds).evaluate(context_for(history[:2], now=now))

        assert result.suspicious is False


class TestOriginNoveltyEvaluator:
    """Test cases for OriginNoveltyEvaluator"""

    def test_no_ip_cannot_be_assessed(self, thresholds):
        result = OriginNoveltyEvaluator(thresholds).evaluate(context_for([], known_ips={"10.0.0.1"}))

        assert result.score == 0
        assert result.suspicious is False

    def test_no_known_ips(self, thresholds):
        result = OriginNoveltyEvaluator(thresholds).evaluate(context_for([], ip="10.0.0.9"))

        assert result.suspicious is False

    def test_known_ip(self, thresholds):
        result = OriginNoveltyEvaluator(thresholds).evaluate(
            context_for([], ip="10.0.0.1", known_ips={"10.0.0.1", "10.0.0.2"})
        )

        assert result.suspicious is False

    def test_new_ip(self, thresholds):
        result = OriginNoveltyEvaluator(thresholds).evaluate(
            context_for([], ip="203.0.113.7", known_ips={"10.0.0.1"})
        )

        assert result.score == 0.5
        assert result.pattern == "new_ip_location"


class TestEvaluatorSet:
    """Test cases for the default evaluator set"""

    def test_declaration_order(self, thresholds):
        names = [e.name for e in default_evaluators(thresholds)]

        assert names == ["frequency", "volume", "burst", "format_variation", "off_hours", "origin_novelty"]

    def test_disabled_evaluator_is_benign(self, thresholds):
        settings = MonitorSettings(disabled_evaluators=frozenset({"burst"}))
        evaluator = BurstEvaluator(thresholds, settings)
        history = [make_event(timedelta(seconds=5))]

        result = evaluator.evaluate(context_for(history))

        assert evaluator.enabled is False
        assert result.score == 0
        assert result.suspicious is False

    def test_evaluators_are_pure(self, thresholds):
        """Same context, same results"""
        context = context_for(
            [make_event(timedelta(seconds=30), fmt="json"), make_event(timedelta(hours=2))],
            ip="198.51.100.4",
            known_ips={"10.0.0.1"}
        )
        evaluators = default_evaluators(thresholds)

        first = [e.evaluate(context) for e in evaluators]
        second = [e.evaluate(context) for e in evaluators]

        assert first == second
