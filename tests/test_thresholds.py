"""Tests for physiological threshold estimation."""

import pytest
from datetime import date, datetime, timedelta

from strava_thresholds.analysis.selection import calculate_confidence_scores
from strava_thresholds.analysis.statistics import ActivityRecord, round_half_up
from strava_thresholds.analysis.thresholds import (
    DEFAULT_MAX_HR,
    DEFAULT_RESTING_HR,
    LTHR_FRACTION,
    ThresholdEstimator,
    estimate_athlete_thresholds,
)


class RecordingStore:
    """Collects appended history entries."""

    def __init__(self):
        self.history = []

    def append_history(self, entry):
        self.history.append(entry)
        return entry


class FailingStore:
    def append_history(self, entry):
        raise RuntimeError("disk full")


def hr_runs(count=22):
    """Runs whose two highest peaks are 195 and whose averages climb from 130."""
    return [
        ActivityRecord(
            sport_type="Run",
            start_date=datetime(2024, 1, 1) + timedelta(days=i),
            average_heartrate=130.0 + i,
            max_heartrate=195.0 if i < 2 else 170.0 + i % 10,
            has_heartrate=True,
            moving_time=3000,
        )
        for i in range(count)
    ]


def power_rides(watts, moving_time=3600, weighted=None):
    return [
        ActivityRecord(
            sport_type="Ride",
            start_date=datetime(2024, 2, 1) + timedelta(days=i),
            average_heartrate=None,
            max_heartrate=None,
            has_heartrate=False,
            average_watts=w,
            weighted_average_watts=weighted,
            moving_time=moving_time,
        )
        for i, w in enumerate(watts)
    ]


class TestEstimateThresholds:
    """Test the percentile-based estimates."""

    def test_heart_rate_thresholds(self):
        """Test heart rate thresholds."""
        values = estimate_athlete_thresholds(hr_runs())

        assert values.max_heart_rate == 195
        assert values.resting_heart_rate == 131
        assert values.lactate_threshold_hr == 166
        assert values.functional_threshold_power is None

    def test_defaults_without_heart_rate(self):
        """Test defaults without heart rate."""
        values = estimate_athlete_thresholds([])

        assert values.max_heart_rate == DEFAULT_MAX_HR
        assert values.resting_heart_rate == DEFAULT_RESTING_HR
        assert values.lactate_threshold_hr == round_half_up(DEFAULT_MAX_HR * LTHR_FRACTION)

    def test_ftp_from_long_efforts(self):
        """Test ftp from long efforts."""
        rides = power_rides(range(200, 212)) + power_rides([500], moving_time=600)
        values = estimate_athlete_thresholds(rides)

        # 90th percentile of 12 long efforts, short sprint excluded
        assert values.functional_threshold_power == 210

    def test_ftp_prefers_weighted_power(self):
        """Test ftp prefers weighted power."""
        rides = power_rides([200], weighted=260) + power_rides([220, 230])
        values = estimate_athlete_thresholds(rides)

        assert values.functional_threshold_power == 260


class TestConfidenceScores:
    """Test the linear confidence ramps."""

    def test_partial_data(self):
        """Test partial data."""
        scores = calculate_confidence_scores(hr_activities=10, power_activities=5, total_activities=15)

        assert scores.max_heart_rate == pytest.approx(0.5)
        assert scores.resting_heart_rate == pytest.approx(0.4)
        assert scores.lactate_threshold_hr == pytest.approx(0.45)
        assert scores.functional_threshold_power == pytest.approx(0.5)
        assert scores.overall == pytest.approx(0.5)

    def test_capped_at_one(self):
        """Test capped at one."""
        scores = calculate_confidence_scores(hr_activities=40, power_activities=40, total_activities=80)

        assert scores.max_heart_rate == 1.0
        assert scores.functional_threshold_power == 1.0
        assert scores.overall == 1.0


class TestThresholdEstimator:
    """Test estimation with history recording."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = RecordingStore()
        self.estimator = ThresholdEstimator(self.store)

    def test_appends_one_entry_per_call(self):
        """Test appends one entry per call."""
        activities = hr_runs()
        self.estimator.calculate_thresholds("a1", activities)
        self.estimator.calculate_thresholds("a1", activities)

        assert len(self.store.history) == 2
        entry = self.store.history[0]
        assert entry.user_id == "a1"
        assert entry.activities_analyzed == 22
        assert entry.estimated_max_hr == 195
        assert entry.estimated_lthr == 166
        assert entry.max_hr_confidence == 1.0
        assert entry.confidence_score == pytest.approx(22 / 30)
        assert entry.calculation_method == "percentile_analysis"
        assert entry.algorithm_version == "1.0"

    def test_estimation_summary(self):
        """Test estimation summary."""
        estimation = self.estimator.calculate_thresholds("a1", hr_runs())

        assert estimation.date_range == (date(2024, 1, 1), date(2024, 1, 22))
        assert estimation.data_quality.activities_analyzed == 22
        assert estimation.data_quality.date_range_days == 21
        assert estimation.data_quality.hr_activities == 22
        assert estimation.data_quality.power_activities == 0
        assert estimation.confidence_scores.max_heart_rate == 1.0
        assert estimation.recommendations == []

    def test_empty_activities_use_trailing_window(self):
        """Test empty activities use trailing window."""
        estimation = self.estimator.calculate_thresholds("a1", [], today=date(2024, 6, 30))

        assert estimation.date_range == (date(2024, 5, 31), date(2024, 6, 30))
        assert estimation.confidence_scores.overall == 0
        assert len(self.store.history) == 1
        assert ("Complete more activities with heart rate data for better max HR estimation"
                in estimation.recommendations)
        assert "Complete more training activities to improve threshold estimations" in estimation.recommendations

    def test_power_recommendation(self):
        """Test power recommendation."""
        estimation = self.estimator.calculate_thresholds("a1", power_rides([250, 260, 270]))

        assert estimation.estimated_values.functional_threshold_power == 270
        assert ("Add more cycling activities with power data for better FTP estimation"
                in estimation.recommendations)

    def test_storage_failure_propagates(self):
        """Test storage failure propagates."""
        estimator = ThresholdEstimator(FailingStore())
        with pytest.raises(RuntimeError):
            estimator.calculate_thresholds("a1", hr_runs())
