"""Tests for the training profile service on an in-memory SQLite database."""

import pytest
from datetime import date, datetime, timedelta

from strava_thresholds.analysis.selection import ConfidenceScores
from strava_thresholds.analysis.thresholds import DataQualitySummary, ThresholdEstimation, ThresholdValues
from strava_thresholds.db import Activity, Database, SqlAlchemyActivityQuery, SqlAlchemyProfileStore
from strava_thresholds.exceptions import ProfileNotFoundError, ProfileValidationError
from strava_thresholds.profile.models import (
    EXPERIENCE_LEVELS,
    TRAINING_PHILOSOPHIES,
    CompleteTrainingProfile,
    ThresholdCalculation,
    TrainingPreferences,
    TrainingProfile,
)
from strava_thresholds.profile.service import TrainingProfileService


def make_estimation(max_hr=195, resting_hr=52, ftp=None, hr_confidence=1.0, power_confidence=0.0,
                    activities=25):
    return ThresholdEstimation(
        estimated_values=ThresholdValues(
            max_heart_rate=max_hr,
            resting_heart_rate=resting_hr,
            lactate_threshold_hr=round(max_hr * 0.85),
            functional_threshold_power=ftp,
        ),
        confidence_scores=ConfidenceScores(
            max_heart_rate=hr_confidence,
            resting_heart_rate=hr_confidence * 0.8,
            lactate_threshold_hr=hr_confidence * 0.9,
            functional_threshold_power=power_confidence,
            overall=min(1.0, activities / 30),
        ),
        data_quality=DataQualitySummary(
            activities_analyzed=activities,
            date_range_days=60,
            hr_activities=activities,
            power_activities=0,
        ),
        date_range=(date(2024, 1, 1), date(2024, 3, 1)),
    )


class TestTrainingProfileService:
    """Test profile management and auto-update rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.db = Database("sqlite:///:memory:")
        self.db.create_tables()
        self.session = self.db.SessionLocal()
        self.store = SqlAlchemyProfileStore(self.session)
        self.service = TrainingProfileService(self.store, SqlAlchemyActivityQuery(self.session))

    def teardown_method(self):
        self.session.close()
        self.db.close()

    def add_runs(self, user_id="a1", count=22):
        for i in range(count):
            self.session.add(Activity(
                strava_id=f"{user_id}-{i}",
                user_id=user_id,
                name=f"Run {i}",
                type="Run",
                sport_type="Run",
                start_date=datetime(2024, 1, 1) + timedelta(days=i),
                moving_time=3000,
                average_heartrate=130.0 + i,
                max_heartrate=195.0 if i < 2 else 170.0 + i % 10,
                has_heartrate=True,
            ))
        self.session.flush()

    def test_get_or_create_profile_defaults(self):
        """Test get or create profile defaults."""
        profile = self.service.get_or_create_profile("a1")

        assert profile.weekly_tss_target == 400
        assert profile.experience_level == "intermediate"
        assert profile.training_philosophy == "balanced"
        assert profile.max_hr_source == "estimated"
        assert profile.version == 1
        assert self.service.get_or_create_profile("a1").version == 1

    def test_manual_edit_marks_user_set(self):
        """Test manual edit marks user set."""
        profile = self.service.update_profile("a1", max_heart_rate=182, age=35)

        assert profile.max_heart_rate == 182
        assert profile.max_hr_source == "user_set"
        assert profile.age == 35
        assert profile.resting_hr_source == "estimated"

    def test_clearing_field_resets_provenance(self):
        """Test clearing field resets provenance."""
        self.service.update_profile("a1", functional_threshold_power=240)
        profile = self.service.update_profile("a1", functional_threshold_power=None)

        assert profile.functional_threshold_power is None
        assert profile.ftp_source == "estimated"

    @pytest.mark.parametrize("changes", [
        {"experience_level": "pro"},
        {"training_philosophy": "random"},
        {"sex": "X"},
        {"max_heart_rate": -5},
        {"favourite_color": "blue"},
        {"age": "35"},
        {"weight": True},
        {"functional_threshold_power": [250]},
    ])
    def test_invalid_manual_edit(self, changes):
        """Test invalid manual edit."""
        with pytest.raises(ProfileValidationError):
            self.service.update_profile("a1", **changes)

    def test_update_preferences(self):
        """Test update preferences."""
        prefs = self.service.update_preferences("a1", primary_goal="race_preparation",
                                                preferred_training_days=[2, 4, 6])

        assert prefs.primary_goal == "race_preparation"
        assert prefs.preferred_training_days == [2, 4, 6]
        with pytest.raises(ProfileValidationError):
            self.service.update_preferences("a1", recovery_priority="extreme")

    def test_auto_update_respects_user_set_values(self):
        """Test auto update respects user set values."""
        self.service.update_profile("a1", max_heart_rate=180, resting_heart_rate=48, weekly_tss_target=350)
        profile = self.service.auto_update_from_calculation("a1", make_estimation(ftp=260, power_confidence=1.0))

        assert profile.max_heart_rate == 180
        assert profile.max_hr_source == "user_set"
        assert profile.resting_heart_rate == 48
        assert profile.weekly_tss_target == 350
        assert profile.tss_target_source == "user_set"
        assert profile.functional_threshold_power == 260
        assert profile.ftp_source == "estimated"

    def test_auto_update_requires_confidence(self):
        """Test auto update requires confidence."""
        profile = self.service.auto_update_from_calculation(
            "a1", make_estimation(hr_confidence=0.5, ftp=250, power_confidence=0.5, activities=10)
        )

        assert profile.max_heart_rate is None
        assert profile.resting_heart_rate is None
        assert profile.lactate_threshold_hr is None
        assert profile.functional_threshold_power is None
        assert profile.calculation_data_points == 10

    def test_auto_update_replaces_estimated_values(self):
        """Test auto update replaces estimated values."""
        self.service.auto_update_from_calculation("a1", make_estimation(max_hr=190))
        profile = self.service.auto_update_from_calculation("a1", make_estimation(max_hr=196))

        assert profile.max_heart_rate == 196
        assert profile.max_hr_source == "estimated"

    def test_lthr_is_only_filled_when_empty(self):
        """Test lthr is only filled when empty."""
        self.service.update_profile("a1", lactate_threshold_hr=170)
        profile = self.service.auto_update_from_calculation("a1", make_estimation())

        assert profile.lactate_threshold_hr == 170

    def test_recalculate_end_to_end(self):
        """Test recalculate end to end."""
        self.add_runs()
        estimation, profile = self.service.recalculate("a1")

        assert estimation.estimated_values.max_heart_rate == 195
        assert profile.max_heart_rate == 195
        assert profile.max_hr_source == "estimated"
        assert profile.resting_heart_rate == 131
        assert profile.lactate_threshold_hr == 166
        assert profile.functional_threshold_power is None
        assert profile.weekly_tss_target == 440
        assert profile.calculation_data_points == 22
        assert profile.threshold_confidence == pytest.approx(22 / 30)
        assert profile.last_threshold_calculation is not None

        history = self.store.recent_history("a1")
        assert len(history) == 1
        assert history[0].estimated_max_hr == 195

    def test_new_athlete_end_to_end(self):
        """Test new athlete end to end."""
        # 22 HR activities with peaks spanning 150-195 plus 3 without a monitor
        peaks = [150 + round(i * 45 / 20) for i in range(21)] + [195]
        for i, peak in enumerate(peaks):
            self.session.add(Activity(
                strava_id=f"hr-{i}", user_id="new", name="Run", type="Run", sport_type="Run",
                start_date=datetime(2024, 1, 1) + timedelta(days=i), moving_time=2400,
                average_heartrate=peak - 30.0, max_heartrate=float(peak), has_heartrate=True,
            ))
        for i in range(3):
            self.session.add(Activity(
                strava_id=f"nohr-{i}", user_id="new", name="Swim", type="Swim", sport_type="Swim",
                start_date=datetime(2024, 2, 1) + timedelta(days=i), moving_time=1800, has_heartrate=False,
            ))
        self.session.flush()

        zones = self.service.analyze_zones("new")
        assert zones.overall.hr_data_quality == "excellent"
        assert zones.confidence == "high"
        assert zones.suggested_zone_model.name == "5-Zone Model"

        assert self.store.load_profile("new") is None
        _, profile = self.service.recalculate("new")
        assert profile.max_heart_rate == 195
        assert profile.max_hr_source == "estimated"

    def test_recalculate_accumulates_history(self):
        """Test recalculate accumulates history."""
        self.add_runs()
        for _ in range(7):
            self.service.recalculate("a1")

        complete = self.service.get_complete_profile("a1")
        assert len(complete.calculation_history) == 5
        assert len(self.store.recent_history("a1", limit=10)) == 7

    def test_complete_profile_without_create(self):
        """Test complete profile without create."""
        with pytest.raises(ProfileNotFoundError):
            self.service.get_complete_profile("ghost", create=False)

    def test_analyze_zones_uses_profile_age(self):
        """Test analyze zones uses profile age."""
        self.service.update_profile("a1", age=40)
        result = self.service.analyze_zones("a1")

        assert result.max_hr_estimated is True
        assert result.suggested_zone_model.zones[-1].max_hr == 180


class TestPersonalizedTargets:
    """Test TSS targets and personalized zones."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = TrainingProfileService(store=None)

    def test_default_target(self):
        """Test default target."""
        assert self.service.calculate_personalized_tss_target(TrainingProfile(user_id="a1")) == 400

    def test_known_combinations(self):
        """Test known combinations."""
        beginner = TrainingProfile(user_id="a1", experience_level="beginner", training_philosophy="intensity",
                                   weekly_training_hours_target=3)
        assert self.service.calculate_personalized_tss_target(beginner) == 202

        advanced = TrainingProfile(user_id="a1", experience_level="advanced", training_philosophy="polarized")
        assert self.service.calculate_personalized_tss_target(advanced) == 572

        profile = TrainingProfile(user_id="a1")
        assert self.service.calculate_personalized_tss_target(profile, make_estimation(activities=25)) == 440

    def test_clamped_to_upper_bound(self):
        """Test clamped to upper bound."""
        elite = TrainingProfile(user_id="a1", experience_level="elite", training_philosophy="volume",
                                weekly_training_hours_target=12)
        assert self.service.calculate_personalized_tss_target(elite, make_estimation(activities=25)) == 1000

    def test_bounds_for_all_combinations(self):
        """Test bounds for all combinations."""
        for level in EXPERIENCE_LEVELS:
            for philosophy in TRAINING_PHILOSOPHIES:
                for hours in (None, 3, 7, 12):
                    for activities in (5, 25):
                        profile = TrainingProfile(user_id="a1", experience_level=level,
                                                  training_philosophy=philosophy,
                                                  weekly_training_hours_target=hours)
                        target = self.service.calculate_personalized_tss_target(
                            profile, make_estimation(activities=activities)
                        )
                        assert 200 <= target <= 1000

    def test_training_zones(self):
        """Test training zones."""
        zones = self.service.generate_training_zones(
            TrainingProfile(user_id="a1", max_heart_rate=200, functional_threshold_power=250)
        )

        assert len(zones.heart_rate_zones) == 5
        assert zones.heart_rate_zones[-1].max_hr == 200
        assert len(zones.power_zones) == 7

    def test_training_zones_need_thresholds(self):
        """Test training zones need thresholds."""
        zones = self.service.generate_training_zones(TrainingProfile(user_id="a1"))

        assert zones.heart_rate_zones == []
        assert zones.power_zones == []


class TestProfileAnalysis:
    """Test completeness scoring."""

    def setup_method(self):
        """Set up test fixtures."""
        self.now = datetime(2024, 6, 1, 12, 0)

    def history_entry(self, days_ago, confidence=0.8):
        return ThresholdCalculation(
            user_id="a1",
            activities_analyzed=30,
            date_range_start=date(2024, 1, 1),
            date_range_end=date(2024, 5, 1),
            confidence_score=confidence,
            calculation_date=self.now - timedelta(days=days_ago),
        )

    def test_empty_profile(self):
        """Test empty profile."""
        complete = CompleteTrainingProfile(
            profile=TrainingProfile(user_id="a1"),
            preferences=TrainingPreferences(user_id="a1"),
            calculation_history=[],
        )
        analysis = TrainingProfileService.analyze_profile(complete, now=self.now)

        assert analysis.completeness_score == 35
        assert analysis.missing_critical_data == [
            "age", "weight", "biological sex", "max heart rate", "resting heart rate",
        ]
        assert analysis.confidence_level == "low"
        assert analysis.needs_recalculation is True
        assert analysis.recommendations == [
            "Complete your profile by adding: age, weight, biological sex, max heart rate, resting heart rate",
            "Recalculate your training thresholds based on recent activities",
            "Add more personal information to get better training recommendations",
        ]

    def test_complete_profile(self):
        """Test complete profile."""
        profile = TrainingProfile(
            user_id="a1", age=35, weight=70, sex="F", max_heart_rate=190, resting_heart_rate=50,
            lactate_threshold_hr=162, functional_threshold_power=250,
            updated_at=self.now - timedelta(days=3),
        )
        preferences = TrainingPreferences(user_id="a1", max_weekly_training_time=600)
        complete = CompleteTrainingProfile(profile, preferences, [self.history_entry(days_ago=5)])
        analysis = TrainingProfileService.analyze_profile(complete, now=self.now)

        assert analysis.completeness_score == 100
        assert analysis.missing_critical_data == []
        assert analysis.confidence_level == "high"
        assert analysis.needs_recalculation is False
        assert analysis.recommendations == []
        assert analysis.last_updated_days_ago == 3

    def test_stale_history_needs_recalculation(self):
        """Test stale history needs recalculation."""
        profile = TrainingProfile(
            user_id="a1", age=35, weight=70, sex="F", max_heart_rate=190, resting_heart_rate=50,
        )
        complete = CompleteTrainingProfile(profile, TrainingPreferences(user_id="a1"),
                                           [self.history_entry(days_ago=40, confidence=0.5)])
        analysis = TrainingProfileService.analyze_profile(complete, now=self.now)

        assert analysis.completeness_score == 75
        assert analysis.confidence_level == "medium"
        assert analysis.needs_recalculation is True
        assert analysis.recommendations == ["Recalculate your training thresholds based on recent activities"]

    @pytest.mark.parametrize("age,expected", [
        (timedelta(days=30, hours=12), True),
        (timedelta(days=30, seconds=1), True),
        (timedelta(days=29, hours=23), False),
    ])
    def test_recalculation_interval_boundary(self, age, expected):
        """Test a calculation is stale as soon as it is older than 30 days."""
        entry = self.history_entry(days_ago=0)
        entry.calculation_date = self.now - age
        complete = CompleteTrainingProfile(TrainingProfile(user_id="a1"), TrainingPreferences(user_id="a1"), [entry])

        analysis = TrainingProfileService.analyze_profile(complete, now=self.now)

        assert analysis.needs_recalculation is expected
