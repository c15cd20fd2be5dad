"""Training profile service: durable thresholds, override rules and personalized targets."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from ..analysis.statistics import ActivityRecord, round_half_up
from ..analysis.thresholds import ThresholdEstimation, ThresholdEstimator
from ..analysis.zone_analysis import TrainingZoneAnalysis, ZoneAnalysisResult
from ..analysis.zones import PowerZone, TrainingZone, ZoneModelGenerator
from ..config import config
from ..exceptions import ProfileNotFoundError, ProfileValidationError
from ..storage import ActivityQuery, ProfileStore
from .models import (
    EXPERIENCE_LEVELS,
    OVERRIDABLE_FIELDS,
    PRIMARY_GOALS,
    RECOVERY_PRIORITIES,
    SEXES,
    TRAINING_PHILOSOPHIES,
    UNITS,
    CompleteTrainingProfile,
    TrainingPreferences,
    TrainingProfile,
)

logger = logging.getLogger(__name__)

PROFILE_CHOICES = {
    "experience_level": EXPERIENCE_LEVELS,
    "training_philosophy": TRAINING_PHILOSOPHIES,
    "preferred_units": UNITS,
    "sex": SEXES,
}

PROFILE_NUMBERS = (
    "age", "weight", "height",
    "max_heart_rate", "resting_heart_rate", "lactate_threshold_hr", "functional_threshold_power",
    "weekly_tss_target", "weekly_training_hours_target",
)

PROFILE_FIELDS = set(PROFILE_CHOICES) | set(PROFILE_NUMBERS) | {"primary_sport"}

PREFERENCE_CHOICES = {
    "primary_goal": PRIMARY_GOALS,
    "recovery_priority": RECOVERY_PRIORITIES,
}

PREFERENCE_FIELDS = set(PREFERENCE_CHOICES) | {
    "goal_target_date", "goal_description", "preferred_training_days",
    "max_weekly_training_time", "preferred_workout_duration",
    "easy_percentage", "moderate_percentage", "hard_percentage", "mandatory_rest_days",
}


@dataclass
class PersonalizedZones:
    """Heart rate and power zones derived from the profile's thresholds."""

    heart_rate_zones: List[TrainingZone] = field(default_factory=list)
    power_zones: List[PowerZone] = field(default_factory=list)


@dataclass
class ProfileAnalysis:
    """Completeness and freshness of a training profile."""

    completeness_score: int  # 0-100
    missing_critical_data: List[str]
    recommendations: List[str]
    confidence_level: str  # low, medium, high
    needs_recalculation: bool
    last_updated_days_ago: int


class TrainingProfileService:
    """Own an athlete's training profile and merge threshold estimates into it.

    Manual edits always win: an edited threshold is tagged `user_set` and is
    never overwritten by an estimate until the athlete clears it.
    """

    def __init__(self, store: ProfileStore, activity_query: Optional[ActivityQuery] = None):
        """Initialize the service.

        Args:
            store: Profile and history persistence
            activity_query: Activity source, needed for recalculation and zone analysis
        """
        self.store = store
        self.activity_query = activity_query
        self.estimator = ThresholdEstimator(store)
        self.zone_generator = ZoneModelGenerator()

    def get_or_create_profile(self, user_id: str, for_update: bool = False) -> TrainingProfile:
        """Load the profile, creating one with defaults on first access."""
        profile = self.store.load_profile(user_id, for_update=for_update)
        if profile is None:
            logger.info(f"Creating default training profile for {user_id}")
            profile = self.store.save_profile(TrainingProfile(user_id=user_id))
        return profile

    def get_or_create_preferences(self, user_id: str) -> TrainingPreferences:
        """Load training preferences, creating defaults on first access."""
        preferences = self.store.load_preferences(user_id)
        if preferences is None:
            preferences = self.store.save_preferences(TrainingPreferences(user_id=user_id))
        return preferences

    def get_complete_profile(self, user_id: str, create: bool = True) -> CompleteTrainingProfile:
        """Profile, preferences and the most recent calculation history.

        Raises:
            ProfileNotFoundError: No profile exists and `create` is False
        """
        if create:
            profile = self.get_or_create_profile(user_id)
        else:
            profile = self.store.load_profile(user_id)
            if profile is None:
                raise ProfileNotFoundError(f"No training profile for {user_id}")

        return CompleteTrainingProfile(
            profile=profile,
            preferences=self.get_or_create_preferences(user_id),
            calculation_history=self.store.recent_history(user_id, limit=config.HISTORY_LIMIT),
        )

    def update_profile(self, user_id: str, **changes) -> TrainingProfile:
        """Apply a manual edit.

        Setting an override-able threshold tags it `user_set`; clearing it
        (None) hands it back to estimation.

        Raises:
            ProfileValidationError: Unknown field or invalid value
        """
        for name, value in changes.items():
            if name not in PROFILE_FIELDS:
                raise ProfileValidationError(f"Unknown profile field: {name}")
            _validate_value(name, value, PROFILE_CHOICES)

        profile = self.get_or_create_profile(user_id, for_update=True)
        for name, value in changes.items():
            setattr(profile, name, value)
            if name in OVERRIDABLE_FIELDS:
                setattr(profile, OVERRIDABLE_FIELDS[name], "user_set" if value is not None else "estimated")

        logger.info(f"Manual profile update for {user_id}: {sorted(changes)}")
        return self.store.save_profile(profile)

    def update_preferences(self, user_id: str, **changes) -> TrainingPreferences:
        """Apply a manual edit to the training preferences."""
        for name, value in changes.items():
            if name not in PREFERENCE_FIELDS:
                raise ProfileValidationError(f"Unknown preference field: {name}")
            if name in PREFERENCE_CHOICES:
                _validate_value(name, value, PREFERENCE_CHOICES)

        preferences = self.get_or_create_preferences(user_id)
        for name, value in changes.items():
            setattr(preferences, name, value)
        return self.store.save_preferences(preferences)

    def calculate_thresholds(self, user_id: str, activities: List[ActivityRecord],
                             today: Optional[date] = None) -> ThresholdEstimation:
        """Estimate thresholds and append a calculation history entry."""
        return self.estimator.calculate_thresholds(user_id, activities, today=today)

    def auto_update_from_calculation(self, user_id: str, estimation: ThresholdEstimation) -> TrainingProfile:
        """Merge an estimation into the profile under the override rules.

        A field is written only when its confidence exceeds the per-field
        minimum and it is empty or still `estimated`. The profile is read and
        written under a row lock.
        """
        profile = self.get_or_create_profile(user_id, for_update=True)
        values = estimation.estimated_values
        scores = estimation.confidence_scores
        applied = []

        def apply(name: str, value) -> None:
            setattr(profile, name, value)
            setattr(profile, OVERRIDABLE_FIELDS[name], "estimated")
            applied.append(name)

        if scores.max_heart_rate > config.MIN_CONFIDENCE_MAX_HR and profile.can_auto_update("max_heart_rate"):
            apply("max_heart_rate", values.max_heart_rate)

        if (scores.resting_heart_rate > config.MIN_CONFIDENCE_RESTING_HR
                and profile.can_auto_update("resting_heart_rate")):
            apply("resting_heart_rate", values.resting_heart_rate)

        if (values.functional_threshold_power
                and scores.functional_threshold_power > config.MIN_CONFIDENCE_FTP
                and profile.can_auto_update("functional_threshold_power")):
            apply("functional_threshold_power", values.functional_threshold_power)

        # LTHR has no provenance tag, so it is only ever filled in, never replaced
        if scores.lactate_threshold_hr > config.MIN_CONFIDENCE_MAX_HR and not profile.lactate_threshold_hr:
            profile.lactate_threshold_hr = values.lactate_threshold_hr
            applied.append("lactate_threshold_hr")

        tss_target = self.calculate_personalized_tss_target(profile, estimation)
        if tss_target != profile.weekly_tss_target and profile.can_auto_update("weekly_tss_target"):
            apply("weekly_tss_target", tss_target)

        profile.last_threshold_calculation = datetime.utcnow()
        profile.calculation_data_points = estimation.data_quality.activities_analyzed
        profile.threshold_confidence = scores.overall

        logger.info(f"Auto-updated profile for {user_id}: {applied or 'no changes'}")
        return self.store.save_profile(profile)

    def recalculate(self, user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None,
                    today: Optional[date] = None) -> Tuple[ThresholdEstimation, TrainingProfile]:
        """Estimate thresholds from stored activities and merge them into the profile.

        History entry and profile update belong to the caller's unit of work;
        a storage failure propagates and neither should be committed.
        """
        if self.activity_query is None:
            raise ValueError("Recalculation needs an activity query")

        activities = self.activity_query.activities_for(user_id, start=start, end=end)
        estimation = self.calculate_thresholds(user_id, activities, today=today)
        profile = self.auto_update_from_calculation(user_id, estimation)
        return estimation, profile

    def analyze_zones(self, user_id: str, max_heart_rate: Optional[float] = None,
                      zone_model: Optional[str] = None) -> ZoneAnalysisResult:
        """Zone analysis using the athlete's age, when known, for the max HR fallback."""
        if self.activity_query is None:
            raise ValueError("Zone analysis needs an activity query")

        profile = self.store.load_profile(user_id)
        analysis = TrainingZoneAnalysis(self.activity_query, athlete_age=profile.age if profile else None)
        return analysis.analyze_user_zones(user_id, max_heart_rate=max_heart_rate, zone_model=zone_model)

    @staticmethod
    def calculate_personalized_tss_target(profile: TrainingProfile,
                                          estimation: Optional[ThresholdEstimation] = None) -> int:
        """Weekly TSS target scaled by experience, philosophy, time and data quality.

        Returns:
            Target clamped to [MIN_WEEKLY_TSS, MAX_WEEKLY_TSS]
        """
        tss = config.BASE_WEEKLY_TSS
        tss *= config.get_experience_multiplier(profile.experience_level)
        tss *= config.get_philosophy_multiplier(profile.training_philosophy)

        hours = profile.weekly_training_hours_target
        if hours:
            if hours < 5:
                tss *= 0.8
            elif hours > 10:
                tss *= 1.2

        # A long activity history supports a slightly higher target
        if estimation and estimation.data_quality.activities_analyzed > 20:
            tss *= 1.1

        return round_half_up(max(config.MIN_WEEKLY_TSS, min(config.MAX_WEEKLY_TSS, tss)))

    def generate_training_zones(self, profile: TrainingProfile) -> PersonalizedZones:
        """5-zone heart rate and 7-zone power tables from the profile's thresholds."""
        zones = PersonalizedZones()
        if profile.max_heart_rate:
            zones.heart_rate_zones = self.zone_generator.create_five_zone_model(profile.max_heart_rate).zones
        if profile.functional_threshold_power:
            zones.power_zones = self.zone_generator.create_power_zones(profile.functional_threshold_power)
        return zones

    @staticmethod
    def analyze_profile(complete: CompleteTrainingProfile, now: Optional[datetime] = None) -> ProfileAnalysis:
        """Score profile completeness and decide whether thresholds need recalculating."""
        now = now or datetime.utcnow()
        tp = complete.profile
        prefs = complete.preferences
        history = complete.calculation_history

        completeness = 0
        missing = []

        # Basic info (30)
        if tp.age:
            completeness += 5
        else:
            missing.append("age")
        if tp.weight:
            completeness += 5
        else:
            missing.append("weight")
        if tp.sex:
            completeness += 5
        else:
            missing.append("biological sex")
        if tp.experience_level:
            completeness += 5
        if tp.primary_sport:
            completeness += 5
        if prefs.primary_goal:
            completeness += 5

        # Thresholds (50)
        if tp.max_heart_rate:
            completeness += 15
        else:
            missing.append("max heart rate")
        if tp.resting_heart_rate:
            completeness += 10
        else:
            missing.append("resting heart rate")
        if tp.lactate_threshold_hr:
            completeness += 10
        if tp.functional_threshold_power:
            completeness += 10
        if tp.weekly_tss_target:
            completeness += 5

        # Training preferences (20)
        if prefs.preferred_training_days:
            completeness += 5
        if prefs.max_weekly_training_time:
            completeness += 5
        if prefs.easy_percentage and prefs.moderate_percentage and prefs.hard_percentage:
            completeness += 5
        if prefs.recovery_priority:
            completeness += 5

        latest = history[0] if history else None
        has_confident_calculation = bool(latest and latest.confidence_score and latest.confidence_score > 0.7)

        if completeness >= 80 and has_confident_calculation:
            confidence_level = "high"
        elif completeness >= 60:
            confidence_level = "medium"
        else:
            confidence_level = "low"

        needs_recalculation = (
            latest is None
            or latest.calculation_date is None
            or now - latest.calculation_date > timedelta(days=config.RECALCULATION_INTERVAL_DAYS)
        )

        recommendations = []
        if missing:
            recommendations.append(f"Complete your profile by adding: {', '.join(missing)}")
        if needs_recalculation:
            recommendations.append("Recalculate your training thresholds based on recent activities")
        if completeness < 70:
            recommendations.append("Add more personal information to get better training recommendations")

        last_updated = (now - tp.updated_at).days if tp.updated_at else 0

        return ProfileAnalysis(
            completeness_score=completeness,
            missing_critical_data=missing,
            recommendations=recommendations,
            confidence_level=confidence_level,
            needs_recalculation=needs_recalculation,
            last_updated_days_ago=last_updated,
        )


def _validate_value(name: str, value, choices) -> None:
    if value is None:
        return
    if name in choices and value not in choices[name]:
        raise ProfileValidationError(
            f"Invalid {name}: {value!r} (expected one of {', '.join(choices[name])})"
        )
    if name in PROFILE_NUMBERS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ProfileValidationError(f"{name} must be a number, got {value!r}")
        if value <= 0:
            raise ProfileValidationError(f"{name} must be positive, got {value}")
