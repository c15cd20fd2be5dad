"""Training profile domain objects, independent of the storage layer."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced", "elite")
TRAINING_PHILOSOPHIES = ("volume", "intensity", "balanced", "polarized")
THRESHOLD_SOURCES = ("estimated", "user_set")
UNITS = ("metric", "imperial")
SEXES = ("M", "F")
PRIMARY_GOALS = (
    "general_fitness", "weight_loss", "endurance_building", "speed_improvement",
    "race_preparation", "strength_building", "recovery", "maintenance",
)
RECOVERY_PRIORITIES = ("low", "moderate", "high")

# Threshold field -> provenance field
OVERRIDABLE_FIELDS = {
    "max_heart_rate": "max_hr_source",
    "resting_heart_rate": "resting_hr_source",
    "functional_threshold_power": "ftp_source",
    "weekly_tss_target": "tss_target_source",
}


@dataclass
class TrainingProfile:
    """An athlete's durable thresholds, targets and training philosophy."""

    user_id: str

    # Basic athlete info
    age: Optional[int] = None
    weight: Optional[float] = None  # kg
    height: Optional[float] = None  # cm
    sex: Optional[str] = None  # M / F
    experience_level: str = "intermediate"
    primary_sport: str = "Run"

    # Thresholds
    max_heart_rate: Optional[int] = None
    resting_heart_rate: Optional[int] = None
    lactate_threshold_hr: Optional[int] = None
    functional_threshold_power: Optional[int] = None  # watts

    # Load targets
    weekly_tss_target: Optional[int] = 400
    weekly_training_hours_target: Optional[float] = None

    # Provenance of override-able fields
    max_hr_source: str = "estimated"
    resting_hr_source: str = "estimated"
    ftp_source: str = "estimated"
    tss_target_source: str = "estimated"

    # Preferences
    preferred_units: str = "metric"
    training_philosophy: str = "balanced"

    # Calculation metadata
    last_threshold_calculation: Optional[datetime] = None
    calculation_data_points: Optional[int] = None
    threshold_confidence: Optional[float] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: Optional[int] = None

    def source_of(self, field_name: str) -> Optional[str]:
        """Provenance tag of an override-able threshold field."""
        return getattr(self, OVERRIDABLE_FIELDS[field_name])

    def can_auto_update(self, field_name: str) -> bool:
        """Whether an estimate may overwrite this field: empty or still estimated."""
        return not getattr(self, field_name) or self.source_of(field_name) == "estimated"


@dataclass
class TrainingPreferences:
    """How the athlete likes to structure training."""

    user_id: str
    primary_goal: str = "general_fitness"
    goal_target_date: Optional[date] = None
    goal_description: Optional[str] = None

    preferred_training_days: List[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])  # Mon=1
    max_weekly_training_time: Optional[int] = None  # minutes
    preferred_workout_duration: int = 60  # minutes

    easy_percentage: int = 80
    moderate_percentage: int = 15
    hard_percentage: int = 5

    mandatory_rest_days: int = 1
    recovery_priority: str = "moderate"

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ThresholdCalculation:
    """One append-only threshold calculation history entry."""

    user_id: str
    activities_analyzed: int
    date_range_start: date
    date_range_end: date
    estimated_max_hr: Optional[int] = None
    estimated_resting_hr: Optional[int] = None
    estimated_ftp: Optional[int] = None
    estimated_lthr: Optional[int] = None
    confidence_score: Optional[float] = None  # overall
    max_hr_confidence: Optional[float] = None
    resting_hr_confidence: Optional[float] = None
    lthr_confidence: Optional[float] = None
    ftp_confidence: Optional[float] = None
    calculation_method: str = "percentile_analysis"
    algorithm_version: str = "1.0"
    calculation_date: Optional[datetime] = None
    id: Optional[int] = None


@dataclass
class CompleteTrainingProfile:
    """Profile, preferences and the most recent calculation history."""

    profile: TrainingProfile
    preferences: TrainingPreferences
    calculation_history: List[ThresholdCalculation]
