"""Zone model selection, confidence scoring and coaching recommendations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..config import config
from .statistics import HeartRateStatistics, SportSpecificAnalysis
from .zones import FIVE_ZONE_MODEL, ZoneModel


@dataclass
class ConfidenceScores:
    """Per-field confidence (0.0-1.0) of a threshold estimation."""

    max_heart_rate: float
    resting_heart_rate: float
    lactate_threshold_hr: float
    functional_threshold_power: float
    overall: float


class ModelSelector(ABC):
    """Strategy for choosing the zone model to suggest to the athlete."""

    @abstractmethod
    def select(self, models: List[ZoneModel], stats: Optional[HeartRateStatistics] = None) -> ZoneModel:
        """Pick one model out of a non-empty list."""


class PreferredModelSelector(ModelSelector):
    """Always pick a fixed model by name, else the first model.

    This is a placeholder policy; the statistics are accepted but not used.
    """

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name or config.PREFERRED_ZONE_MODEL or FIVE_ZONE_MODEL

    def select(self, models: List[ZoneModel], stats: Optional[HeartRateStatistics] = None) -> ZoneModel:
        for model in models:
            if model.name == self.model_name:
                return model
        return models[0]


class NamedModelSelector(ModelSelector):
    """Pick the first model whose name contains a user-supplied query."""

    def __init__(self, query: str):
        self.query = query

    def select(self, models: List[ZoneModel], stats: Optional[HeartRateStatistics] = None) -> ZoneModel:
        query = self.query.lower()
        for model in models:
            if query in model.name.lower():
                return model
        return models[0]


def calculate_confidence(stats: HeartRateStatistics) -> str:
    """Overall confidence tier (high, medium, low) of a zone analysis."""
    if stats.hr_data_quality == "excellent" and stats.activities_with_hr >= 20:
        return "high"
    if stats.hr_data_quality == "good" and stats.activities_with_hr >= 10:
        return "medium"
    return "low"


def generate_recommendations(stats: HeartRateStatistics,
                             sport_analysis: List[SportSpecificAnalysis]) -> List[str]:
    """Turn data gaps and multi-sport variance into coaching advice."""
    recommendations = []

    if stats.hr_data_quality in ("poor", "none"):
        recommendations.append(
            "Consider using a heart rate monitor for more activities to improve zone accuracy"
        )

    if stats.activities_with_hr < 10:
        recommendations.append("More heart rate data will improve zone recommendations")

    if len(sport_analysis) > 1:
        recommendations.append(
            "Consider sport-specific zones as your heart rate patterns vary between activities"
        )

    if stats.max_heart_rate and stats.max_heart_rate < config.LOW_MAX_HR_WARNING:
        recommendations.append(
            "Your max heart rate seems low - consider a max HR test for better accuracy"
        )

    return recommendations


def generate_threshold_recommendations(confidence: ConfidenceScores,
                                       estimated_ftp: Optional[float]) -> List[str]:
    """Advice on improving the confidence of threshold estimates.

    Args:
        confidence: Per-field confidence scores
        estimated_ftp: Estimated FTP in watts, if any power data was found
    """
    recommendations = []

    if confidence.max_heart_rate < 0.7:
        recommendations.append(
            "Complete more activities with heart rate data for better max HR estimation"
        )

    if confidence.functional_threshold_power < 0.7 and estimated_ftp:
        recommendations.append(
            "Add more cycling activities with power data for better FTP estimation"
        )

    if confidence.overall < 0.6:
        recommendations.append(
            "Complete more training activities to improve threshold estimations"
        )

    return recommendations


def calculate_confidence_scores(hr_activities: int, power_activities: int,
                                total_activities: int) -> ConfidenceScores:
    """Linear confidence ramps capped at 1.0.

    HR-derived fields ramp towards HR_CONFIDENCE_TARGET heart rate activities
    (resting HR at 80% and LTHR at 90% of that), FTP towards
    POWER_CONFIDENCE_TARGET power activities and the overall score towards
    OVERALL_CONFIDENCE_TARGET activities.
    """
    hr_confidence = min(1.0, hr_activities / config.HR_CONFIDENCE_TARGET)
    power_confidence = min(1.0, power_activities / config.POWER_CONFIDENCE_TARGET)
    overall_confidence = min(1.0, total_activities / config.OVERALL_CONFIDENCE_TARGET)

    return ConfidenceScores(
        max_heart_rate=hr_confidence,
        resting_heart_rate=hr_confidence * 0.8,
        lactate_threshold_hr=hr_confidence * 0.9,
        functional_threshold_power=power_confidence,
        overall=overall_confidence,
    )
