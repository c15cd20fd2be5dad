"""Analysis module for heart rate statistics, training zones and thresholds."""

from .statistics import ActivityRecord, HeartRateAnalyzer, HeartRateStatistics, get_percentile
from .zones import TrainingZone, ZoneModel, ZoneModelGenerator
from .zone_analysis import TrainingZoneAnalysis, ZoneAnalysisResult
from .thresholds import ThresholdEstimation, ThresholdEstimator

__all__ = [
    "ActivityRecord",
    "HeartRateAnalyzer",
    "HeartRateStatistics",
    "get_percentile",
    "TrainingZone",
    "ZoneModel",
    "ZoneModelGenerator",
    "TrainingZoneAnalysis",
    "ZoneAnalysisResult",
    "ThresholdEstimation",
    "ThresholdEstimator",
]
