"""Training zone analysis: statistics, zone models and coaching advice in one result."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..storage import ActivityQuery
from .selection import (
    ModelSelector,
    NamedModelSelector,
    PreferredModelSelector,
    calculate_confidence,
    generate_recommendations,
)
from .statistics import ActivityRecord, HeartRateAnalyzer, HeartRateStatistics, SportSpecificAnalysis
from .zones import ZoneModel, ZoneModelGenerator

logger = logging.getLogger(__name__)

# Custom max HR values at or below this are ignored
MIN_CUSTOM_MAX_HR = 100


@dataclass
class ZoneAnalysisResult:
    """Everything the dashboard needs to render suggested training zones."""

    overall: HeartRateStatistics
    sport_specific: List[SportSpecificAnalysis]
    suggested_zone_model: ZoneModel
    alternative_models: List[ZoneModel]
    recommendations: List[str]
    confidence: str  # high, medium, low
    needs_more_data: bool
    max_hr_estimated: bool = False  # zones built from the age-based fallback


class TrainingZoneAnalysis:
    """Analyze an athlete's activities and suggest training zones."""

    def __init__(self, activity_query: ActivityQuery, selector: Optional[ModelSelector] = None,
                 athlete_age: Optional[int] = None):
        """Initialize the analysis.

        Args:
            activity_query: Source of the athlete's activities
            selector: Zone model selection strategy (defaults to the 5-zone model)
            athlete_age: Known age, used for the max HR fallback
        """
        self.activity_query = activity_query
        self.selector = selector or PreferredModelSelector()
        self.zone_generator = ZoneModelGenerator(athlete_age=athlete_age)
        self.hr_analyzer = HeartRateAnalyzer(zone_generator=self.zone_generator)

    def analyze_user_zones(self, user_id: str, max_heart_rate: Optional[float] = None,
                           zone_model: Optional[str] = None) -> ZoneAnalysisResult:
        """Analyze the athlete's activities and suggest training zones.

        Args:
            user_id: Athlete identifier
            max_heart_rate: Custom max HR overriding the observed one (ignored unless > 100)
            zone_model: Name fragment of the model to suggest with a custom max HR

        Returns:
            ZoneAnalysisResult; athletes without data get a valid low-confidence result
        """
        logger.info(f"Starting zone analysis for user: {user_id}")
        activities = self.activity_query.activities_for(user_id)
        return self.analyze_activities(activities, max_heart_rate=max_heart_rate, zone_model=zone_model)

    def analyze_activities(self, activities: List[ActivityRecord], max_heart_rate: Optional[float] = None,
                           zone_model: Optional[str] = None) -> ZoneAnalysisResult:
        """Run the zone analysis on an already loaded activity set."""
        stats = self.hr_analyzer.get_heart_rate_statistics(activities)
        sport_analysis = self.hr_analyzer.get_sport_specific_analysis(activities)
        recommendations = generate_recommendations(stats, sport_analysis)

        selector = self.selector
        use_custom = max_heart_rate is not None and max_heart_rate > MIN_CUSTOM_MAX_HR
        if use_custom:
            selector = NamedModelSelector(zone_model or "5-zone")
            recommendations.insert(0, f"Using custom max heart rate of {max_heart_rate:g} BPM")
            zone_source = max_heart_rate
        else:
            zone_source = stats.max_heart_rate

        _, used_fallback = self.zone_generator.resolve_max_hr(zone_source)
        zone_models = self.zone_generator.create_zone_models(zone_source)
        suggested = selector.select(zone_models, stats)

        # Zones from an age-based guess never count as better than low confidence
        confidence = "low" if used_fallback else calculate_confidence(stats)

        result = ZoneAnalysisResult(
            overall=stats,
            sport_specific=sport_analysis,
            suggested_zone_model=suggested,
            alternative_models=[m for m in zone_models if m.name != suggested.name],
            recommendations=recommendations,
            confidence=confidence,
            needs_more_data=stats.hr_data_quality in ("poor", "none"),
            max_hr_estimated=used_fallback,
        )

        logger.info(
            f"Zone analysis completed: quality={stats.hr_data_quality}, "
            f"hr_activities={stats.activities_with_hr}, model={suggested.name}, confidence={confidence}"
        )
        return result
