"""Heart rate statistics derived from an athlete's activity history."""

import logging
import math
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..config import config

logger = logging.getLogger(__name__)

PERCENTILE_RANKS = (50, 75, 85, 90, 95, 99)


@dataclass
class ActivityRecord:
    """A synced activity as seen by the analysis code."""

    sport_type: str
    start_date: datetime
    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None
    has_heartrate: bool = False
    average_watts: Optional[float] = None
    weighted_average_watts: Optional[float] = None
    moving_time: Optional[int] = None  # seconds
    name: Optional[str] = None
    distance: Optional[float] = None  # meters

    @property
    def has_hr_data(self) -> bool:
        """Whether the activity carries usable heart rate data."""
        return bool(self.has_heartrate and self.average_heartrate)

    @property
    def peak_heartrate(self) -> Optional[float]:
        """Max HR, falling back to average HR when the max was not recorded."""
        return self.max_heartrate or self.average_heartrate


@dataclass
class HeartRateStatistics:
    """Aggregated heart rate statistics for one athlete."""

    max_heart_rate: Optional[float] = None
    average_heart_rate: Optional[int] = None
    resting_heart_rate: Optional[int] = None
    activities_with_hr: int = 0
    total_activities: int = 0
    hr_data_quality: str = "none"  # none, poor, fair, good, excellent
    percentiles: Dict[str, Optional[float]] = field(
        default_factory=lambda: {f"p{rank}": None for rank in PERCENTILE_RANKS}
    )


@dataclass
class SportSpecificAnalysis:
    """Heart rate summary for one normalized sport."""

    sport: str
    max_hr: float
    avg_hr: int
    activity_count: int
    suggested_zones: list


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up."""
    return int(math.floor(value + 0.5))


def get_percentile(sorted_values: Sequence[float], percentile: float) -> Optional[float]:
    """Percentile of an ascending sample using linear interpolation (R-6 / Excel).

    Args:
        sorted_values: Sample sorted in ascending order
        percentile: Percentile rank in [0, 100]

    Returns:
        Interpolated value, or None for an empty sample
    """
    n = len(sorted_values)
    if n == 0:
        return None

    rank = (percentile / 100) * (n + 1)

    if rank <= 1:
        return sorted_values[0]
    if rank >= n:
        return sorted_values[n - 1]

    lower_index = math.floor(rank) - 1
    upper_index = math.ceil(rank) - 1
    weight = rank - math.floor(rank)

    lower = sorted_values[lower_index]
    return lower + weight * (sorted_values[upper_index] - lower)


def assess_data_quality(hr_activities: int, total_activities: int) -> str:
    """Rate heart rate data coverage as none, poor, fair, good or excellent."""
    hr_percentage = (hr_activities / total_activities) * 100 if total_activities > 0 else 0

    if hr_percentage == 0:
        return "none"
    if hr_percentage < 20 or hr_activities < 5:
        return "poor"
    if hr_percentage < 50 or hr_activities < 10:
        return "fair"
    if hr_percentage < 80 or hr_activities < 20:
        return "good"
    return "excellent"


def normalize_sport_type(sport_type: str) -> str:
    """Map a free-text Strava sport label onto Running, Cycling, Swimming or Walking.

    Unknown labels are passed through unchanged.
    """
    sport = (sport_type or "").lower()
    if "run" in sport:
        return "Running"
    if "ride" in sport or "bike" in sport or "cycling" in sport:
        return "Cycling"
    if "swim" in sport:
        return "Swimming"
    if "walk" in sport or "hike" in sport:
        return "Walking"
    return sport_type


class HeartRateAnalyzer:
    """Compute heart rate statistics from raw activity records."""

    def __init__(self, zone_generator=None, min_sport_activities: Optional[int] = None):
        """Initialize the analyzer.

        Args:
            zone_generator: ZoneModelGenerator used for sport-specific zones
            min_sport_activities: Minimum activities for a sport to be reported
        """
        if zone_generator is None:
            from .zones import ZoneModelGenerator
            zone_generator = ZoneModelGenerator()
        self.zone_generator = zone_generator
        self.min_sport_activities = min_sport_activities or config.MIN_SPORT_ACTIVITIES

    def get_heart_rate_statistics(self, activities: List[ActivityRecord]) -> HeartRateStatistics:
        """Aggregate max, average and resting HR estimates plus a percentile table."""
        if not activities:
            return HeartRateStatistics()

        hr_activities = [a for a in activities if a.has_hr_data]
        total_activities = len(activities)

        if not hr_activities:
            return HeartRateStatistics(total_activities=total_activities)

        peak_hrs = sorted(a.peak_heartrate for a in hr_activities)
        max_heart_rate = peak_hrs[-1]

        avg_hrs = sorted(a.average_heartrate for a in hr_activities if a.average_heartrate > 0)
        average_heart_rate = round_half_up(float(np.mean(avg_hrs))) if avg_hrs else None

        # Rough low-intensity baseline: index-based 5th percentile, not interpolated
        resting_heart_rate = None
        if avg_hrs:
            resting = avg_hrs[int(math.floor(len(avg_hrs) * 0.05))]
            resting_heart_rate = round_half_up(resting) if resting else None

        percentiles = {f"p{rank}": get_percentile(peak_hrs, rank) for rank in PERCENTILE_RANKS}

        return HeartRateStatistics(
            max_heart_rate=max_heart_rate,
            average_heart_rate=average_heart_rate,
            resting_heart_rate=resting_heart_rate,
            activities_with_hr=len(hr_activities),
            total_activities=total_activities,
            hr_data_quality=assess_data_quality(len(hr_activities), total_activities),
            percentiles=percentiles,
        )

    def get_sport_specific_analysis(self, activities: List[ActivityRecord]) -> List[SportSpecificAnalysis]:
        """Repeat a narrower statistics pass per normalized sport.

        Sports with fewer than `min_sport_activities` heart rate activities are
        dropped; the result is sorted by activity count, largest first.
        """
        sport_groups: Dict[str, List[ActivityRecord]] = {}
        for activity in activities:
            if not activity.has_hr_data:
                continue
            sport = normalize_sport_type(activity.sport_type)
            sport_groups.setdefault(sport, []).append(activity)

        results = []
        for sport, group in sport_groups.items():
            if len(group) < self.min_sport_activities:
                continue

            heart_rates = [a.peak_heartrate for a in group if a.peak_heartrate and a.peak_heartrate > 0]
            max_hr = max(heart_rates) if heart_rates else 0

            avg_hrs = [a.average_heartrate for a in group if a.average_heartrate and a.average_heartrate > 0]
            avg_hr = round_half_up(float(np.mean(avg_hrs))) if avg_hrs else 0

            results.append(SportSpecificAnalysis(
                sport=sport,
                max_hr=max_hr,
                avg_hr=avg_hr,
                activity_count=len(group),
                suggested_zones=self.zone_generator.create_zone_models(max_hr)[0].zones,
            ))

        results.sort(key=lambda analysis: analysis.activity_count, reverse=True)
        logger.debug(f"Sport-specific analysis: {[(r.sport, r.activity_count) for r in results]}")
        return results
