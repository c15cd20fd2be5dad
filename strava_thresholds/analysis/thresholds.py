"""Physiological threshold estimation with an append-only calculation history."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from ..config import config
from ..profile.models import ThresholdCalculation
from ..storage import ProfileStore
from .selection import ConfidenceScores, calculate_confidence_scores, generate_threshold_recommendations
from .statistics import ActivityRecord, round_half_up

logger = logging.getLogger(__name__)

CALCULATION_METHOD = "percentile_analysis"
ALGORITHM_VERSION = "1.0"

# Used when no heart rate data exists at all (confidence is then 0)
DEFAULT_MAX_HR = 190
DEFAULT_RESTING_HR = 60
LTHR_FRACTION = 0.85


@dataclass
class ThresholdValues:
    """Estimated physiological thresholds."""

    max_heart_rate: int
    resting_heart_rate: int
    lactate_threshold_hr: int
    functional_threshold_power: Optional[int] = None


@dataclass
class DataQualitySummary:
    """What the estimation was based on."""

    activities_analyzed: int
    date_range_days: int
    hr_activities: int
    power_activities: int


@dataclass
class ThresholdEstimation:
    """Result of one threshold calculation."""

    estimated_values: ThresholdValues
    confidence_scores: ConfidenceScores
    data_quality: DataQualitySummary
    date_range: Tuple[date, date]
    recommendations: List[str] = field(default_factory=list)


def estimate_athlete_thresholds(activities: List[ActivityRecord]) -> ThresholdValues:
    """Estimate max HR, resting HR, LTHR and FTP from raw activities.

    Max HR is the 95th percentile of per-activity peak HR and resting HR the
    5th percentile of average HR, both taken by index rather than interpolated.
    FTP is the 90th percentile of (weighted) average power over efforts longer
    than FTP_MIN_EFFORT_SECONDS, and LTHR is 85% of max HR.
    """
    hr_activities = [a for a in activities if a.has_hr_data]

    max_hrs = sorted(
        (a.peak_heartrate for a in hr_activities if a.peak_heartrate and a.peak_heartrate > 0),
        reverse=True,
    )
    max_heart_rate = max_hrs[int(math.floor(len(max_hrs) * 0.05))] if max_hrs else DEFAULT_MAX_HR

    avg_hrs = sorted(a.average_heartrate for a in hr_activities if a.average_heartrate > 0)
    resting_heart_rate = avg_hrs[int(math.floor(len(avg_hrs) * 0.05))] if avg_hrs else DEFAULT_RESTING_HR

    efforts = [
        a for a in activities
        if a.average_watts and a.average_watts > 0 and (a.moving_time or 0) > config.FTP_MIN_EFFORT_SECONDS
    ]
    power_values = sorted((a.weighted_average_watts or a.average_watts for a in efforts), reverse=True)
    ftp = power_values[int(math.floor(len(power_values) * 0.1))] if power_values else None

    return ThresholdValues(
        max_heart_rate=round_half_up(max_heart_rate),
        resting_heart_rate=round_half_up(resting_heart_rate),
        lactate_threshold_hr=round_half_up(max_heart_rate * LTHR_FRACTION),
        functional_threshold_power=round_half_up(ftp) if ftp else None,
    )


def get_date_range(activities: List[ActivityRecord], today: Optional[date] = None) -> Tuple[date, date]:
    """Earliest and latest activity dates, or the trailing 30 days without activities."""
    if not activities:
        end = today or datetime.utcnow().date()
        return end - timedelta(days=config.DEFAULT_DATE_RANGE_DAYS), end

    dates = sorted(a.start_date for a in activities)
    return _as_date(dates[0]), _as_date(dates[-1])


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


class ThresholdEstimator:
    """Estimate thresholds and record every calculation in the history log."""

    def __init__(self, store: ProfileStore):
        self.store = store

    def calculate_thresholds(self, user_id: str, activities: List[ActivityRecord],
                             today: Optional[date] = None) -> ThresholdEstimation:
        """Estimate thresholds from the athlete's activities.

        Appends exactly one history entry per call; repeated calls accumulate
        entries. Storage errors propagate to the caller.
        """
        logger.info(f"Calculating thresholds for {user_id} from {len(activities)} activities")

        estimated = estimate_athlete_thresholds(activities)

        hr_count = sum(1 for a in activities if a.has_hr_data)
        power_count = sum(1 for a in activities if a.average_watts)
        confidence = calculate_confidence_scores(hr_count, power_count, len(activities))

        start, end = get_date_range(activities, today=today)

        try:
            self.store.append_history(ThresholdCalculation(
                user_id=user_id,
                activities_analyzed=len(activities),
                date_range_start=start,
                date_range_end=end,
                estimated_max_hr=estimated.max_heart_rate,
                estimated_resting_hr=estimated.resting_heart_rate,
                estimated_ftp=estimated.functional_threshold_power,
                estimated_lthr=estimated.lactate_threshold_hr,
                confidence_score=confidence.overall,
                max_hr_confidence=confidence.max_heart_rate,
                resting_hr_confidence=confidence.resting_heart_rate,
                lthr_confidence=confidence.lactate_threshold_hr,
                ftp_confidence=confidence.functional_threshold_power,
                calculation_method=CALCULATION_METHOD,
                algorithm_version=ALGORITHM_VERSION,
            ))
        except Exception as e:
            logger.error(f"Failed to record threshold calculation for {user_id}: {e}")
            raise

        return ThresholdEstimation(
            estimated_values=estimated,
            confidence_scores=confidence,
            data_quality=DataQualitySummary(
                activities_analyzed=len(activities),
                date_range_days=(end - start).days,
                hr_activities=hr_count,
                power_activities=power_count,
            ),
            date_range=(start, end),
            recommendations=generate_threshold_recommendations(
                confidence, estimated.functional_threshold_power
            ),
        )
