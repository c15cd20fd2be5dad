"""Heart rate and power training zone models."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..config import config
from .statistics import round_half_up

logger = logging.getLogger(__name__)

FIVE_ZONE_MODEL = "5-Zone Model"
THREE_ZONE_MODEL = "3-Zone Model"
COGGAN_MODEL = "Coggan Model"


@dataclass
class TrainingZone:
    """A heart rate band covering [min_percent, max_percent) of max HR."""

    number: int
    name: str
    description: str
    min_percent: float
    max_percent: float
    min_hr: int
    max_hr: int
    color: str


@dataclass
class ZoneModel:
    """A named, ordered set of contiguous training zones."""

    name: str
    description: str
    zones: List[TrainingZone]


@dataclass
class PowerZone:
    """A power band expressed as a percentage of FTP and absolute watts."""

    number: int
    name: str
    min_percent: float
    max_percent: float
    min_watts: int
    max_watts: int
    label: str


# (name, description, min %, max %, color)
FIVE_ZONE_BANDS = [
    ("Recovery", "Active recovery, very easy effort", 50, 60, "#22c55e"),
    ("Base/Aerobic", "Comfortable, conversational pace", 60, 70, "#3b82f6"),
    ("Tempo", "Comfortably hard, moderate effort", 70, 80, "#f59e0b"),
    ("Threshold", "Hard effort, lactate threshold", 80, 90, "#f97316"),
    ("VO2 Max", "Very hard, maximum effort", 90, 100, "#ef4444"),
]

THREE_ZONE_BANDS = [
    ("Easy", "Easy, aerobic base building", 50, 70, "#22c55e"),
    ("Moderate", "Moderate, tempo efforts", 70, 85, "#f59e0b"),
    ("Hard", "Hard, threshold and VO2 max", 85, 100, "#ef4444"),
]

# Labelled 50-68 / 69-83 / 84-94 / 95-105 / 106-120 % (whole percents, inclusive)
COGGAN_BANDS = [
    ("Active Recovery", "Active recovery, < 68% max HR", 50, 69, "#22c55e"),
    ("Endurance", "Endurance, 69-83% max HR", 69, 84, "#3b82f6"),
    ("Tempo", "Tempo, 84-94% max HR", 84, 95, "#f59e0b"),
    ("Threshold", "Lactate threshold, 95-105% max HR", 95, 106, "#f97316"),
    ("VO2 Max", "VO2 max, 106%+ max HR", 106, 120, "#ef4444"),
]

# (name, min % FTP, max % FTP, label)
POWER_BANDS = [
    ("Active Recovery", 0, 55, "< 55% FTP"),
    ("Endurance", 56, 75, "56-75% FTP"),
    ("Tempo", 76, 90, "76-90% FTP"),
    ("Lactate Threshold", 91, 105, "91-105% FTP"),
    ("VO2 Max", 106, 120, "106-120% FTP"),
    ("Anaerobic Capacity", 121, 150, "121-150% FTP"),
    ("Neuromuscular Power", 151, 250, "> 150% FTP"),
]


class ZoneModelGenerator:
    """Build the standard heart rate zone models from a max heart rate."""

    def __init__(self, athlete_age: Optional[int] = None, min_plausible_max_hr: Optional[float] = None):
        """Initialize the generator.

        Args:
            athlete_age: Age used for the 220 - age fallback (config default when None)
            min_plausible_max_hr: Max HR values below this are replaced by the fallback
        """
        self.athlete_age = athlete_age
        self.min_plausible_max_hr = min_plausible_max_hr or config.MIN_PLAUSIBLE_MAX_HR

    @property
    def fallback_max_hr(self) -> int:
        """Age-predicted max HR used when no plausible value is available."""
        return config.get_default_max_hr(self.athlete_age)

    def resolve_max_hr(self, max_hr: Optional[float]) -> Tuple[int, bool]:
        """Return the max HR to build zones from and whether the fallback was used."""
        if not max_hr or max_hr < self.min_plausible_max_hr:
            return self.fallback_max_hr, True
        return round_half_up(max_hr), False

    def create_zone_models(self, max_hr: Optional[float]) -> List[ZoneModel]:
        """Create the 5-zone, 3-zone and Coggan models, in that order."""
        resolved, used_fallback = self.resolve_max_hr(max_hr)
        if used_fallback:
            logger.warning(
                f"Max HR {max_hr} missing or below {self.min_plausible_max_hr:.0f}, "
                f"using age-based estimate of {resolved} bpm"
            )

        return [
            self.create_five_zone_model(resolved),
            self.create_three_zone_model(resolved),
            self.create_coggan_model(resolved),
        ]

    def create_five_zone_model(self, max_hr: int) -> ZoneModel:
        """Classic 5-zone model: 10-point bands from 50 to 100% of max HR."""
        return ZoneModel(
            name=FIVE_ZONE_MODEL,
            description="Classic 5-zone heart rate training model",
            zones=self._build_zones(FIVE_ZONE_BANDS, max_hr),
        )

    def create_three_zone_model(self, max_hr: int) -> ZoneModel:
        """Simplified easy / moderate / hard model."""
        return ZoneModel(
            name=THREE_ZONE_MODEL,
            description="Simplified 3-zone model for beginners",
            zones=self._build_zones(THREE_ZONE_BANDS, max_hr),
        )

    def create_coggan_model(self, max_hr: int) -> ZoneModel:
        """Coggan power-style zones adapted for heart rate.

        Zones 4 and 5 extend beyond 100% of max HR; zone 4's absolute upper
        bound is clamped to max HR.
        """
        zones = self._build_zones(COGGAN_BANDS, max_hr)
        threshold = zones[3]
        threshold.max_hr = min(threshold.max_hr, max_hr)

        return ZoneModel(
            name=COGGAN_MODEL,
            description="Coggan-style zones adapted for heart rate",
            zones=zones,
        )

    def create_power_zones(self, ftp: float) -> List[PowerZone]:
        """7-zone Coggan power model keyed to functional threshold power."""
        zones = []
        for number, (name, min_pct, max_pct, label) in enumerate(POWER_BANDS, start=1):
            zones.append(PowerZone(
                number=number,
                name=name,
                min_percent=min_pct,
                max_percent=max_pct,
                min_watts=round_half_up(ftp * min_pct / 100),
                max_watts=round_half_up(ftp * max_pct / 100),
                label=label,
            ))
        return zones

    @staticmethod
    def _build_zones(bands, max_hr: int) -> List[TrainingZone]:
        zones = []
        for number, (name, description, min_pct, max_pct, color) in enumerate(bands, start=1):
            zones.append(TrainingZone(
                number=number,
                name=name,
                description=description,
                min_percent=min_pct,
                max_percent=max_pct,
                min_hr=round_half_up(max_hr * min_pct / 100),
                max_hr=round_half_up(max_hr * max_pct / 100),
                color=color,
            ))

        return zones
