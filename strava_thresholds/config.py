"""Configuration management for the Strava threshold inference tool."""

import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./strava_thresholds.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Max HR fallback (220 - age) when no plausible max HR has been observed
    DEFAULT_ATHLETE_AGE: int = int(os.getenv("DEFAULT_ATHLETE_AGE", "30"))
    MIN_PLAUSIBLE_MAX_HR: float = float(os.getenv("MIN_PLAUSIBLE_MAX_HR", "120"))  # bpm
    LOW_MAX_HR_WARNING: float = float(os.getenv("LOW_MAX_HR_WARNING", "160"))  # bpm

    # Zone analysis
    MIN_SPORT_ACTIVITIES: int = int(os.getenv("MIN_SPORT_ACTIVITIES", "3"))
    PREFERRED_ZONE_MODEL: str = os.getenv("PREFERRED_ZONE_MODEL", "5-Zone Model")

    # Confidence ramps (activity counts needed for full confidence)
    HR_CONFIDENCE_TARGET: int = int(os.getenv("HR_CONFIDENCE_TARGET", "20"))
    POWER_CONFIDENCE_TARGET: int = int(os.getenv("POWER_CONFIDENCE_TARGET", "10"))
    OVERALL_CONFIDENCE_TARGET: int = int(os.getenv("OVERALL_CONFIDENCE_TARGET", "30"))

    # Minimum confidence before an estimate may overwrite a profile field
    MIN_CONFIDENCE_MAX_HR: float = float(os.getenv("MIN_CONFIDENCE_MAX_HR", "0.7"))
    MIN_CONFIDENCE_RESTING_HR: float = float(os.getenv("MIN_CONFIDENCE_RESTING_HR", "0.6"))
    MIN_CONFIDENCE_FTP: float = float(os.getenv("MIN_CONFIDENCE_FTP", "0.7"))

    # FTP estimation only considers efforts longer than this
    FTP_MIN_EFFORT_SECONDS: int = int(os.getenv("FTP_MIN_EFFORT_SECONDS", "1200"))

    # Calculation history
    RECALCULATION_INTERVAL_DAYS: int = int(os.getenv("RECALCULATION_INTERVAL_DAYS", "30"))
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "5"))
    DEFAULT_DATE_RANGE_DAYS: int = 30

    # Weekly Training Stress Score target
    BASE_WEEKLY_TSS: float = float(os.getenv("BASE_WEEKLY_TSS", "400"))
    MIN_WEEKLY_TSS: float = float(os.getenv("MIN_WEEKLY_TSS", "200"))
    MAX_WEEKLY_TSS: float = float(os.getenv("MAX_WEEKLY_TSS", "1000"))

    EXPERIENCE_MULTIPLIERS = {
        "beginner": 0.7,  # 280 TSS
        "intermediate": 1.0,  # 400 TSS
        "advanced": 1.3,  # 520 TSS
        "elite": 1.6,  # 640 TSS
    }

    PHILOSOPHY_MULTIPLIERS = {
        "volume": 1.2,
        "intensity": 0.9,
        "balanced": 1.0,
        "polarized": 1.1,
    }

    @classmethod
    def get_default_max_hr(cls, age: Optional[int] = None) -> int:
        """Age-predicted max HR (220 - age), using the default age when unknown."""
        return 220 - (age or cls.DEFAULT_ATHLETE_AGE)

    @classmethod
    def get_experience_multiplier(cls, experience_level: Optional[str]) -> float:
        """Get TSS multiplier for an experience level."""
        return cls.EXPERIENCE_MULTIPLIERS.get(experience_level, 1.0)

    @classmethod
    def get_philosophy_multiplier(cls, philosophy: Optional[str]) -> float:
        """Get TSS multiplier for a training philosophy."""
        return cls.PHILOSOPHY_MULTIPLIERS.get(philosophy, 1.0)


config = Config()
