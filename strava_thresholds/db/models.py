"""Database models for activities, training profiles and threshold history."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Activity(Base):
    """Strava activity model."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    strava_id = Column(String(50), unique=True, nullable=False)
    user_id = Column(String(50), default="default", index=True)
    name = Column(String(255))
    type = Column(String(50))  # Run, Ride, Swim, etc.
    sport_type = Column(String(50))  # TrailRun, GravelRide, etc.
    start_date = Column(DateTime, nullable=False)
    distance = Column(Float)  # meters
    moving_time = Column(Integer)  # seconds
    average_heartrate = Column(Float)  # bpm
    max_heartrate = Column(Float)  # bpm
    has_heartrate = Column(Boolean, default=False)
    average_watts = Column(Float)  # watts
    weighted_average_watts = Column(Float)  # watts
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Activity(strava_id={self.strava_id}, name={self.name}, date={self.start_date})>"


class UserTrainingProfile(Base):
    """One mutable training profile per athlete."""

    __tablename__ = "user_training_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), unique=True, nullable=False)

    # Basic athlete info
    age = Column(Integer)
    weight = Column(Float)  # kg
    height = Column(Float)  # cm
    sex = Column(String(1))  # M / F
    experience_level = Column(String(20), default="intermediate")
    primary_sport = Column(String(50), default="Run")

    # Thresholds
    max_heart_rate = Column(Integer)
    resting_heart_rate = Column(Integer)
    lactate_threshold_hr = Column(Integer)
    functional_threshold_power = Column(Integer)  # watts

    # Load targets
    weekly_tss_target = Column(Integer, default=400)
    weekly_training_hours_target = Column(Float)

    # Provenance: estimated or user_set
    max_hr_source = Column(String(20), default="estimated")
    resting_hr_source = Column(String(20), default="estimated")
    ftp_source = Column(String(20), default="estimated")
    tss_target_source = Column(String(20), default="estimated")

    preferred_units = Column(String(20), default="metric")
    training_philosophy = Column(String(20), default="balanced")

    # Calculation metadata
    last_threshold_calculation = Column(DateTime)
    calculation_data_points = Column(Integer)
    threshold_confidence = Column(Float)  # 0.0-1.0

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Optimistic concurrency: a stale read-modify-write fails instead of losing an update
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<UserTrainingProfile(user_id={self.user_id}, max_hr={self.max_heart_rate}, ftp={self.functional_threshold_power})>"


class UserTrainingPreferences(Base):
    """Training structure preferences."""

    __tablename__ = "user_training_preferences"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), unique=True, nullable=False)

    primary_goal = Column(String(50), default="general_fitness")
    goal_target_date = Column(Date)
    goal_description = Column(Text)

    preferred_training_days = Column(Text)  # JSON list, Mon=1
    max_weekly_training_time = Column(Integer)  # minutes
    preferred_workout_duration = Column(Integer, default=60)  # minutes

    easy_percentage = Column(Integer, default=80)
    moderate_percentage = Column(Integer, default=15)
    hard_percentage = Column(Integer, default=5)

    mandatory_rest_days = Column(Integer, default=1)
    recovery_priority = Column(String(20), default="moderate")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<UserTrainingPreferences(user_id={self.user_id}, goal={self.primary_goal})>"


class ThresholdCalculationHistory(Base):
    """Append-only audit log of threshold estimations."""

    __tablename__ = "threshold_calculation_history"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    calculation_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    activities_analyzed = Column(Integer, nullable=False)
    date_range_start = Column(Date, nullable=False)
    date_range_end = Column(Date, nullable=False)

    # Calculated values
    estimated_max_hr = Column(Integer)
    estimated_resting_hr = Column(Integer)
    estimated_ftp = Column(Integer)
    estimated_lthr = Column(Integer)

    # Confidence (0.0-1.0)
    confidence_score = Column(Float)  # overall
    max_hr_confidence = Column(Float)
    resting_hr_confidence = Column(Float)
    lthr_confidence = Column(Float)
    ftp_confidence = Column(Float)

    calculation_method = Column(String(50), nullable=False, default="percentile_analysis")
    algorithm_version = Column(String(20), nullable=False, default="1.0")
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<ThresholdCalculationHistory(user_id={self.user_id}, date={self.calculation_date}, confidence={self.confidence_score})>"
