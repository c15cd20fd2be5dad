"""Database module for the Strava threshold tool."""

from .database import Database, get_db
from .models import Activity, UserTrainingProfile, UserTrainingPreferences, ThresholdCalculationHistory
from .repositories import SqlAlchemyActivityQuery, SqlAlchemyProfileStore

__all__ = [
    "Database",
    "get_db",
    "Activity",
    "UserTrainingProfile",
    "UserTrainingPreferences",
    "ThresholdCalculationHistory",
    "SqlAlchemyActivityQuery",
    "SqlAlchemyProfileStore",
]
