"""SQLAlchemy implementations of the engine's storage interfaces."""

import json
import logging
from dataclasses import fields
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..analysis.statistics import ActivityRecord
from ..profile.models import ThresholdCalculation, TrainingPreferences, TrainingProfile
from ..storage import ActivityQuery, ProfileStore
from .models import (
    Activity,
    ThresholdCalculationHistory,
    UserTrainingPreferences,
    UserTrainingProfile,
)

logger = logging.getLogger(__name__)


def _to_domain(row, cls, **overrides):
    values = {f.name: getattr(row, f.name) for f in fields(cls) if f.name not in overrides}
    values.update(overrides)
    return cls(**values)


def _copy_onto(row, obj, skip=("created_at", "updated_at", "version", "id")):
    for f in fields(obj):
        if f.name in skip:
            continue
        setattr(row, f.name, getattr(obj, f.name))


class SqlAlchemyActivityQuery(ActivityQuery):
    """Activity reads on a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def activities_for(self, user_id: str, start: Optional[datetime] = None,
                       end: Optional[datetime] = None) -> List[ActivityRecord]:
        query = self.session.query(Activity).filter(Activity.user_id == user_id)
        if start is not None:
            query = query.filter(Activity.start_date >= start)
        if end is not None:
            query = query.filter(Activity.start_date <= end)

        return [
            ActivityRecord(
                sport_type=activity.sport_type or activity.type,
                start_date=activity.start_date,
                average_heartrate=activity.average_heartrate,
                max_heartrate=activity.max_heartrate,
                has_heartrate=bool(activity.has_heartrate),
                average_watts=activity.average_watts,
                weighted_average_watts=activity.weighted_average_watts,
                moving_time=activity.moving_time,
                name=activity.name,
                distance=activity.distance,
            )
            for activity in query.order_by(Activity.start_date.desc()).all()
        ]


class SqlAlchemyProfileStore(ProfileStore):
    """Profile and history persistence on a SQLAlchemy session.

    Nothing is committed here; the session owner decides the unit of work.
    """

    def __init__(self, session: Session):
        self.session = session

    def _profile_row(self, user_id: str, for_update: bool = False) -> Optional[UserTrainingProfile]:
        query = self.session.query(UserTrainingProfile).filter_by(user_id=user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def load_profile(self, user_id: str, for_update: bool = False) -> Optional[TrainingProfile]:
        row = self._profile_row(user_id, for_update=for_update)
        return _to_domain(row, TrainingProfile) if row else None

    def save_profile(self, profile: TrainingProfile) -> TrainingProfile:
        row = self._profile_row(profile.user_id)
        if row is None:
            row = UserTrainingProfile(user_id=profile.user_id)
            self.session.add(row)
        elif profile.version is not None and row.version != profile.version:
            raise StaleDataError(
                f"Training profile for {profile.user_id} changed since it was read "
                f"(version {profile.version}, now {row.version})"
            )

        _copy_onto(row, profile)
        self.session.flush()
        return _to_domain(row, TrainingProfile)

    def load_preferences(self, user_id: str) -> Optional[TrainingPreferences]:
        row = self.session.query(UserTrainingPreferences).filter_by(user_id=user_id).first()
        if row is None:
            return None
        days = json.loads(row.preferred_training_days) if row.preferred_training_days else []
        return _to_domain(row, TrainingPreferences, preferred_training_days=days)

    def save_preferences(self, preferences: TrainingPreferences) -> TrainingPreferences:
        row = self.session.query(UserTrainingPreferences).filter_by(user_id=preferences.user_id).first()
        if row is None:
            row = UserTrainingPreferences(user_id=preferences.user_id)
            self.session.add(row)

        _copy_onto(row, preferences)
        row.preferred_training_days = json.dumps(preferences.preferred_training_days or [])
        self.session.flush()
        return self.load_preferences(preferences.user_id)

    def append_history(self, entry: ThresholdCalculation) -> ThresholdCalculation:
        row = ThresholdCalculationHistory()
        _copy_onto(row, entry, skip=("id",))
        if row.calculation_date is None:
            row.calculation_date = datetime.utcnow()
        self.session.add(row)
        self.session.flush()
        logger.debug(f"Appended threshold history entry {row.id} for {entry.user_id}")
        return _to_domain(row, ThresholdCalculation)

    def recent_history(self, user_id: str, limit: int = 5) -> List[ThresholdCalculation]:
        rows = (
            self.session.query(ThresholdCalculationHistory)
            .filter_by(user_id=user_id)
            .order_by(ThresholdCalculationHistory.calculation_date.desc(),
                      ThresholdCalculationHistory.id.desc())
            .limit(limit)
            .all()
        )
        return [_to_domain(row, ThresholdCalculation) for row in rows]
