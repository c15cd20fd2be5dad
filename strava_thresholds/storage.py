"""Storage interfaces the threshold engine reads from and writes to.

The engine depends only on these; `db.repositories` provides the SQLAlchemy
implementations. Transactions are owned by the caller: every write made
through one store instance belongs to the caller's unit of work.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from .profile.models import ThresholdCalculation, TrainingPreferences, TrainingProfile

if TYPE_CHECKING:
    # analysis imports these interfaces
    from .analysis.statistics import ActivityRecord


class ActivityQuery(ABC):
    """Read access to an athlete's synced activities."""

    @abstractmethod
    def activities_for(self, user_id: str, start: Optional[datetime] = None,
                       end: Optional[datetime] = None) -> List["ActivityRecord"]:
        """All activities of the athlete, optionally limited to a date range."""


class ProfileStore(ABC):
    """Persistence for training profiles and threshold calculation history."""

    @abstractmethod
    def load_profile(self, user_id: str, for_update: bool = False) -> Optional[TrainingProfile]:
        """Load the athlete's profile.

        With `for_update`, the profile row stays locked against concurrent
        read-modify-write until the surrounding transaction ends.
        """

    @abstractmethod
    def save_profile(self, profile: TrainingProfile) -> TrainingProfile:
        """Insert or update a profile and return the stored state."""

    @abstractmethod
    def load_preferences(self, user_id: str) -> Optional[TrainingPreferences]:
        """Load the athlete's training preferences."""

    @abstractmethod
    def save_preferences(self, preferences: TrainingPreferences) -> TrainingPreferences:
        """Insert or update training preferences."""

    @abstractmethod
    def append_history(self, entry: ThresholdCalculation) -> ThresholdCalculation:
        """Append a calculation history entry. Entries are never updated."""

    @abstractmethod
    def recent_history(self, user_id: str, limit: int = 5) -> List[ThresholdCalculation]:
        """Most recent history entries first."""
