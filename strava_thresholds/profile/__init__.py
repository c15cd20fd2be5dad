"""Training profile domain objects."""

from .models import (
    CompleteTrainingProfile,
    ThresholdCalculation,
    TrainingPreferences,
    TrainingProfile,
)

__all__ = [
    "CompleteTrainingProfile",
    "ThresholdCalculation",
    "TrainingPreferences",
    "TrainingProfile",
]
