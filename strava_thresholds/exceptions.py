"""Exceptions raised by the threshold inference engine."""


class ThresholdError(Exception):
    """Base class for threshold engine errors."""


class ProfileValidationError(ThresholdError):
    """A manual profile or preferences edit carried an invalid value."""


class ProfileNotFoundError(ThresholdError):
    """No training profile exists for the athlete."""
