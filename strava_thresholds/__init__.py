"""Heart rate zone and threshold inference from Strava activities."""

__version__ = "0.1.0"
