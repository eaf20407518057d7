"""
Error kinds raised by the Four Pillars engine.

Every failure is surfaced as one of these typed exceptions. Nothing in the
engine retries or falls back to a default chart.
"""


class SuimeiError(Exception):
    """Base class for all engine failures."""


class InvalidDate(SuimeiError, ValueError):
    """Year/month/day do not form a valid Gregorian date."""


class InvalidHour(SuimeiError, ValueError):
    """Hour outside 0-23 (or minute outside 0-59)."""


class InvalidPillar(SuimeiError, ValueError):
    """Stem/branch pair whose polarities differ (not one of the 60 legal pillars)."""


class CalendarResolutionError(SuimeiError):
    """The calendar service could not map the instant to a month branch."""


class NoTransitionFound(SuimeiError, LookupError):
    """No Jie solar-term transition found in the searched window."""


class InternalInvariantViolation(SuimeiError, RuntimeError):
    """A lookup fell through every case that should have matched."""
