# app/scoring/errors.py


class ScoringError(Exception):
    """Base class for every error raised around the scoring engine."""


class ValidationError(ScoringError, ValueError):
    """
    Bad user input: score out of range, not on a 0.25 step, empty review,
    adjuster used without an episode average, unit not released yet...
    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DataInconsistencyError(ScoringError):
    """
    A rating points at an episode/season that is not part of the hierarchy
    that was loaded. The engine filters such rows on its own; callers raise
    this when the unit they were asked to act on is missing.
    """
