# app/scoring/validators.py
import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from app.scoring.errors import ValidationError

EPSILON = 1e-6
MIN_SCORE = 0.0
MAX_SCORE = 10.0
QUARTER = 0.25


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def is_finite(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def is_quarter_step(value: float) -> bool:
    """True when value sits on a multiple of 0.25 (within EPSILON)."""
    if not is_finite(value):
        return False
    return abs(value * 4 - round(value * 4)) / 4 < EPSILON


def round_to(value: float, digits: int = 2) -> float:
    """Round halves away from zero on the float's exact value (7.125 -> 7.13)."""
    step = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))


def parse_locale_score(raw: Union[str, int, float, None]) -> float:
    """
    Parse "7,5" or "7.5" (or a number) into a float.
    Returns NaN when the input can't be read; callers do the range checks.
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)

    text = str(raw).strip().replace(",", ".", 1)
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def validate_quarter_score(raw, label: str = "Score") -> float:
    """Episode and season scores: 0..10, by steps of 0.25."""
    score = parse_locale_score(raw)
    if not is_finite(score) or score < MIN_SCORE or score > MAX_SCORE or not is_quarter_step(score):
        raise ValidationError(f"{label} must be between 0 and 10, in steps of 0.25.")
    return score


def validate_film_score(raw) -> int:
    # Films are rated with whole numbers only.
    score = parse_locale_score(raw)
    if not is_finite(score) or score < MIN_SCORE or score > MAX_SCORE or not float(score).is_integer():
        raise ValidationError("Film score must be a whole number between 0 and 10.")
    return int(score)


def clean_review(review: Optional[str]) -> Optional[str]:
    text = (review or "").strip()
    return text or None


def require_review(review: Optional[str]) -> str:
    text = clean_review(review)
    if text is None:
        raise ValidationError("Review is empty.")
    return text


def _as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def is_released(release_date, today: Optional[date] = None) -> bool:
    """A unit can be rated once its date is known and not in the future."""
    released_on = _as_date(release_date)
    if released_on is None:
        return False
    return released_on <= (today or date.today())


def ensure_released(release_date, what: str, today: Optional[date] = None) -> None:
    if not is_released(release_date, today):
        raise ValidationError(
            f"Cannot rate {what}: not released yet or release date unknown."
        )
