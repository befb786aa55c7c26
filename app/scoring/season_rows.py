# app/scoring/season_rows.py
"""
State transitions for a user's SeasonUserRating row.

Each function returns the row that should be stored, or None when the row
should be deleted. All of them end in normalize_season_user_rating so a row
holding no manual score, no adjustment and no review is never written.
"""
from typing import Optional

from app.schemas.rating_schemas import SeasonUserRatingRow
from app.schemas.score_schemas import AdjustDirection, SeasonScore
from app.scoring.adjustment import plan_adjustment
from app.scoring.seasons import ADJUSTMENT_LIMIT
from app.scoring.validators import (
    EPSILON,
    clamp,
    clean_review,
    is_finite,
    round_to,
    validate_quarter_score,
)


def normalize_season_user_rating(row) -> Optional[SeasonUserRatingRow]:
    if row is None:
        return None

    current = SeasonUserRatingRow.model_validate(row)
    manual = float(current.manual_score) if is_finite(current.manual_score) else None
    adjustment = 0.0
    if is_finite(current.adjustment):
        adjustment = round_to(clamp(current.adjustment, -ADJUSTMENT_LIMIT, ADJUSTMENT_LIMIT), 2) + 0.0
    review = clean_review(current.review)

    if manual is None and abs(adjustment) < EPSILON and review is None:
        return None

    return current.model_copy(update={
        "manual_score": manual,
        "adjustment": 0.0 if abs(adjustment) < EPSILON else adjustment,
        "review": review,
    })


def _start_from(existing, season_id: int, user_id: int) -> SeasonUserRatingRow:
    if existing is not None:
        return SeasonUserRatingRow.model_validate(existing)
    return SeasonUserRatingRow(season_id=season_id, user_id=user_id)


def save_manual_score(existing, season_id: int, user_id: int, raw_score) -> Optional[SeasonUserRatingRow]:
    score = validate_quarter_score(raw_score, "Season score")
    row = _start_from(existing, season_id, user_id)
    # a manual score replaces the adjuster
    return normalize_season_user_rating(row.model_copy(update={"manual_score": score, "adjustment": 0.0}))


def clear_manual_score(existing, season_id: int, user_id: int) -> Optional[SeasonUserRatingRow]:
    if existing is None:
        return None
    row = _start_from(existing, season_id, user_id)
    return normalize_season_user_rating(row.model_copy(update={"manual_score": None}))


def save_season_review(existing, season_id: int, user_id: int, raw_score,
                       review: Optional[str]) -> Optional[SeasonUserRatingRow]:
    """Season page form: optional manual score plus optional review."""
    manual = None
    if raw_score is not None and str(raw_score).strip():
        manual = validate_quarter_score(raw_score, "Season score")

    row = _start_from(existing, season_id, user_id)
    adjustment = row.adjustment if manual is None else 0.0
    return normalize_season_user_rating(row.model_copy(update={
        "manual_score": manual,
        "adjustment": adjustment,
        "review": clean_review(review),
    }))


def clear_season_review(existing, season_id: int, user_id: int) -> Optional[SeasonUserRatingRow]:
    if existing is None:
        return None
    row = _start_from(existing, season_id, user_id)
    return normalize_season_user_rating(row.model_copy(update={"manual_score": None, "review": None}))


def apply_adjustment(existing, season_id: int, user_id: int, score: SeasonScore,
                     direction: AdjustDirection, require_complete: bool = False) -> Optional[SeasonUserRatingRow]:
    adjustment = plan_adjustment(score, direction, require_complete)
    row = _start_from(existing, season_id, user_id)
    return normalize_season_user_rating(row.model_copy(update={"adjustment": adjustment}))


def reset_adjustment(existing, season_id: int, user_id: int) -> Optional[SeasonUserRatingRow]:
    # allowed whatever the manual score or review state
    if existing is None:
        return None
    row = _start_from(existing, season_id, user_id)
    return normalize_season_user_rating(row.model_copy(update={"adjustment": 0.0}))
