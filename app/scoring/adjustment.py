# app/scoring/adjustment.py
import math
from typing import List

from app.schemas.score_schemas import AdjustDirection, SeasonScore
from app.scoring.errors import ValidationError
from app.scoring.seasons import ADJUSTMENT_LIMIT
from app.scoring.validators import EPSILON, MAX_SCORE, MIN_SCORE, clamp, round_to


def adjustment_base(episode_average: float) -> float:
    return round_to(episode_average, 2)


def build_adjustment_targets(base: float) -> List[float]:
    """
    Effective scores reachable with the adjuster: the base itself plus every
    quarter inside [base - 2, base + 2] (clamped to 0..10), ascending.
    """
    lowest = clamp(base - ADJUSTMENT_LIMIT, MIN_SCORE, MAX_SCORE)
    highest = clamp(base + ADJUSTMENT_LIMIT, MIN_SCORE, MAX_SCORE)
    targets = {round(clamp(base, MIN_SCORE, MAX_SCORE), 6)}

    first_quarter = math.ceil((lowest - 1e-9) * 4)
    last_quarter = math.floor((highest + 1e-9) * 4)
    for quarter in range(first_quarter, last_quarter + 1):
        targets.add(round(quarter / 4, 6))

    return sorted(targets)


def step_adjustment(base: float, current_adjustment: float, direction: int) -> float:
    """
    Move the effective score (base + adjustment) to the next target up
    (direction=+1) or down (direction=-1) and return the new adjustment.
    Saturates at the window edges instead of failing.
    """
    if direction not in (1, -1):
        raise ValidationError("Adjustment direction must be +1 or -1.")

    current_adjustment = clamp(current_adjustment or 0.0, -ADJUSTMENT_LIMIT, ADJUSTMENT_LIMIT)
    current_effective = clamp(base + current_adjustment, MIN_SCORE, MAX_SCORE)
    targets = build_adjustment_targets(base)

    next_effective = current_effective
    if direction > 0:
        next_effective = next(
            (value for value in targets if value > current_effective + EPSILON),
            current_effective,
        )
    else:
        for value in reversed(targets):
            if value < current_effective - EPSILON:
                next_effective = value
                break

    next_effective = clamp(next_effective, MIN_SCORE, MAX_SCORE)
    adjustment = round_to(clamp(next_effective - base, -ADJUSTMENT_LIMIT, ADJUSTMENT_LIMIT), 2)
    return adjustment + 0.0  # no -0.0


def plan_adjustment(score: SeasonScore, direction: AdjustDirection, require_complete: bool = False) -> float:
    """New adjustment for a user's season, after checking the adjuster may be used."""
    if direction == AdjustDirection.RESET:
        return 0.0

    if score.manual_score is not None:
        raise ValidationError("The adjuster is disabled while a manual season score is set.")
    if score.episode_average is None:
        raise ValidationError("Rate at least one episode of this season to use the adjuster.")
    if require_complete and not score.is_complete:
        raise ValidationError("Rate every episode of this season to use the adjuster.")

    step = 1 if direction == AdjustDirection.UP else -1
    return step_adjustment(adjustment_base(score.episode_average), score.adjustment, step)
