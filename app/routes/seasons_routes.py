from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import ADJUSTER_REQUIRES_ALL_EPISODES, RATING_WRITE_RATE, REQUIRE_COMPLETE_SEASONS
from app.limiter import limiter
from app.schemas.rating_schemas import ScoreIn, SeasonReviewIn, SeasonRow
from app.schemas.score_schemas import AdjustDirection, AdjustIn, SeasonMetrics, SeasonWriteOut
from app.scoring.season_rows import (
    apply_adjustment,
    clear_manual_score,
    clear_season_review,
    reset_adjustment,
    save_manual_score,
    save_season_review,
)
from app.scoring.seasons import compute_season_metrics, resolve_season_effective_score
from app.scoring.validators import ensure_released
from app.store import RatingStore, get_store, load_season_tree
from app.utils.token_utils import get_current_user_id, get_optional_user_id

router = APIRouter(prefix="/seasons", tags=["Seasons"])


async def _season_or_404(store: RatingStore, season_id: int) -> SeasonRow:
    season = await store.get_season(season_id)
    if not season:
        raise HTTPException(status_code=404, detail="Season not found")
    return season


async def _resolve(store: RatingStore, season: SeasonRow, user_id: int):
    tree = await load_season_tree(store, season)
    return resolve_season_effective_score(
        season, user_id, tree.episodes, tree.episode_ratings, tree.season_user_ratings
    )


async def _write(store: RatingStore, season: SeasonRow, user_id: int, row) -> SeasonWriteOut:
    await store.write_season_user_rating(season.id, user_id, row)
    score = await _resolve(store, season, user_id)
    if row is None:
        return SeasonWriteOut(deleted=True, score=score)
    return SeasonWriteOut(
        deleted=False,
        manual_score=row.manual_score,
        adjustment=row.adjustment,
        review=row.review,
        score=score,
    )


@router.get("/{season_id}/score", response_model=SeasonMetrics)
async def get_season_score(
    season_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    tree = await load_season_tree(store, season)
    return compute_season_metrics(
        season,
        tree.episodes,
        tree.episode_ratings,
        tree.season_user_ratings,
        current_user_id=user_id,
        require_complete=REQUIRE_COMPLETE_SEASONS,
    )


@router.put("/{season_id}/manual-score", response_model=SeasonWriteOut)
@limiter.limit(RATING_WRITE_RATE)
async def set_manual_score(
    request: Request,
    season_id: int,
    payload: ScoreIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    ensure_released(season.start_date, "this season")
    existing = await store.get_season_user_rating(season_id, user_id)
    row = save_manual_score(existing, season_id, user_id, payload.score)
    return await _write(store, season, user_id, row)


@router.delete("/{season_id}/manual-score", response_model=SeasonWriteOut)
@limiter.limit(RATING_WRITE_RATE)
async def remove_manual_score(
    request: Request,
    season_id: int,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    existing = await store.get_season_user_rating(season_id, user_id)
    return await _write(store, season, user_id, clear_manual_score(existing, season_id, user_id))


@router.post("/{season_id}/adjust", response_model=SeasonWriteOut)
@limiter.limit(RATING_WRITE_RATE)
async def adjust_season(
    request: Request,
    season_id: int,
    payload: AdjustIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    existing = await store.get_season_user_rating(season_id, user_id)

    if payload.direction == AdjustDirection.RESET:
        row = reset_adjustment(existing, season_id, user_id)
    else:
        ensure_released(season.start_date, "this season")
        current = await _resolve(store, season, user_id)
        row = apply_adjustment(
            existing, season_id, user_id, current, payload.direction,
            require_complete=ADJUSTER_REQUIRES_ALL_EPISODES,
        )

    print(f"🎚️ Season {season_id} adjust {payload.direction.value} by user {user_id}: "
          f"{row.adjustment if row else 0.0}")
    return await _write(store, season, user_id, row)


@router.put("/{season_id}/review", response_model=SeasonWriteOut)
@limiter.limit(RATING_WRITE_RATE)
async def set_season_review(
    request: Request,
    season_id: int,
    payload: SeasonReviewIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    ensure_released(season.start_date, "this season")
    existing = await store.get_season_user_rating(season_id, user_id)
    row = save_season_review(existing, season_id, user_id, payload.score, payload.review)
    return await _write(store, season, user_id, row)


@router.delete("/{season_id}/review", response_model=SeasonWriteOut)
@limiter.limit(RATING_WRITE_RATE)
async def remove_season_review(
    request: Request,
    season_id: int,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    season = await _season_or_404(store, season_id)
    existing = await store.get_season_user_rating(season_id, user_id)
    return await _write(store, season, user_id, clear_season_review(existing, season_id, user_id))
