from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.config import RANKING_PRECISION, RATING_WRITE_RATE, REQUIRE_COMPLETE_SEASONS
from app.limiter import limiter
from app.schemas.rating_schemas import ReviewIn, SeriesRow
from app.schemas.score_schemas import ActivityEntry, SeriesAverages, SeriesRankings, SeriesReviewOut
from app.scoring.activity import build_season_activity
from app.scoring.episodes import build_episode_ranking
from app.scoring.ranking import rank_rows
from app.scoring.seasons import build_season_ranking
from app.scoring.series import compute_series_averages, compute_user_series_averages
from app.scoring.validators import ensure_released, is_finite, require_review
from app.store import RatingStore, get_store, load_series_tree
from app.utils.token_utils import get_current_user_id, get_optional_user_id

router = APIRouter(prefix="/series", tags=["Series"])

MIN_RANKED_SEASONS = 2


async def _series_or_404(store: RatingStore, series_id: int) -> SeriesRow:
    series = await store.get_series(series_id)
    if not series:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@router.get("/{series_id}/score", response_model=SeriesAverages)
async def get_series_score(
    series_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    store: RatingStore = Depends(get_store),
):
    series = await _series_or_404(store, series_id)
    tree = await load_series_tree(store, [series_id])
    return compute_series_averages(
        series,
        tree.seasons,
        tree.episodes,
        tree.episode_ratings,
        tree.season_user_ratings,
        current_user_id=user_id,
        require_complete=REQUIRE_COMPLETE_SEASONS,
    )


@router.get("/{series_id}/rankings", response_model=SeriesRankings)
async def get_series_rankings(
    series_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    store: RatingStore = Depends(get_store),
):
    await _series_or_404(store, series_id)
    tree = await load_series_tree(store, [series_id])

    seasons = build_season_ranking(
        tree.seasons, tree.episodes, tree.episode_ratings, tree.season_user_ratings,
        current_user_id=user_id, require_complete=REQUIRE_COMPLETE_SEASONS,
    )
    # a season ranking needs at least two rated seasons to compare
    if sum(is_finite(row.average) for row in seasons) < MIN_RANKED_SEASONS:
        seasons = []
    episodes = build_episode_ranking(tree.seasons, tree.episodes, tree.episode_ratings)
    print(f"🏆 Series {series_id}: {len(seasons)} ranked seasons, {len(episodes)} ranked episodes")

    return SeriesRankings(
        series_id=series_id,
        seasons=rank_rows(seasons, RANKING_PRECISION),
        episodes=rank_rows(episodes, RANKING_PRECISION),
    )


@router.get("/{series_id}/activity", response_model=List[ActivityEntry])
async def get_series_activity(
    series_id: int,
    limit: int = Query(50, ge=1, le=200),
    store: RatingStore = Depends(get_store),
):
    await _series_or_404(store, series_id)
    tree = await load_series_tree(store, [series_id])
    return build_season_activity(
        tree.seasons, tree.episodes, tree.episode_ratings, tree.season_user_ratings, limit=limit
    )


@router.get("/{series_id}/reviews", response_model=List[SeriesReviewOut])
async def list_series_reviews(
    series_id: int,
    store: RatingStore = Depends(get_store),
):
    series = await _series_or_404(store, series_id)
    reviews = await store.list_series_reviews(series_id)
    tree = await load_series_tree(store, [series_id])
    averages = compute_user_series_averages(
        series, tree.seasons, tree.episodes, tree.episode_ratings, tree.season_user_ratings,
        require_complete=REQUIRE_COMPLETE_SEASONS,
    )

    return [
        SeriesReviewOut(
            series_id=review.series_id,
            user_id=review.user_id,
            username=review.username,
            review=review.review,
            created_at=review.created_at,
            user_average=averages.get(review.user_id),
        )
        for review in reviews
    ]


@router.put("/{series_id}/review", response_model=SeriesReviewOut)
@limiter.limit(RATING_WRITE_RATE)
async def set_series_review(
    request: Request,
    series_id: int,
    payload: ReviewIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    series = await _series_or_404(store, series_id)
    ensure_released(series.start_date, "this series")
    review = require_review(payload.review)

    await store.upsert_series_review(series_id, user_id, review)
    tree = await load_series_tree(store, [series_id])
    averages = compute_user_series_averages(
        series, tree.seasons, tree.episodes, tree.episode_ratings, tree.season_user_ratings,
        require_complete=REQUIRE_COMPLETE_SEASONS,
    )
    return SeriesReviewOut(
        series_id=series_id,
        user_id=user_id,
        review=review,
        user_average=averages.get(user_id),
    )


@router.delete("/{series_id}/review", status_code=204)
@limiter.limit(RATING_WRITE_RATE)
async def delete_series_review(
    request: Request,
    series_id: int,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    await _series_or_404(store, series_id)
    if not await store.delete_series_review(series_id, user_id):
        raise HTTPException(status_code=404, detail="Review not found")
