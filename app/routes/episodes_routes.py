from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import RATING_WRITE_RATE
from app.limiter import limiter
from app.schemas.rating_schemas import RatingIn
from app.schemas.score_schemas import SeasonScore
from app.scoring.errors import DataInconsistencyError
from app.scoring.seasons import resolve_season_effective_score
from app.scoring.validators import clean_review, ensure_released, validate_quarter_score
from app.store import RatingStore, get_store, load_season_tree
from app.utils.token_utils import get_current_user_id

router = APIRouter(prefix="/episodes", tags=["Episodes"])


async def _episode_and_season(store: RatingStore, episode_id: int):
    episode = await store.get_episode(episode_id)
    if not episode:
        raise HTTPException(status_code=404, detail="Episode not found")
    season = await store.get_season(episode.season_id)
    if not season:
        raise DataInconsistencyError(f"Episode {episode_id} points to a missing season.")
    return episode, season


async def _season_score(store: RatingStore, season, user_id: int) -> SeasonScore:
    # an episode write moves the user's season score, send it back
    tree = await load_season_tree(store, season)
    return resolve_season_effective_score(
        season, user_id, tree.episodes, tree.episode_ratings, tree.season_user_ratings
    )


@router.put("/{episode_id}/rating", response_model=SeasonScore)
@limiter.limit(RATING_WRITE_RATE)
async def rate_episode(
    request: Request,
    episode_id: int,
    payload: RatingIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    episode, season = await _episode_and_season(store, episode_id)
    ensure_released(episode.air_date, "this episode")
    score = validate_quarter_score(payload.score, "Episode score")

    await store.upsert_episode_rating(episode_id, user_id, score, clean_review(payload.review))
    return await _season_score(store, season, user_id)


@router.delete("/{episode_id}/rating", response_model=SeasonScore)
@limiter.limit(RATING_WRITE_RATE)
async def delete_episode_rating(
    request: Request,
    episode_id: int,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    _, season = await _episode_and_season(store, episode_id)
    await store.delete_episode_rating(episode_id, user_id)
    return await _season_score(store, season, user_id)
