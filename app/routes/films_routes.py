from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import RATING_WRITE_RATE
from app.limiter import limiter
from app.schemas.rating_schemas import RatingIn
from app.schemas.score_schemas import FilmAverage
from app.scoring.leaderboard import compute_film_average
from app.scoring.validators import clean_review, ensure_released, validate_film_score
from app.store import RatingStore, get_store
from app.utils.token_utils import get_current_user_id, get_optional_user_id

router = APIRouter(prefix="/films", tags=["Films"])


async def _film_or_404(store: RatingStore, film_id: int):
    film = await store.get_film(film_id)
    if not film:
        raise HTTPException(status_code=404, detail="Film not found")
    return film


async def _film_average(store: RatingStore, film_id: int, user_id: Optional[int]) -> FilmAverage:
    ratings = await store.list_film_ratings([film_id])
    return compute_film_average(film_id, ratings, user_id)


@router.get("/{film_id}/score", response_model=FilmAverage)
async def get_film_score(
    film_id: int,
    user_id: Optional[int] = Depends(get_optional_user_id),
    store: RatingStore = Depends(get_store),
):
    await _film_or_404(store, film_id)
    return await _film_average(store, film_id, user_id)


@router.put("/{film_id}/rating", response_model=FilmAverage)
@limiter.limit(RATING_WRITE_RATE)
async def rate_film(
    request: Request,
    film_id: int,
    payload: RatingIn,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    film = await _film_or_404(store, film_id)
    ensure_released(film.release_date, "this film")
    score = validate_film_score(payload.score)

    await store.upsert_film_rating(film_id, user_id, score, clean_review(payload.review))
    print(f"🎬 Film {film_id} rated {score} by user {user_id}")
    return await _film_average(store, film_id, user_id)


@router.delete("/{film_id}/rating", response_model=FilmAverage)
@limiter.limit(RATING_WRITE_RATE)
async def delete_film_rating(
    request: Request,
    film_id: int,
    user_id: int = Depends(get_current_user_id),
    store: RatingStore = Depends(get_store),
):
    await _film_or_404(store, film_id)
    deleted = await store.delete_film_rating(film_id, user_id)
    if not deleted:
        print(f"⚠️ No rating to delete for film {film_id} / user {user_id}")
    return await _film_average(store, film_id, user_id)
