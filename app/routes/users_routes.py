from typing import List

from fastapi import APIRouter, Depends

from app.config import RANKING_PRECISION
from app.schemas.score_schemas import RankedRow
from app.scoring.leaderboard import build_personal_film_ranking
from app.store import RatingStore, get_store

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{user_id}/films/ranking", response_model=List[RankedRow])
async def get_personal_film_ranking(
    user_id: int,
    store: RatingStore = Depends(get_store),
):
    films = await store.list_films()
    film_ratings = await store.list_film_ratings([film.id for film in films])
    rows = build_personal_film_ranking(films, film_ratings, user_id, precision=RANKING_PRECISION)
    print(f"👤 User {user_id}: {sum(row.rank != '-' for row in rows)} ranked films out of {len(rows)}")
    return rows
