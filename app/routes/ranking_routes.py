from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.config import KNOWN_FRANCHISES, PHASE_FRANCHISES, RANKING_PRECISION, REQUIRE_COMPLETE_SEASONS
from app.schemas.score_schemas import LeaderboardFilters, RankedRow, RowKind
from app.scoring.leaderboard import assemble_leaderboard, build_film_rows
from app.scoring.seasons import build_season_ranking
from app.scoring.series import build_phase_ranking, build_series_ranking
from app.store import RatingStore, get_store, load_series_tree
from app.utils.token_utils import get_optional_user_id

router = APIRouter(tags=["Ranking"])

SERIES_KINDS = {RowKind.SERIES, RowKind.SEASON, RowKind.PHASE}


@router.get("/ranking", response_model=List[RankedRow])
async def get_ranking(
    kinds: Optional[List[RowKind]] = Query(None),
    franchise: Optional[str] = Query(None),
    phase: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    user_id: Optional[int] = Depends(get_optional_user_id),
    store: RatingStore = Depends(get_store),
):
    filters = LeaderboardFilters(franchise=franchise, phase=phase, search=search)
    if kinds:
        filters = filters.model_copy(update={"kinds": set(kinds)})

    rows: List[RankedRow] = []

    if RowKind.FILM in filters.kinds:
        films = await store.list_films()
        film_ratings = await store.list_film_ratings([film.id for film in films])
        rows.extend(build_film_rows(films, film_ratings, current_user_id=user_id))

    if filters.kinds & SERIES_KINDS:
        series_list = await store.list_series()
        tree = await load_series_tree(store, [series.id for series in series_list])
        args = (tree.episodes, tree.episode_ratings, tree.season_user_ratings)

        if RowKind.SERIES in filters.kinds:
            rows.extend(build_series_ranking(
                series_list, tree.seasons, *args,
                current_user_id=user_id, require_complete=REQUIRE_COMPLETE_SEASONS,
            ))
        if RowKind.SEASON in filters.kinds:
            rows.extend(build_season_ranking(
                tree.seasons, *args,
                series_by_id={series.id: series for series in series_list},
                current_user_id=user_id, require_complete=REQUIRE_COMPLETE_SEASONS,
            ))
        if RowKind.PHASE in filters.kinds:
            rows.extend(build_phase_ranking(
                series_list, tree.seasons, *args,
                current_user_id=user_id, require_complete=REQUIRE_COMPLETE_SEASONS,
            ))

    print(f"🔍 Leaderboard candidates: {len(rows)}")
    ranked = assemble_leaderboard(
        rows,
        filters,
        precision=RANKING_PRECISION,
        phase_franchises=PHASE_FRANCHISES,
        known_franchises=KNOWN_FRANCHISES,
    )
    print(f"🏆 Ranked rows: {len(ranked)}")

    start = (page - 1) * page_size
    end = start + page_size
    print(f"📦 Returning {len(ranked[start:end])} items for page {page} (range {start}:{end})")
    return ranked[start:end]
