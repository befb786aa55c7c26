# app/scoring/leaderboard.py
from datetime import date
from typing import Iterable, List, Optional, Sequence

from app.schemas.score_schemas import FilmAverage, LeaderboardFilters, RankedRow, RowKind
from app.scoring.episodes import group_by
from app.scoring.ranking import build_rank_labels, rank_rows
from app.scoring.validators import is_finite, is_released

OTHER_FRANCHISE = "__OTHER__"


def compute_film_average(film_id: int, film_ratings: Iterable, current_user_id=None) -> FilmAverage:
    total = 0
    count = 0
    my_score = None
    for rating in film_ratings or []:
        if rating.film_id != film_id or not is_finite(rating.score):
            continue
        total += rating.score
        count += 1
        if current_user_id is not None and rating.user_id == current_user_id:
            my_score = int(rating.score)

    return FilmAverage(
        film_id=film_id,
        average=total / count if count else None,
        count=count,
        my_score=my_score,
    )


def build_film_rows(films: Iterable, film_ratings: Iterable, current_user_id=None,
                    today: Optional[date] = None) -> List[RankedRow]:
    """Released films only; unrated films stay in with a None average."""
    ratings_by_film = group_by(film_ratings, lambda rating: rating.film_id)
    rows: List[RankedRow] = []
    for film in films or []:
        if not is_released(film.release_date, today):
            continue
        result = compute_film_average(film.id, ratings_by_film.get(film.id, []), current_user_id)
        phase = (film.phase or "").strip()
        rows.append(
            RankedRow(
                kind=RowKind.FILM,
                id=film.id,
                title=film.title,
                average=result.average,
                count=result.count,
                my_score=result.my_score,
                franchise=film.franchise,
                phases=[phase] if phase else [],
                released_on=film.release_date,
            )
        )
    return rows


def _matches_franchise(row: RankedRow, franchise: Optional[str], known_franchises: Sequence[str]) -> bool:
    if not franchise:
        return True
    row_franchise = (row.franchise or "").strip()
    if franchise == OTHER_FRANCHISE:
        return not row_franchise or row_franchise not in known_franchises
    return row_franchise == franchise


def matches_filters(row: RankedRow, filters: LeaderboardFilters,
                    phase_franchises: Sequence[str] = ("MCU",),
                    known_franchises: Sequence[str] = ("MCU", "SSU")) -> bool:
    if row.kind not in filters.kinds:
        return False
    if not _matches_franchise(row, filters.franchise, known_franchises):
        return False

    # phases only mean something inside a franchise that tags them
    if filters.franchise in phase_franchises:
        if not row.phases:
            return False
        if filters.phase and filters.phase not in row.phases:
            return False

    search = (filters.search or "").strip().casefold()
    if search and search not in row.title.casefold():
        return False
    return True


def assemble_leaderboard(rows: Iterable[RankedRow], filters: Optional[LeaderboardFilters] = None,
                         precision: Optional[int] = 2,
                         phase_franchises: Sequence[str] = ("MCU",),
                         known_franchises: Sequence[str] = ("MCU", "SSU")) -> List[RankedRow]:
    filters = filters or LeaderboardFilters()
    kept = [
        row for row in rows
        if matches_filters(row, filters, phase_franchises, known_franchises)
    ]
    return rank_rows(kept, precision)


def build_personal_film_ranking(films: Iterable, film_ratings: Iterable, user_id: int,
                                today: Optional[date] = None,
                                precision: Optional[int] = 2) -> List[RankedRow]:
    """
    One user's own film list: released films they rated, best score first
    (title breaks ties), then the released films they haven't rated yet,
    oldest release first. Unrated films are never ranked.
    """
    scores = {
        rating.film_id: rating.score
        for rating in film_ratings or []
        if rating.user_id == user_id and is_finite(rating.score)
    }

    rated: List[RankedRow] = []
    unrated: List[RankedRow] = []
    for film in films or []:
        if not is_released(film.release_date, today):
            continue
        score = scores.get(film.id)
        phase = (film.phase or "").strip()
        row = RankedRow(
            kind=RowKind.FILM,
            id=film.id,
            title=film.title,
            average=score,
            count=1 if score is not None else 0,
            my_score=score,
            franchise=film.franchise,
            phases=[phase] if phase else [],
            released_on=film.release_date,
        )
        (rated if score is not None else unrated).append(row)

    rated.sort(key=lambda row: (-row.average, row.title.casefold()))
    unrated.sort(key=lambda row: (row.released_on is None, row.released_on or date.max, row.title.casefold()))

    labels = build_rank_labels(rated, lambda row: row.average, precision)
    ranked = [row.model_copy(update={"rank": label}) for row, label in zip(rated, labels)]
    return ranked + unrated
