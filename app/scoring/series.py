# app/scoring/series.py
"""
Series-level aggregation.

Per user: plain mean of their effective season scores.
Site-wide: mean of those per-user averages weighted by coverage, i.e. the
share of the unit's seasons the user has a score for:

    global = sum(avg(u) * coverage(u)) / sum(coverage(u))

A "unit" is a whole series, or a phase: seasons from any series sharing the
same franchise + phase tag. The formula does not change.
"""
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from app.schemas.score_schemas import RankedRow, RowKind, SeriesAverages
from app.scoring.episodes import group_by
from app.scoring.seasons import RatingIndex, effective_scores_by_user
from app.scoring.validators import is_finite


def collect_user_season_scores(seasons: Iterable, index: RatingIndex,
                               require_complete: bool = False) -> Dict[Hashable, List[float]]:
    scores_by_user: Dict[Hashable, List[float]] = {}
    for season in seasons:
        context = index.context(season.id)
        for user_id, effective in effective_scores_by_user(context, require_complete).items():
            scores_by_user.setdefault(user_id, []).append(effective)
    return scores_by_user


def user_averages(scores_by_user: Dict[Hashable, List[float]]) -> Dict[Hashable, float]:
    return {
        user_id: sum(scores) / len(scores)
        for user_id, scores in scores_by_user.items()
        if scores
    }


def coverage_weighted_average(scores_by_user: Dict[Hashable, List[float]],
                              total_units: int) -> Tuple[Optional[float], int]:
    """Returns (global average, contributor count)."""
    if total_units <= 0:
        return None, 0

    averages = user_averages(scores_by_user)
    weighted_sum = 0.0
    coverage_sum = 0.0
    for user_id, average in averages.items():
        if not is_finite(average):
            continue
        coverage = len(scores_by_user[user_id]) / total_units
        weighted_sum += average * coverage
        coverage_sum += coverage

    if coverage_sum <= 0:
        return None, 0
    return weighted_sum / coverage_sum, len(averages)


def _averages_for(unit_id, unit_seasons: List, index: RatingIndex, current_user_id=None,
                  require_complete: bool = False) -> SeriesAverages:
    scores_by_user = collect_user_season_scores(unit_seasons, index, require_complete)
    global_average, contributor_count = coverage_weighted_average(scores_by_user, len(unit_seasons))
    if global_average is None:
        return SeriesAverages(series_id=unit_id, unit_count=len(unit_seasons))

    my_average = None
    if current_user_id is not None:
        my_average = user_averages(scores_by_user).get(current_user_id)

    return SeriesAverages(
        series_id=unit_id,
        global_average=global_average,
        my_average=my_average,
        contributor_count=contributor_count,
        unit_count=len(unit_seasons),
    )


def compute_series_averages(series, seasons: Iterable, episodes: Iterable, episode_ratings: Iterable,
                            season_user_ratings: Iterable, current_user_id=None,
                            require_complete: bool = False) -> SeriesAverages:
    series_seasons = [season for season in seasons or [] if season.series_id == series.id]
    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    return _averages_for(series.id, series_seasons, index, current_user_id, require_complete)


def compute_user_series_averages(series, seasons: Iterable, episodes: Iterable, episode_ratings: Iterable,
                                 season_user_ratings: Iterable,
                                 require_complete: bool = False) -> Dict[Hashable, float]:
    """Every user's own average over the series (shown next to their series review)."""
    series_seasons = [season for season in seasons or [] if season.series_id == series.id]
    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    return user_averages(collect_user_season_scores(series_seasons, index, require_complete))


def compute_series_list_averages(series_list: Iterable, seasons: Iterable, episodes: Iterable,
                                 episode_ratings: Iterable, season_user_ratings: Iterable,
                                 current_user_id=None,
                                 require_complete: bool = False) -> Dict[Hashable, SeriesAverages]:
    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    seasons_by_series = group_by(seasons, lambda season: season.series_id)
    return {
        series.id: _averages_for(series.id, seasons_by_series.get(series.id, []), index,
                                 current_user_id, require_complete)
        for series in series_list or []
    }


def _phase_of(season) -> Optional[str]:
    phase = (getattr(season, "phase", None) or "").strip()
    return phase or None


def phase_key(franchise: Optional[str], phase: str) -> str:
    return f"{franchise}:{phase}" if franchise else phase


def compute_phase_averages(series_list: Iterable, seasons: Iterable, episodes: Iterable,
                           episode_ratings: Iterable, season_user_ratings: Iterable,
                           current_user_id=None,
                           require_complete: bool = False) -> Dict[Tuple[Optional[str], str], SeriesAverages]:
    """Coverage-weighted averages over seasons grouped by (franchise, phase)."""
    franchise_by_series = {series.id: getattr(series, "franchise", None) for series in series_list or []}
    groups: Dict[Tuple[Optional[str], str], List] = {}
    for season in seasons or []:
        phase = _phase_of(season)
        if phase is None:
            continue
        key = (franchise_by_series.get(season.series_id), phase)
        groups.setdefault(key, []).append(season)

    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    return {
        key: _averages_for(phase_key(*key), group, index, current_user_id, require_complete)
        for key, group in groups.items()
    }


def build_series_ranking(series_list: Iterable, seasons: Iterable, episodes: Iterable,
                         episode_ratings: Iterable, season_user_ratings: Iterable,
                         current_user_id=None, require_complete: bool = False) -> List[RankedRow]:
    series_list = list(series_list or [])
    averages = compute_series_list_averages(series_list, seasons, episodes, episode_ratings,
                                            season_user_ratings, current_user_id, require_complete)
    seasons_by_series = group_by(seasons, lambda season: season.series_id)

    rows: List[RankedRow] = []
    for series in series_list:
        result = averages[series.id]
        phases = sorted({p for p in map(_phase_of, seasons_by_series.get(series.id, [])) if p})
        rows.append(
            RankedRow(
                kind=RowKind.SERIES,
                id=series.id,
                title=series.title,
                average=result.global_average,
                count=result.contributor_count,
                my_score=result.my_average,
                franchise=getattr(series, "franchise", None),
                phases=phases,
                released_on=getattr(series, "start_date", None),
            )
        )
    return rows


def build_phase_ranking(series_list: Iterable, seasons: Iterable, episodes: Iterable,
                        episode_ratings: Iterable, season_user_ratings: Iterable,
                        current_user_id=None, require_complete: bool = False) -> List[RankedRow]:
    averages = compute_phase_averages(series_list, seasons, episodes, episode_ratings,
                                      season_user_ratings, current_user_id, require_complete)
    return [
        RankedRow(
            kind=RowKind.PHASE,
            id=result.series_id,
            title=phase,
            average=result.global_average,
            count=result.contributor_count,
            my_score=result.my_average,
            franchise=franchise,
            phases=[phase],
        )
        for (franchise, phase), result in averages.items()
    ]
