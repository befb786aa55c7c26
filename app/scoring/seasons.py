# app/scoring/seasons.py
"""
Season effective-score resolution.

Every place that needs "the score of user U for season S" goes through
`resolve_from_context`, so the formula lives in exactly one spot:

    manual score set      -> clamp(manual, 0, 10)
    episode average known -> clamp(episode_average + adjustment, 0, 10)
    otherwise             -> None (the user does not count)

`is_complete` is reported as data. Callers that only want fully rated
seasons to count pass `require_complete=True`.
"""
from typing import Dict, Iterable, List, Optional

from app.schemas.score_schemas import EpisodeStats, RankedRow, RowKind, SeasonMetrics, SeasonScore
from app.scoring.episodes import collect_episode_stats, group_by
from app.scoring.validators import MAX_SCORE, MIN_SCORE, clamp, is_finite

ADJUSTMENT_LIMIT = 2.0


class SeasonContext:
    """Per-season lookups shared by every user resolved for that season."""

    def __init__(self, season_id: int, episode_count: int,
                 stats_by_user: Dict[int, EpisodeStats], rows_by_user: Dict[int, object]):
        self.season_id = season_id
        self.episode_count = episode_count
        self.stats_by_user = stats_by_user
        self.rows_by_user = rows_by_user

    @property
    def user_ids(self) -> List[int]:
        # episode raters first, then users who only have a season row
        seen = dict.fromkeys(self.stats_by_user)
        seen.update(dict.fromkeys(self.rows_by_user))
        return list(seen)


def build_season_context(season_id: int, episodes: Iterable, episode_ratings: Iterable,
                         season_user_ratings: Iterable) -> SeasonContext:
    season_episode_ids = [episode.id for episode in episodes or [] if episode.season_id == season_id]
    rows_by_user = {
        row.user_id: row
        for row in season_user_ratings or []
        if row.season_id == season_id
    }
    return SeasonContext(
        season_id=season_id,
        episode_count=len(season_episode_ids),
        stats_by_user=collect_episode_stats(season_episode_ids, episode_ratings),
        rows_by_user=rows_by_user,
    )


class RatingIndex:
    """
    Groups episodes, episode ratings and season rows once so that many
    seasons can be resolved without rescanning the full collections.
    """

    def __init__(self, episodes: Iterable, episode_ratings: Iterable, season_user_ratings: Iterable):
        self.episodes_by_season = group_by(episodes, lambda episode: episode.season_id)
        self.ratings_by_episode = group_by(episode_ratings, lambda rating: rating.episode_id)
        self.rows_by_season = group_by(season_user_ratings, lambda row: row.season_id)

    def context(self, season_id: int) -> SeasonContext:
        season_episodes = self.episodes_by_season.get(season_id, [])
        ratings = [
            rating
            for episode in season_episodes
            for rating in self.ratings_by_episode.get(episode.id, [])
        ]
        return build_season_context(season_id, season_episodes, ratings, self.rows_by_season.get(season_id, []))


def _manual_of(row) -> Optional[float]:
    manual = getattr(row, "manual_score", None) if row is not None else None
    return float(manual) if is_finite(manual) else None


def _adjustment_of(row) -> float:
    adjustment = getattr(row, "adjustment", None) if row is not None else None
    if not is_finite(adjustment):
        return 0.0
    return clamp(float(adjustment), -ADJUSTMENT_LIMIT, ADJUSTMENT_LIMIT)


def effective_score(manual_score: Optional[float], episode_average: Optional[float], adjustment: float,
                    is_complete: bool = True, require_complete: bool = False) -> Optional[float]:
    if is_finite(manual_score):
        return clamp(manual_score, MIN_SCORE, MAX_SCORE)
    if not is_finite(episode_average):
        return None
    if require_complete and not is_complete:
        return None
    return clamp(episode_average + adjustment, MIN_SCORE, MAX_SCORE)


def resolve_from_context(context: SeasonContext, user_id, require_complete: bool = False) -> SeasonScore:
    stats = context.stats_by_user.get(user_id) or EpisodeStats()
    row = context.rows_by_user.get(user_id)

    manual = _manual_of(row)
    adjustment = _adjustment_of(row)
    average = stats.average
    is_complete = context.episode_count > 0 and stats.count == context.episode_count

    return SeasonScore(
        season_id=context.season_id,
        user_id=user_id,
        effective=effective_score(manual, average, adjustment, is_complete, require_complete),
        episode_average=average,
        manual_score=manual,
        adjustment=adjustment,
        is_complete=is_complete,
        episode_count=context.episode_count,
        rated_episode_count=stats.count,
        statement_at=getattr(row, "created_at", None) or stats.last_created_at,
        username=getattr(row, "username", None) or stats.username,
    )


def resolve_season_effective_score(season, user_id, episodes: Iterable, episode_ratings: Iterable,
                                   season_user_ratings: Iterable, require_complete: bool = False) -> SeasonScore:
    context = build_season_context(season.id, episodes, episode_ratings, season_user_ratings)
    return resolve_from_context(context, user_id, require_complete)


def effective_scores_by_user(context: SeasonContext, require_complete: bool = False) -> Dict[int, float]:
    scores = {}
    for user_id in context.user_ids:
        resolved = resolve_from_context(context, user_id, require_complete)
        if is_finite(resolved.effective):
            scores[user_id] = resolved.effective
    return scores


def site_average(scores: Iterable[float]) -> Optional[float]:
    values = list(scores)
    return sum(values) / len(values) if values else None


def compute_season_site_average(season, episodes: Iterable, episode_ratings: Iterable,
                                season_user_ratings: Iterable, require_complete: bool = False) -> Optional[float]:
    """Unweighted mean of every user's effective score for the season."""
    context = build_season_context(season.id, episodes, episode_ratings, season_user_ratings)
    return site_average(effective_scores_by_user(context, require_complete).values())


def compute_season_metrics(season, episodes: Iterable, episode_ratings: Iterable, season_user_ratings: Iterable,
                           current_user_id=None, require_complete: bool = False) -> SeasonMetrics:
    context = build_season_context(season.id, episodes, episode_ratings, season_user_ratings)
    scores = effective_scores_by_user(context, require_complete)
    me = None
    if current_user_id is not None:
        me = resolve_from_context(context, current_user_id, require_complete)

    return SeasonMetrics(
        season_id=season.id,
        site_average=site_average(scores.values()),
        contributor_count=len(scores),
        episode_count=context.episode_count,
        me=me,
    )


def season_title(season, series=None) -> str:
    name = getattr(season, "name", None) or f"Season {season.season_number}"
    if series is not None:
        return f"{series.title} - {name}"
    return name


def build_season_ranking(seasons: Iterable, episodes: Iterable, episode_ratings: Iterable,
                         season_user_ratings: Iterable, series_by_id: Optional[dict] = None,
                         current_user_id=None, require_complete: bool = False) -> List[RankedRow]:
    """One row per season that has at least one effective score."""
    series_by_id = series_by_id or {}
    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    rows: List[RankedRow] = []

    for season in seasons or []:
        context = index.context(season.id)
        scores = effective_scores_by_user(context, require_complete)
        average = site_average(scores.values())
        if not is_finite(average):
            continue

        series = series_by_id.get(season.series_id)
        rows.append(
            RankedRow(
                kind=RowKind.SEASON,
                id=season.id,
                title=season_title(season, series),
                average=average,
                count=len(scores),
                my_score=scores.get(current_user_id) if current_user_id is not None else None,
                franchise=getattr(series, "franchise", None),
                phases=[season.phase.strip()] if (season.phase or "").strip() else [],
                released_on=season.start_date,
            )
        )

    return rows
