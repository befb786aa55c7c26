# app/scoring/episodes.py
from collections import defaultdict
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from app.schemas.score_schemas import EpisodeStats, RankedRow, RowKind
from app.scoring.validators import is_finite


def group_by(rows: Iterable, key: Callable) -> Dict[Hashable, list]:
    grouped = defaultdict(list)
    for row in rows or []:
        grouped[key(row)].append(row)
    return grouped


def collect_episode_stats(episode_ids: Iterable[int], episode_ratings: Iterable) -> Dict[int, EpisodeStats]:
    """
    Sum and count each user's episode ratings for one season.

    Only ratings whose episode_id is in `episode_ids` are counted: the fetch
    layer may hand us a superset, and stray rows must never leak into a
    season's average.
    """
    allowed = set(episode_ids)
    stats: Dict[int, EpisodeStats] = {}

    for rating in episode_ratings or []:
        if rating.episode_id not in allowed:
            continue
        score = rating.score
        if not is_finite(score):
            continue

        current = stats.get(rating.user_id)
        if current is None:
            current = stats[rating.user_id] = EpisodeStats()
        current.total += float(score)
        current.count += 1

        created_at = getattr(rating, "created_at", None)
        if created_at is not None and (
            current.last_created_at is None or created_at >= current.last_created_at
        ):
            current.last_created_at = created_at
            current.username = getattr(rating, "username", None) or current.username

    return stats


def episode_average(episode_ids: Iterable[int], episode_ratings: Iterable, user_id) -> Optional[float]:
    stats = collect_episode_stats(episode_ids, episode_ratings).get(user_id)
    return stats.average if stats else None


def build_episode_ranking(seasons: Iterable, episodes: Iterable, episode_ratings: Iterable) -> List[RankedRow]:
    """Site average per episode (plain mean over every user), rated episodes only."""
    season_by_id = {season.id: season for season in seasons or []}
    ratings_by_episode = group_by(episode_ratings, lambda r: r.episode_id)

    rows: List[RankedRow] = []
    for episode in episodes or []:
        scores = [float(r.score) for r in ratings_by_episode.get(episode.id, []) if is_finite(r.score)]
        if not scores:
            continue
        season = season_by_id.get(episode.season_id)
        season_number = season.season_number if season else "?"
        rows.append(
            RankedRow(
                kind=RowKind.EPISODE,
                id=episode.id,
                title=episode.title or "Episode",
                average=sum(scores) / len(scores),
                count=len(scores),
                released_on=episode.air_date,
                label=f"S{season_number} - E{episode.episode_number}",
            )
        )

    return rows
