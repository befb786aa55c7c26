# app/scoring/activity.py
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.schemas.score_schemas import ActivityEntry, RowKind
from app.scoring.seasons import RatingIndex, resolve_from_context, season_title
from app.scoring.validators import EPSILON, clean_review, is_finite

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _sort_time(entry: ActivityEntry) -> datetime:
    if entry.created_at is None:
        return _OLDEST
    if entry.created_at.tzinfo is None:
        return entry.created_at.replace(tzinfo=timezone.utc)
    return entry.created_at


def build_season_activity(seasons: Iterable, episodes: Iterable, episode_ratings: Iterable,
                          season_user_ratings: Iterable, limit: Optional[int] = None) -> List[ActivityEntry]:
    """
    One entry per (season, user) who said something about the season: a
    manual score, a non-zero adjustment, a review, or a fully rated season
    left untouched (its episode average stands as their verdict).
    Newest first.
    """
    index = RatingIndex(episodes, episode_ratings, season_user_ratings)
    entries: List[ActivityEntry] = []

    for season in seasons or []:
        context = index.context(season.id)
        for user_id in context.user_ids:
            row = context.rows_by_user.get(user_id)
            resolved = resolve_from_context(context, user_id)

            has_manual = resolved.manual_score is not None
            has_adjustment = abs(resolved.adjustment) > EPSILON
            review = clean_review(getattr(row, "review", None))
            auto_statement = (
                is_finite(resolved.effective)
                and not has_manual
                and not has_adjustment
                and resolved.is_complete
            )
            if not (has_manual or has_adjustment or review or auto_statement):
                continue

            row_id = getattr(row, "id", None)
            entries.append(
                ActivityEntry(
                    kind=RowKind.SEASON,
                    key=f"season-{row_id}" if row_id else f"season-auto-{season.id}-{user_id}",
                    season_id=season.id,
                    user_id=user_id,
                    username=resolved.username,
                    created_at=resolved.statement_at,
                    score=resolved.effective if is_finite(resolved.effective) else None,
                    adjustment=resolved.adjustment,
                    review=review,
                    title=season_title(season),
                    season_label=f"S{season.season_number}" if season.season_number else "Season",
                )
            )

    entries.sort(key=_sort_time, reverse=True)
    return entries[:limit] if limit else entries
