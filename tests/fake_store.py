from datetime import datetime, timezone
from typing import List, Optional

from app.schemas.rating_schemas import (
    EpisodeRatingRow,
    FilmRatingRow,
    SeasonUserRatingRow,
    SeriesReviewRow,
)


def _now():
    return datetime.now(timezone.utc)


class FakeStore:
    """In-memory stand-in for RatingStore, same method names and row types."""

    def __init__(self, films=None, film_ratings=None, series=None, seasons=None, episodes=None,
                 episode_ratings=None, season_user_ratings=None, series_reviews=None):
        self.films = list(films or [])
        self.film_ratings = list(film_ratings or [])
        self.series = list(series or [])
        self.seasons = list(seasons or [])
        self.episodes = list(episodes or [])
        self.episode_ratings = list(episode_ratings or [])
        self.season_user_ratings = list(season_user_ratings or [])
        self.series_reviews = list(series_reviews or [])
        self._next_row_id = 1000

    @staticmethod
    def _first(rows, **match):
        return next(
            (row for row in rows if all(getattr(row, k) == v for k, v in match.items())),
            None,
        )

    # films

    async def get_film(self, film_id):
        return self._first(self.films, id=film_id)

    async def list_films(self):
        return list(self.films)

    async def list_film_ratings(self, film_ids):
        wanted = set(film_ids)
        return [r for r in self.film_ratings if r.film_id in wanted]

    async def upsert_film_rating(self, film_id, user_id, score, review):
        await self.delete_film_rating(film_id, user_id)
        self.film_ratings.append(
            FilmRatingRow(film_id=film_id, user_id=user_id, score=score, review=review, created_at=_now())
        )

    async def delete_film_rating(self, film_id, user_id):
        before = len(self.film_ratings)
        self.film_ratings = [
            r for r in self.film_ratings if not (r.film_id == film_id and r.user_id == user_id)
        ]
        return len(self.film_ratings) < before

    # hierarchy

    async def get_series(self, series_id):
        return self._first(self.series, id=series_id)

    async def list_series(self):
        return list(self.series)

    async def get_season(self, season_id):
        return self._first(self.seasons, id=season_id)

    async def list_seasons(self, series_ids):
        wanted = set(series_ids)
        return [s for s in self.seasons if s.series_id in wanted]

    async def get_episode(self, episode_id):
        return self._first(self.episodes, id=episode_id)

    async def list_episodes(self, season_ids):
        wanted = set(season_ids)
        return [e for e in self.episodes if e.season_id in wanted]

    # episode ratings

    async def list_episode_ratings(self, episode_ids):
        wanted = set(episode_ids)
        return [r for r in self.episode_ratings if r.episode_id in wanted]

    async def upsert_episode_rating(self, episode_id, user_id, score, review):
        await self.delete_episode_rating(episode_id, user_id)
        self.episode_ratings.append(
            EpisodeRatingRow(episode_id=episode_id, user_id=user_id, score=score, review=review,
                             created_at=_now(), username=f"user{user_id}")
        )

    async def delete_episode_rating(self, episode_id, user_id):
        before = len(self.episode_ratings)
        self.episode_ratings = [
            r for r in self.episode_ratings if not (r.episode_id == episode_id and r.user_id == user_id)
        ]
        return len(self.episode_ratings) < before

    # season rows

    async def list_season_user_ratings(self, season_ids):
        wanted = set(season_ids)
        return [r for r in self.season_user_ratings if r.season_id in wanted]

    async def get_season_user_rating(self, season_id, user_id) -> Optional[SeasonUserRatingRow]:
        return self._first(self.season_user_ratings, season_id=season_id, user_id=user_id)

    async def write_season_user_rating(self, season_id, user_id, row):
        existing = await self.get_season_user_rating(season_id, user_id)
        self.season_user_ratings = [
            r for r in self.season_user_ratings if not (r.season_id == season_id and r.user_id == user_id)
        ]
        if row is None:
            return
        if existing is not None:
            row = row.model_copy(update={"id": existing.id, "created_at": existing.created_at})
        else:
            self._next_row_id += 1
            row = row.model_copy(update={"id": self._next_row_id, "created_at": _now()})
        self.season_user_ratings.append(row)

    # series reviews

    async def list_series_reviews(self, series_id) -> List[SeriesReviewRow]:
        return [r for r in self.series_reviews if r.series_id == series_id]

    async def upsert_series_review(self, series_id, user_id, review):
        await self.delete_series_review(series_id, user_id)
        self.series_reviews.append(
            SeriesReviewRow(series_id=series_id, user_id=user_id, review=review,
                            created_at=_now(), username=f"user{user_id}")
        )

    async def delete_series_review(self, series_id, user_id):
        before = len(self.series_reviews)
        self.series_reviews = [
            r for r in self.series_reviews if not (r.series_id == series_id and r.user_id == user_id)
        ]
        return len(self.series_reviews) < before
