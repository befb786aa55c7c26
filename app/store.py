from typing import Dict, Iterable, List, NamedTuple, Optional

from fastapi import Depends
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.config import IN_FILTER_CHUNK_SIZE, STORE_PAGE_SIZE
from app.database import get_async_session
from app.models.film_model import Film, FilmRating
from app.models.rating_model import EpisodeRating, SeasonUserRating, SeriesReview
from app.models.series_model import Episode, Season, Series
from app.models.user_model import User
from app.schemas.rating_schemas import (
    EpisodeRatingRow,
    EpisodeRow,
    FilmRatingRow,
    FilmRow,
    SeasonRow,
    SeasonUserRatingRow,
    SeriesReviewRow,
    SeriesRow,
)


def chunked(ids: Iterable, size: int) -> List[list]:
    unique = list(dict.fromkeys(i for i in ids if i is not None))
    return [unique[i:i + size] for i in range(0, len(unique), size)]


class SeriesTree(NamedTuple):
    seasons: List[SeasonRow]
    episodes: List[EpisodeRow]
    episode_ratings: List[EpisodeRatingRow]
    season_user_ratings: List[SeasonUserRatingRow]


class RatingStore:
    """
    Reads and writes raw rating rows.

    Reads always come back complete: range queries are paged with
    STORE_PAGE_SIZE and id filters are split into IN (...) chunks of
    IN_FILTER_CHUNK_SIZE. Everything returned is a pydantic row, never an
    ORM object, so the scoring code stays session-free.
    """

    def __init__(self, session: AsyncSession, page_size: int = STORE_PAGE_SIZE,
                 chunk_size: int = IN_FILTER_CHUNK_SIZE):
        self.session = session
        self.page_size = page_size
        self.chunk_size = chunk_size

    # ---------- read helpers ----------

    async def _paged(self, stmt, order_column) -> list:
        rows = []
        offset = 0
        while True:
            result = await self.session.execute(
                stmt.order_by(order_column).offset(offset).limit(self.page_size)
            )
            page = result.scalars().all()
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size

    async def _where_in(self, model, column, ids: Iterable) -> list:
        rows = []
        for chunk in chunked(ids, self.chunk_size):
            rows.extend(await self._paged(select(model).where(column.in_(chunk)), model.id))
        return rows

    async def usernames(self, user_ids: Iterable[int]) -> Dict[int, str]:
        users = await self._where_in(User, User.id, user_ids)
        return {user.id: user.username for user in users}

    async def _with_usernames(self, rows: list, row_schema) -> list:
        names = await self.usernames(row.user_id for row in rows)
        return [
            row_schema.model_validate(row).model_copy(update={"username": names.get(row.user_id)})
            for row in rows
        ]

    # ---------- films ----------

    async def get_film(self, film_id: int) -> Optional[FilmRow]:
        film = await self.session.get(Film, film_id)
        return FilmRow.model_validate(film) if film else None

    async def list_films(self) -> List[FilmRow]:
        films = await self._paged(select(Film), Film.id)
        return [FilmRow.model_validate(film) for film in films]

    async def list_film_ratings(self, film_ids: Iterable[int]) -> List[FilmRatingRow]:
        ratings = await self._where_in(FilmRating, FilmRating.film_id, film_ids)
        return [FilmRatingRow.model_validate(rating) for rating in ratings]

    async def upsert_film_rating(self, film_id: int, user_id: int, score: int, review: Optional[str]) -> None:
        result = await self.session.execute(
            select(FilmRating).where(FilmRating.film_id == film_id, FilmRating.user_id == user_id)
        )
        rating = result.scalars().first()
        if rating:
            rating.score = score
            rating.review = review
        else:
            self.session.add(FilmRating(film_id=film_id, user_id=user_id, score=score, review=review))
        await self.session.commit()

    async def delete_film_rating(self, film_id: int, user_id: int) -> bool:
        result = await self.session.execute(
            delete(FilmRating).where(FilmRating.film_id == film_id, FilmRating.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    # ---------- series hierarchy ----------

    async def get_series(self, series_id: int) -> Optional[SeriesRow]:
        series = await self.session.get(Series, series_id)
        return SeriesRow.model_validate(series) if series else None

    async def list_series(self) -> List[SeriesRow]:
        series_list = await self._paged(select(Series), Series.id)
        return [SeriesRow.model_validate(series) for series in series_list]

    async def get_season(self, season_id: int) -> Optional[SeasonRow]:
        season = await self.session.get(Season, season_id)
        return SeasonRow.model_validate(season) if season else None

    async def list_seasons(self, series_ids: Iterable[int]) -> List[SeasonRow]:
        seasons = await self._where_in(Season, Season.series_id, series_ids)
        return [SeasonRow.model_validate(season) for season in seasons]

    async def get_episode(self, episode_id: int) -> Optional[EpisodeRow]:
        episode = await self.session.get(Episode, episode_id)
        return EpisodeRow.model_validate(episode) if episode else None

    async def list_episodes(self, season_ids: Iterable[int]) -> List[EpisodeRow]:
        episodes = await self._where_in(Episode, Episode.season_id, season_ids)
        return [EpisodeRow.model_validate(episode) for episode in episodes]

    # ---------- episode ratings ----------

    async def list_episode_ratings(self, episode_ids: Iterable[int]) -> List[EpisodeRatingRow]:
        ratings = await self._where_in(EpisodeRating, EpisodeRating.episode_id, episode_ids)
        return await self._with_usernames(ratings, EpisodeRatingRow)

    async def upsert_episode_rating(self, episode_id: int, user_id: int, score: float,
                                    review: Optional[str]) -> None:
        result = await self.session.execute(
            select(EpisodeRating).where(EpisodeRating.episode_id == episode_id, EpisodeRating.user_id == user_id)
        )
        rating = result.scalars().first()
        if rating:
            rating.score = score
            rating.review = review
        else:
            self.session.add(EpisodeRating(episode_id=episode_id, user_id=user_id, score=score, review=review))
        await self.session.commit()

    async def delete_episode_rating(self, episode_id: int, user_id: int) -> bool:
        result = await self.session.execute(
            delete(EpisodeRating).where(EpisodeRating.episode_id == episode_id, EpisodeRating.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    # ---------- season rows ----------

    async def list_season_user_ratings(self, season_ids: Iterable[int]) -> List[SeasonUserRatingRow]:
        rows = await self._where_in(SeasonUserRating, SeasonUserRating.season_id, season_ids)
        return await self._with_usernames(rows, SeasonUserRatingRow)

    async def get_season_user_rating(self, season_id: int, user_id: int) -> Optional[SeasonUserRatingRow]:
        result = await self.session.execute(
            select(SeasonUserRating).where(
                SeasonUserRating.season_id == season_id, SeasonUserRating.user_id == user_id
            )
        )
        row = result.scalars().first()
        return SeasonUserRatingRow.model_validate(row) if row else None

    async def write_season_user_rating(self, season_id: int, user_id: int,
                                       row: Optional[SeasonUserRatingRow]) -> None:
        """Store the normalized row; None deletes it."""
        result = await self.session.execute(
            select(SeasonUserRating).where(
                SeasonUserRating.season_id == season_id, SeasonUserRating.user_id == user_id
            )
        )
        existing = result.scalars().first()

        if row is None:
            if existing:
                await self.session.delete(existing)
                await self.session.commit()
            return

        values = {
            "manual_score": row.manual_score,
            "adjustment": row.adjustment,
            "review": row.review,
        }
        if existing:
            for field, value in values.items():
                setattr(existing, field, value)
        else:
            self.session.add(SeasonUserRating(season_id=season_id, user_id=user_id, **values))
        await self.session.commit()

    # ---------- series reviews ----------

    async def list_series_reviews(self, series_id: int) -> List[SeriesReviewRow]:
        reviews = await self._paged(
            select(SeriesReview).where(SeriesReview.series_id == series_id), SeriesReview.id
        )
        return await self._with_usernames(reviews, SeriesReviewRow)

    async def upsert_series_review(self, series_id: int, user_id: int, review: str) -> None:
        result = await self.session.execute(
            select(SeriesReview).where(SeriesReview.series_id == series_id, SeriesReview.user_id == user_id)
        )
        existing = result.scalars().first()
        if existing:
            existing.review = review
        else:
            self.session.add(SeriesReview(series_id=series_id, user_id=user_id, review=review))
        await self.session.commit()

    async def delete_series_review(self, series_id: int, user_id: int) -> bool:
        result = await self.session.execute(
            delete(SeriesReview).where(SeriesReview.series_id == series_id, SeriesReview.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0


async def load_series_tree(store, series_ids: Iterable[int]) -> SeriesTree:
    """Seasons, episodes and every rating row below the given series."""
    seasons = await store.list_seasons(series_ids)
    season_ids = [season.id for season in seasons]
    episodes = await store.list_episodes(season_ids)
    episode_ratings = await store.list_episode_ratings([episode.id for episode in episodes])
    season_user_ratings = await store.list_season_user_ratings(season_ids)
    return SeriesTree(seasons, episodes, episode_ratings, season_user_ratings)



async def load_season_tree(store, season: SeasonRow) -> SeriesTree:
    episodes = await store.list_episodes([season.id])
    episode_ratings = await store.list_episode_ratings([episode.id for episode in episodes])
    season_user_ratings = await store.list_season_user_ratings([season.id])
    return SeriesTree([season], episodes, episode_ratings, season_user_ratings)


async def get_store(session: AsyncSession = Depends(get_async_session)) -> RatingStore:
    return RatingStore(session)
