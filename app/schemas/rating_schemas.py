from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Read-only rows handed to the scoring engine. They are built from the ORM
# models (from_attributes) so the engine never touches a session.

class FilmRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    release_date: Optional[date] = None
    franchise: Optional[str] = None
    phase: Optional[str] = None
    type: Optional[str] = None


class FilmRatingRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    film_id: int
    user_id: int
    score: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None


class SeriesRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    franchise: Optional[str] = None
    type: Optional[str] = None


class SeasonRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    series_id: int
    season_number: int
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    phase: Optional[str] = None


class EpisodeRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season_id: int
    episode_number: int
    title: Optional[str] = None
    air_date: Optional[date] = None


class EpisodeRatingRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    episode_id: int
    user_id: int
    score: float
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    username: Optional[str] = None


class SeasonUserRatingRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    season_id: int
    user_id: int
    manual_score: Optional[float] = None
    adjustment: float = 0.0
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    username: Optional[str] = None
    id: Optional[int] = None


class SeriesReviewRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    series_id: int
    user_id: int
    review: str
    created_at: Optional[datetime] = None
    username: Optional[str] = None


# Request bodies

class ScoreIn(BaseModel):
    # str so "7,5" survives until parse_locale_score
    score: str = Field(min_length=1, max_length=16)


class ReviewIn(BaseModel):
    review: Optional[str] = Field(default=None, max_length=4000)


class RatingIn(ScoreIn):
    review: Optional[str] = Field(default=None, max_length=4000)


class SeasonReviewIn(BaseModel):
    score: Optional[str] = Field(default=None, max_length=16)
    review: Optional[str] = Field(default=None, max_length=4000)
