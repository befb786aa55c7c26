from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Set, Union

from pydantic import BaseModel, Field


class EpisodeStats(BaseModel):
    """Running sum/count of one user's episode ratings inside a season."""

    total: float = 0.0
    count: int = 0
    last_created_at: Optional[datetime] = None
    username: Optional[str] = None

    @property
    def average(self) -> Optional[float]:
        return self.total / self.count if self.count else None


class SeasonScore(BaseModel):
    season_id: int
    user_id: Optional[int] = None
    effective: Optional[float] = None
    episode_average: Optional[float] = None
    manual_score: Optional[float] = None
    adjustment: float = 0.0
    is_complete: bool = False
    episode_count: int = 0
    rated_episode_count: int = 0
    statement_at: Optional[datetime] = None
    username: Optional[str] = None


class SeasonMetrics(BaseModel):
    season_id: int
    site_average: Optional[float] = None
    contributor_count: int = 0
    episode_count: int = 0
    me: Optional[SeasonScore] = None


class SeriesAverages(BaseModel):
    series_id: Union[int, str]
    global_average: Optional[float] = None
    my_average: Optional[float] = None
    contributor_count: int = 0
    unit_count: int = 0


class FilmAverage(BaseModel):
    film_id: int
    average: Optional[float] = None
    count: int = 0
    my_score: Optional[int] = None


class RowKind(str, Enum):
    FILM = "film"
    SERIES = "series"
    SEASON = "season"
    PHASE = "phase"
    EPISODE = "episode"


class RankedRow(BaseModel):
    kind: RowKind
    id: Union[int, str]
    title: str
    average: Optional[float] = None
    count: int = 0
    my_score: Optional[float] = None
    franchise: Optional[str] = None
    phases: List[str] = Field(default_factory=list)
    released_on: Optional[date] = None
    label: Optional[str] = None
    rank: str = "-"


class ActivityEntry(BaseModel):
    kind: RowKind
    key: str
    season_id: int
    user_id: int
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    score: Optional[float] = None
    adjustment: float = 0.0
    review: Optional[str] = None
    title: str
    season_label: str


class AdjustDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    RESET = "reset"


class AdjustIn(BaseModel):
    direction: AdjustDirection


class SeasonWriteOut(BaseModel):
    """What a season write left in the store (None row = deleted)."""

    deleted: bool
    manual_score: Optional[float] = None
    adjustment: float = 0.0
    review: Optional[str] = None
    score: SeasonScore


class LeaderboardFilters(BaseModel):
    # each filter left at None means "no restriction"
    kinds: Set[RowKind] = Field(default_factory=lambda: {RowKind.FILM, RowKind.SERIES})
    franchise: Optional[str] = None
    phase: Optional[str] = None
    search: Optional[str] = None


class SeriesRankings(BaseModel):
    series_id: int
    seasons: List[RankedRow] = Field(default_factory=list)
    episodes: List[RankedRow] = Field(default_factory=list)


class SeriesReviewOut(BaseModel):
    series_id: int
    user_id: int
    username: Optional[str] = None
    review: str
    created_at: Optional[datetime] = None
    # the reviewer's own average over the series' seasons
    user_average: Optional[float] = None
