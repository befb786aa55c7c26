from sqlalchemy import Column, Integer, String, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.config import DB_SCHEMA
from app.database import Base


class Series(Base):
    __tablename__ = "series"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    franchise = Column(String, nullable=True)
    type = Column(String, nullable=True)

    seasons = relationship(
        "Season",
        back_populates="series",
        cascade="all, delete-orphan",
        order_by="Season.season_number",
    )


class Season(Base):
    __tablename__ = "series_seasons"
    __table_args__ = (
        UniqueConstraint("series_id", "season_number", name="uq_season_series_number"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    series_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.series.id", ondelete="CASCADE"), nullable=False, index=True)
    season_number = Column(Integer, nullable=False)
    name = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    phase = Column(String, nullable=True)  # e.g. "Phase 4", cuts across series

    series = relationship("Series", back_populates="seasons")


class Episode(Base):
    __tablename__ = "series_episodes"
    __table_args__ = (
        UniqueConstraint("season_id", "episode_number", name="uq_episode_season_number"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.series_seasons.id", ondelete="CASCADE"), nullable=False, index=True)
    episode_number = Column(Integer, nullable=False)
    title = Column(String, nullable=True)
    air_date = Column(Date, nullable=True)
