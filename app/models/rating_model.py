from sqlalchemy import Column, Integer, Numeric, DateTime, Text, ForeignKey, UniqueConstraint, CheckConstraint, func

from app.config import DB_SCHEMA
from app.database import Base


class EpisodeRating(Base):
    __tablename__ = "episode_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "episode_id", name="uq_episode_rating_user_episode"),
        CheckConstraint("score >= 0 AND score <= 10", name="ck_episode_rating_score"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    episode_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.series_episodes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Numeric(4, 2, asdecimal=False), nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class SeasonUserRating(Base):
    """Manual score, adjuster offset and review of one user for one season."""

    __tablename__ = "season_user_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "season_id", name="uq_season_rating_user_season"),
        CheckConstraint("adjustment >= -2 AND adjustment <= 2", name="ck_season_rating_adjustment"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.series_seasons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    manual_score = Column(Numeric(4, 2, asdecimal=False), nullable=True)
    adjustment = Column(Numeric(4, 2, asdecimal=False), nullable=False, default=0, server_default="0")
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class SeriesReview(Base):
    __tablename__ = "series_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "series_id", name="uq_series_review_user_series"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    series_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.series.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    review = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
