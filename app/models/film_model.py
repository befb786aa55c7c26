from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, UniqueConstraint, CheckConstraint, func

from app.config import DB_SCHEMA
from app.database import Base


class Film(Base):
    __tablename__ = "films"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    release_date = Column(Date, nullable=True)
    franchise = Column(String, nullable=True)  # "MCU", "SSU", ...
    phase = Column(String, nullable=True)
    type = Column(String, nullable=True)


class FilmRating(Base):
    __tablename__ = "film_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "film_id", name="uq_film_rating_user_film"),
        CheckConstraint("score >= 0 AND score <= 10", name="ck_film_rating_score"),
        {"schema": DB_SCHEMA},
    )

    id = Column(Integer, primary_key=True, index=True)
    film_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.films.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
