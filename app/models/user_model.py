from sqlalchemy import Column, Integer, String, DateTime

from app.config import DB_SCHEMA
from app.database import Base

# Accounts are owned by the auth service; this side only reads usernames.
class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=True)
