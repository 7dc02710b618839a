"""
Database models for edge_engine
SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    Date,
    DateTime,
    Boolean,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./edge_engine.db")

engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class EloJournalEntry(Base):
    """One Elo update for one team.  Rows are only ever inserted."""

    __tablename__ = "elo_journal"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(String, nullable=False, index=True)
    seq = Column(Integer, nullable=False)  # per-team, 1-based, gap-free
    game_date = Column(Date)

    rating_after = Column(Float, nullable=False)
    delta = Column(Float, nullable=False)
    expected = Column(Float, nullable=False)  # win probability before the game

    opponent = Column(String, nullable=False)
    won = Column(Boolean)  # NULL = tie
    is_home = Column(Boolean)  # NULL = neutral site

    recorded_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("team", "seq", name="_elo_team_seq_uc"),)
