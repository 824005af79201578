# ============================================================================
# FILE: songguessr/db/models/user.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.orm import relationship
from datetime import datetime
from songguessr.db.base import Base

class User(Base):
    """User model for authentication and running game statistics"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Running stats, written only by the stats service
    total_score = Column(Integer, nullable=False, default=0)
    games_played = Column(Integer, nullable=False, default=0)
    games_won = Column(Integer, nullable=False, default=0)
    average_score = Column(Float, nullable=False, default=0.0)
    best_score = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    playlists = relationship("Playlist", back_populates="creator")
    game_sessions = relationship("GameSession", back_populates="user", cascade="all, delete-orphan")

    @property
    def win_rate(self) -> float:
        return (self.games_won / self.games_played) * 100 if self.games_played else 0.0
