# ============================================================================
# FILE: songguessr/db/models/song.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, CheckConstraint
from datetime import datetime
from songguessr.core.enums import Difficulty
from songguessr.db.base import Base

class Song(Base):
    """A guessable track played from SoundCloud"""
    __tablename__ = "songs"
    __table_args__ = (
        CheckConstraint("correct_guesses <= play_count", name="ck_song_guesses_le_plays"),
    )

    id = Column(Integer, primary_key=True, index=True)
    soundcloud_url = Column(String, unique=True, index=True, nullable=False)
    soundcloud_track_id = Column(String, index=True, nullable=True)
    title = Column(String, nullable=True, index=True)
    artist = Column(String, nullable=True, index=True)
    difficulty = Column(String, nullable=False, default=Difficulty.MEDIUM.value)
    starting_offset = Column(Integer, nullable=False, default=0)
    play_count = Column(Integer, nullable=False, default=0)
    correct_guesses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    release_year = Column(Integer, nullable=True, index=True)
    genres = Column(JSON, nullable=False, default=list)
    mood = Column(String, nullable=True)
    energy = Column(String, nullable=True)
    popularity_range = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def success_rate(self) -> float:
        return (self.correct_guesses / self.play_count) * 100 if self.play_count else 0.0
