# ============================================================================
# FILE: songguessr/db/models/game_session.py
# ============================================================================
import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Float, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from songguessr.core.enums import GameStatus
from songguessr.db.base import Base


def _new_session_id() -> str:
    return str(uuid.uuid4())


class GameSession(Base):
    """An authenticated play-through of a playlist"""
    __tablename__ = "game_sessions"
    __table_args__ = (
        CheckConstraint("total_rounds BETWEEN 1 AND 20", name="ck_session_rounds"),
        CheckConstraint("current_round <= total_rounds", name="ck_session_round_bound"),
    )

    id = Column(String(36), primary_key=True, default=_new_session_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id"), nullable=False, index=True)
    game_mode = Column(String, nullable=False)
    status = Column(String, nullable=False, default=GameStatus.ACTIVE.value, index=True)

    total_rounds = Column(Integer, nullable=False)
    current_round = Column(Integer, nullable=False, default=1)
    total_score = Column(Integer, nullable=False, default=0)
    max_possible_score = Column(Integer, nullable=False)

    # Song the client is currently guessing
    current_song_id = Column(Integer, ForeignKey("songs.id"), nullable=True)
    client_session_id = Column(String(36), nullable=False, index=True)

    session_start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    session_end_time = Column(DateTime, nullable=True)
    total_game_time = Column(Float, nullable=True)  # seconds
    last_action_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    is_guest = False

    # Relationships
    user = relationship("User", back_populates="game_sessions")
    playlist = relationship("Playlist")
    rounds = relationship(
        "GameRound",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="GameRound.id",
    )

    @property
    def accuracy(self) -> float:
        finished = [r for r in self.rounds if r.round_end_time]
        if not finished:
            return 0.0
        return sum(1 for r in finished if r.is_correct) / len(finished) * 100

    @property
    def average_time_per_round(self) -> float:
        timed = [r for r in self.rounds if r.round_end_time and r.time_to_guess]
        if not timed:
            return 0.0
        return sum(r.time_to_guess for r in timed) / len(timed)

    @property
    def average_hints_used(self) -> float:
        if not self.rounds:
            return 0.0
        return sum(r.hints_used for r in self.rounds) / len(self.rounds)


class GameRound(Base):
    """One answered prompt within a session"""
    __tablename__ = "game_rounds"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(36), ForeignKey("game_sessions.id"), nullable=False, index=True)
    song_id = Column(Integer, ForeignKey("songs.id"), nullable=False)
    user_guess = Column(String, nullable=False, default="")
    correct_answer = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    hints_used = Column(Integer, nullable=False)
    time_to_guess = Column(Integer, nullable=True)  # milliseconds
    points_earned = Column(Integer, nullable=False, default=0)
    round_start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    round_end_time = Column(DateTime, nullable=True)

    # Relationships
    session = relationship("GameSession", back_populates="rounds")
