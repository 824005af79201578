# ============================================================================
# FILE: songguessr/services/stats_service.py
# ============================================================================
import math
from decimal import Decimal
from datetime import datetime
from typing import ContextManager, List
from sqlalchemy import update, case, cast, Float
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from songguessr.config import settings
from songguessr.core.enums import GameStatus
from songguessr.core.exceptions import InternalError, NotFoundError, StateError, ValidationError
from songguessr.core.locks import KeyedLock
from songguessr.db.models.game_session import GameSession
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.user import User
from songguessr.schemas.history import GameHistoryItem, UserStats
import logging

logger = logging.getLogger(__name__)

class StatsService:
    """
    Folds finished games into the per-user running statistics.

    Incremental updates and full recalculation for the same user are
    serialized through a per-user lock; the incremental update itself is a
    single UPDATE statement so concurrent completions cannot lose an increment.
    """

    def __init__(self, win_threshold: float = None):
        self.win_threshold = settings.WIN_THRESHOLD if win_threshold is None else win_threshold
        self._locks = KeyedLock()

    def lock(self, user_id: int) -> ContextManager[None]:
        """Per-user serialization point, re-entrant within a thread"""
        return self._locks.hold(user_id)

    def win_score(self, max_possible_score: int) -> int:
        """Smallest score that counts as a win"""
        return math.ceil(Decimal(str(self.win_threshold)) * max_possible_score)

    def is_win(self, total_score: int, max_possible_score: int) -> bool:
        if max_possible_score <= 0:
            return False
        return total_score >= self.win_score(max_possible_score)

    def fold(self, stats: UserStats, total_score: int, max_possible_score: int) -> UserStats:
        """Stats after one more finished game"""
        games_played = stats.games_played + 1
        accumulated = stats.total_score + total_score
        return UserStats(
            games_played=games_played,
            games_won=stats.games_won + (1 if self.is_win(total_score, max_possible_score) else 0),
            total_score=accumulated,
            best_score=max(stats.best_score, total_score),
            average_score=accumulated / games_played,
        )

    def record_completion(self, db: Session, user_id: int, session: GameSession, commit: bool = True) -> None:
        """
        Add a completed session to the user's stats.

        With commit=False the update joins the caller's transaction; the caller
        is then expected to hold lock(user_id) until it commits.
        """
        if session.status != GameStatus.COMPLETED.value:
            raise StateError("Game session is not completed")
        if session.user_id is not None and session.user_id != user_id:
            raise ValidationError("Game session does not belong to the user")

        score = session.total_score or 0
        won = self.is_win(score, session.max_possible_score or 0)

        with self.lock(user_id):
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(
                    games_played=User.games_played + 1,
                    games_won=User.games_won + (1 if won else 0),
                    total_score=User.total_score + score,
                    best_score=case((User.best_score < score, score), else_=User.best_score),
                    # right-hand sides see the pre-update row
                    average_score=cast(User.total_score + score, Float) / (User.games_played + 1),
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session="fetch")
            )
            try:
                result = db.execute(stmt)
                if result.rowcount == 0:
                    raise NotFoundError("User not found")
                if commit:
                    db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error updating stats for user {user_id} after session {session.id}: {e}")
                raise InternalError("Failed to update user statistics") from e

        logger.info(f"Recorded game {session.id} for user {user_id}: score={score} win={won}")

    def recalculate(self, db: Session, user_id: int) -> UserStats:
        """Rebuild the user's stats from every completed session, oldest first"""
        with self.lock(user_id):
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")

            games = (
                db.query(GameSession)
                .filter(GameSession.user_id == user_id, GameSession.status == GameStatus.COMPLETED.value)
                .order_by(GameSession.session_end_time, GameSession.session_start_time, GameSession.id)
                .all()
            )

            stats = UserStats()
            for game in games:
                stats = self.fold(stats, game.total_score or 0, game.max_possible_score or 0)

            try:
                for field, value in stats.model_dump().items():
                    setattr(user, field, value)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error recalculating stats for user {user_id}: {e}")
                raise InternalError("Failed to recalculate user statistics") from e

        logger.info(
            f"Recalculated stats for user {user_id}: games={stats.games_played} "
            f"total={stats.total_score} won={stats.games_won} "
            f"avg={round(stats.average_score, 2)} best={stats.best_score}"
        )
        return stats

    def get_history(self, db: Session, user_id: int, limit: int = None) -> List[GameHistoryItem]:
        """Completed games, most recent first"""
        limit = settings.HISTORY_DEFAULT_LIMIT if limit is None else limit
        if limit < 1 or limit > settings.HISTORY_MAX_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {settings.HISTORY_MAX_LIMIT}")

        rows = (
            db.query(GameSession, Playlist.name)
            .outerjoin(Playlist, Playlist.id == GameSession.playlist_id)
            .filter(GameSession.user_id == user_id, GameSession.status == GameStatus.COMPLETED.value)
            .order_by(GameSession.session_end_time.desc(), GameSession.session_start_time.desc())
            .limit(limit)
            .all()
        )

        return [
            GameHistoryItem(
                id=game.id,
                playlist_name=playlist_name or "Unknown Playlist",
                game_mode=game.game_mode,
                total_score=game.total_score,
                max_possible_score=game.max_possible_score,
                accuracy=round(game.accuracy, 2),
                total_rounds=game.total_rounds,
                session_start_time=game.session_start_time,
                session_end_time=game.session_end_time,
                total_game_time=game.total_game_time,
            )
            for game, playlist_name in rows
        ]

# Create singleton instance
stats_service = StatsService()
