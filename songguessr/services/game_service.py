# ============================================================================
# FILE: songguessr/services/game_service.py
# ============================================================================
import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from songguessr.config import settings
from songguessr.core.cache import cache, PLAYLISTS_ACTIVE_KEY, playlist_key
from songguessr.core.enums import GameMode, GameStatus
from songguessr.core.exceptions import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    SessionExpiredError,
    SongGuessrError,
    StateError,
    ValidationError,
)
from songguessr.db.models.game_session import GameRound, GameSession
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.song import Song
from songguessr.schemas.game import (
    GameRoundResponse,
    GameSessionDetail,
    GameSessionState,
    RoundResult,
    SubmitGuessRequest,
)
from songguessr.schemas.user import Identity
from songguessr.services.scoring import answer_for, calculate_points, is_answer_correct
from songguessr.services.song_selector import SongSelector, song_selector
from songguessr.services.stats_service import StatsService, stats_service
import logging

logger = logging.getLogger(__name__)

AnySession = Union[GameSession, GameSessionState]

class GameService:
    """
    Session lifecycle: start, serve prompts, advance rounds, finish.

    Guest sessions live only in the client (GameSessionState is handed back and
    forth). Authenticated sessions are persisted and their completion is folded
    into the user's stats in the same transaction that closes the session.
    """

    def __init__(self, selector: SongSelector = None, stats: StatsService = None):
        self.selector = selector or song_selector
        self.stats = stats or stats_service

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def validate_start(self, playlist_id, game_mode, total_rounds) -> Tuple[GameMode, int]:
        if not playlist_id or not game_mode:
            raise ValidationError("Missing required fields")
        try:
            mode = GameMode(game_mode)
        except ValueError:
            raise ValidationError("Invalid game mode")

        rounds = settings.DEFAULT_ROUNDS if total_rounds is None else total_rounds
        if isinstance(rounds, bool) or not isinstance(rounds, int) \
                or rounds < settings.MIN_ROUNDS or rounds > settings.MAX_ROUNDS:
            raise ValidationError(
                f"Total rounds must be between {settings.MIN_ROUNDS} and {settings.MAX_ROUNDS}"
            )
        return mode, rounds

    def max_possible_score(self, total_rounds: int) -> int:
        return total_rounds * settings.MAX_ROUND_SCORE

    def get_playlist(self, db: Session, playlist_id: int, require_active: bool = False) -> Playlist:
        playlist = db.get(Playlist, playlist_id)
        if playlist is None or (require_active and not playlist.is_active):
            raise NotFoundError("Playlist not found or inactive" if require_active else "Playlist not found")
        return playlist

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(
        self,
        db: Session,
        playlist_id: Optional[int],
        game_mode: Optional[str],
        total_rounds: Optional[int] = None,
        identity: Optional[Identity] = None,
    ) -> Tuple[AnySession, Song]:
        """
        Start a session and pick its first prompt.

        Without an identity the session is a guest session and nothing is
        written. With one, the user's other active sessions are abandoned and
        the new session is persisted.
        """
        mode, rounds = self.validate_start(playlist_id, game_mode, total_rounds)

        if identity is None:
            playlist = self.get_playlist(db, playlist_id)
            song = self.selector.next_song(db, playlist, game_mode=mode.value)
            session = GameSessionState(
                id=str(uuid.uuid4()),
                playlist_id=playlist.id,
                game_mode=mode,
                total_rounds=rounds,
                current_round=1,
                total_score=0,
                max_possible_score=self.max_possible_score(rounds),
                status=GameStatus.ACTIVE,
                session_start_time=datetime.utcnow(),
                is_guest=True,
            )
            logger.info(f"Guest session {session.id} started on playlist {playlist.id} ({mode.value}, {rounds} rounds)")
            return session, song

        playlist = self.get_playlist(db, playlist_id, require_active=True)
        song = self.selector.next_song(db, playlist, game_mode=mode.value)
        user_id = identity.user_id

        try:
            abandoned = (
                db.query(GameSession)
                .filter(GameSession.user_id == user_id, GameSession.status == GameStatus.ACTIVE.value)
                .update(
                    {"status": GameStatus.ABANDONED.value, "session_end_time": datetime.utcnow()},
                    synchronize_session="fetch",
                )
            )
            now = datetime.utcnow()
            session = GameSession(
                id=str(uuid.uuid4()),
                user_id=user_id,
                playlist_id=playlist.id,
                game_mode=mode.value,
                status=GameStatus.ACTIVE.value,
                total_rounds=rounds,
                current_round=1,
                total_score=0,
                max_possible_score=self.max_possible_score(rounds),
                current_song_id=song.id,
                client_session_id=str(uuid.uuid4()),
                session_start_time=now,
                last_action_time=now,
            )
            db.add(session)
            playlist.play_count = (playlist.play_count or 0) + 1
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error starting game session for user {user_id}: {e}")
            raise InternalError("Failed to start game session") from e
        cache.delete_cache(PLAYLISTS_ACTIVE_KEY, playlist_key(playlist.id))

        if abandoned:
            logger.info(f"Abandoned {abandoned} active session(s) for user {user_id}")
        logger.info(f"Game session {session.id} started for user {user_id} on playlist {playlist.id}")
        return session, song

    def advance_round(self, session: AnySession, round_score: int, db: Optional[Session] = None) -> AnySession:
        """
        Add a round's score and move to the next round.

        The last round completes the session instead of moving past it, so
        current_round never exceeds total_rounds. A persisted session owned by a
        user has its result folded into the user's stats through `db`, without
        committing; the caller commits both together.
        """
        if session.status != GameStatus.ACTIVE.value:
            raise StateError("Game session is not active")
        if isinstance(round_score, bool) or not isinstance(round_score, int) \
                or round_score < 0 or round_score > settings.MAX_ROUND_SCORE:
            raise ValidationError(f"Round score must be between 0 and {settings.MAX_ROUND_SCORE}")

        session.total_score += round_score

        if session.current_round + 1 > session.total_rounds:
            now = datetime.utcnow()
            session.session_end_time = now
            if isinstance(session, GameSessionState):
                session.status = GameStatus.COMPLETED
            else:
                session.status = GameStatus.COMPLETED.value
                session.total_game_time = (now - session.session_start_time).total_seconds()
                if db is not None and session.user_id is not None:
                    self.stats.record_completion(db, session.user_id, session, commit=False)
            logger.info(f"Game session {session.id} completed with {session.total_score}/{session.max_possible_score}")
        else:
            session.current_round += 1

        return session

    # ------------------------------------------------------------------
    # Guest flow
    # ------------------------------------------------------------------

    def guest_next_song(self, db: Session, playlist_id: Optional[int], exclude_ids: Iterable[int] = ()) -> Song:
        if not playlist_id:
            raise ValidationError("Playlist ID required")
        playlist = self.get_playlist(db, playlist_id)
        return self.selector.next_song(db, playlist, exclude_ids)

    # ------------------------------------------------------------------
    # Authenticated flow
    # ------------------------------------------------------------------

    def get_owned_session(
        self,
        db: Session,
        user_id: int,
        session_id: str,
        client_session_id: Optional[str] = None,
    ) -> GameSession:
        session = db.get(GameSession, session_id)
        if session is None:
            raise NotFoundError("Game session not found")
        if session.user_id != user_id:
            logger.warning(f"User {user_id} tried to access session {session_id}")
            raise ForbiddenError("Unauthorized access to game session")
        if client_session_id is not None and session.client_session_id != client_session_id:
            raise ForbiddenError("Invalid session ID")
        return session

    def is_idle(self, session: GameSession, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        timeout = timedelta(minutes=settings.SESSION_TIMEOUT_MINUTES)
        return session.status == GameStatus.ACTIVE.value and now - session.last_action_time > timeout

    def _abandon(self, db: Session, session: GameSession) -> None:
        session.status = GameStatus.ABANDONED.value
        session.session_end_time = datetime.utcnow()
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error abandoning idle session {session.id}: {e}")
            raise InternalError("Failed to update game session") from e
        logger.info(f"Game session {session.id} abandoned after inactivity")

    def _require_playable(self, db: Session, session: GameSession) -> None:
        if session.status != GameStatus.ACTIVE.value:
            raise StateError("Game session is not active")
        if self.is_idle(session):
            self._abandon(db, session)
            raise SessionExpiredError("Session expired")

    def next_song(self, db: Session, user_id: int, session_id: str, client_session_id: str) -> Tuple[GameSession, Song]:
        session = self.get_owned_session(db, user_id, session_id, client_session_id)
        self._require_playable(db, session)

        used = [r.song_id for r in session.rounds]
        if session.current_song_id is not None:
            used.append(session.current_song_id)

        playlist = self.get_playlist(db, session.playlist_id)
        song = self.selector.next_song(db, playlist, used, game_mode=session.game_mode)

        try:
            session.current_song_id = song.id
            session.last_action_time = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error serving next song for session {session.id}: {e}")
            raise InternalError("Failed to update game session") from e
        return session, song

    def submit_guess(self, db: Session, user_id: int, request: SubmitGuessRequest) -> Tuple[RoundResult, GameSession]:
        """Score a guess server-side, record the round and advance the session"""
        with self.stats.lock(user_id):
            session = self.get_owned_session(db, user_id, request.game_session_id, request.client_session_id)
            self._require_playable(db, session)

            if session.current_song_id is None:
                raise StateError("No song has been served for this round")
            if request.song_id != session.current_song_id:
                raise ValidationError("Song is not the current prompt")

            song = db.get(Song, request.song_id)
            if song is None:
                raise NotFoundError("Song not found")

            correct_answer = answer_for(song, session.game_mode)
            is_correct = is_answer_correct(request.user_guess, correct_answer)
            points = calculate_points(request.hints_used, is_correct)
            now = datetime.utcnow()

            try:
                session.rounds.append(GameRound(
                    song_id=song.id,
                    user_guess=request.user_guess or "",
                    correct_answer=correct_answer,
                    is_correct=is_correct,
                    hints_used=request.hints_used,
                    time_to_guess=request.time_to_guess,
                    points_earned=points,
                    round_start_time=now - timedelta(milliseconds=request.time_to_guess),
                    round_end_time=now,
                ))
                song.play_count = (song.play_count or 0) + 1
                if is_correct:
                    song.correct_guesses = (song.correct_guesses or 0) + 1
                session.current_song_id = None
                session.last_action_time = now

                self.advance_round(session, points, db=db)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error submitting round for session {session.id} (user {user_id}): {e}")
                raise InternalError("Failed to record round") from e
            except SongGuessrError:
                db.rollback()
                raise

        result = RoundResult(
            is_correct=is_correct,
            correct_answer=correct_answer,
            points_earned=points,
            time_to_guess=request.time_to_guess,
            hints_used=request.hints_used,
        )
        return result, session

    def get_session_detail(self, db: Session, user_id: int, session_id: str) -> GameSessionDetail:
        session = self.get_owned_session(db, user_id, session_id)
        if self.is_idle(session):
            self._abandon(db, session)

        finished = [r for r in session.rounds if r.round_end_time]
        return GameSessionDetail(
            **self.to_state(session).model_dump(),
            completed_rounds=len(finished),
            rounds=[GameRoundResponse.model_validate(r) for r in session.rounds],
            total_game_time=session.total_game_time,
            accuracy=session.accuracy,
            average_time_per_round=session.average_time_per_round,
            average_hints_used=session.average_hints_used,
            is_complete=session.status == GameStatus.COMPLETED.value,
        )

    def to_state(self, session: AnySession) -> GameSessionState:
        if isinstance(session, GameSessionState):
            return session
        return GameSessionState.model_validate(session)

# Create singleton instance
game_service = GameService()
