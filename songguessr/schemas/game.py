# ============================================================================
# FILE: songguessr/schemas/game.py
# ============================================================================
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from songguessr.config import settings
from songguessr.core.enums import GameMode, GameStatus
from songguessr.schemas.song import SongPrompt, GuestSongPrompt

# One day; anything longer is not a real guess
MAX_GUESS_TIME_MS = 24 * 60 * 60 * 1000

class StartGameRequest(BaseModel):
    """Body for starting a guest or authenticated session"""
    playlist_id: Optional[int] = None
    game_mode: Optional[str] = None
    # Range is checked by the game service so both entry points share one rule
    total_rounds: Optional[int] = None

class GameSessionState(BaseModel):
    """
    Session as seen by the client.

    Guests hold this object themselves and send it back with each round;
    authenticated sessions are rendered into the same shape from the database.
    """
    id: str
    playlist_id: int
    game_mode: GameMode
    total_rounds: int = Field(..., ge=settings.MIN_ROUNDS, le=settings.MAX_ROUNDS)
    current_round: int = Field(1, ge=1)
    total_score: int = Field(0, ge=0)
    max_possible_score: int
    status: GameStatus = GameStatus.ACTIVE
    session_start_time: datetime
    session_end_time: Optional[datetime] = None
    is_guest: bool = True
    client_session_id: Optional[str] = None

    @model_validator(mode="after")
    def check_progress(self):
        # Guests send this back, so it must be consistent before any round is applied
        if self.current_round > self.total_rounds:
            raise ValueError("Current round exceeds total rounds")
        if self.max_possible_score != self.total_rounds * settings.MAX_ROUND_SCORE:
            raise ValueError("Max possible score does not match total rounds")
        if self.total_score > self.current_round * settings.MAX_ROUND_SCORE:
            raise ValueError("Total score exceeds what the played rounds allow")
        return self

    class Config:
        from_attributes = True

class GuestStartResponse(BaseModel):
    game_session: GameSessionState
    song: GuestSongPrompt

class GuestNextSongRequest(BaseModel):
    playlist_id: Optional[int] = None
    exclude_song_ids: List[int] = []

class GuestAdvanceRequest(BaseModel):
    session: GameSessionState
    round_score: int

class GameStartResponse(BaseModel):
    game_session: GameSessionState
    song: SongPrompt

class NextSongRequest(BaseModel):
    game_session_id: str
    client_session_id: str

class NextSongResponse(BaseModel):
    song: SongPrompt
    game_session: GameSessionState

class SubmitGuessRequest(BaseModel):
    game_session_id: str
    client_session_id: str
    song_id: int
    user_guess: str = ""
    hints_used: int = Field(..., ge=1, le=5)
    time_to_guess: int = Field(..., ge=0, le=MAX_GUESS_TIME_MS, description="Milliseconds")

class RoundResult(BaseModel):
    is_correct: bool
    correct_answer: str
    points_earned: int
    time_to_guess: int
    hints_used: int

class SubmitGuessResponse(BaseModel):
    round: RoundResult
    game_session: GameSessionState
    is_complete: bool

class GameRoundResponse(BaseModel):
    song_id: int
    user_guess: str
    correct_answer: str
    is_correct: bool
    hints_used: int
    time_to_guess: Optional[int] = None
    points_earned: int
    round_start_time: datetime
    round_end_time: Optional[datetime] = None

    class Config:
        from_attributes = True

class GameSessionDetail(GameSessionState):
    completed_rounds: int
    rounds: List[GameRoundResponse] = []
    total_game_time: Optional[float] = None
    accuracy: float = 0.0
    average_time_per_round: float = 0.0
    average_hints_used: float = 0.0
    is_complete: bool = False
