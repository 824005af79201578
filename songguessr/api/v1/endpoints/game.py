# ============================================================================
# FILE: songguessr/api/v1/endpoints/game.py
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from songguessr.db.session import get_db
from songguessr.api.dependencies import require_identity
from songguessr.core.enums import GameStatus
from songguessr.schemas.game import (
    StartGameRequest,
    GameSessionState,
    GameSessionDetail,
    GuestStartResponse,
    GuestNextSongRequest,
    GuestAdvanceRequest,
    GameStartResponse,
    NextSongRequest,
    NextSongResponse,
    SubmitGuessRequest,
    SubmitGuessResponse,
)
from songguessr.schemas.song import SongPrompt, GuestSongPrompt
from songguessr.schemas.user import Identity
from songguessr.services.game_service import game_service

router = APIRouter()

# ----------------------------------------------------------------------------
# Guest play: nothing is stored, the client keeps the session
# ----------------------------------------------------------------------------

@router.post("/guest/start", response_model=GuestStartResponse)
async def start_guest_game(
    request: StartGameRequest,
    db: Session = Depends(get_db)
):
    session, song = game_service.start_session(
        db, request.playlist_id, request.game_mode, request.total_rounds
    )
    return GuestStartResponse(game_session=session, song=GuestSongPrompt.from_song(song))

@router.post("/guest/next-song", response_model=GuestSongPrompt)
async def guest_next_song(
    request: GuestNextSongRequest,
    db: Session = Depends(get_db)
):
    song = game_service.guest_next_song(db, request.playlist_id, request.exclude_song_ids)
    return GuestSongPrompt.from_song(song)

@router.post("/guest/advance", response_model=GameSessionState)
async def guest_advance(request: GuestAdvanceRequest):
    """
    Add a round score to a guest session
    The last round completes the session
    """
    return game_service.advance_round(request.session, request.round_score)

# ----------------------------------------------------------------------------
# Authenticated play: persisted, scored server-side
# ----------------------------------------------------------------------------

@router.post("/start", response_model=GameStartResponse)
async def start_game(
    request: StartGameRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    session, song = game_service.start_session(
        db, request.playlist_id, request.game_mode, request.total_rounds, identity=identity
    )
    return GameStartResponse(game_session=game_service.to_state(session), song=SongPrompt.from_song(song))

@router.post("/next-song", response_model=NextSongResponse)
async def next_song(
    request: NextSongRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    session, song = game_service.next_song(
        db, identity.user_id, request.game_session_id, request.client_session_id
    )
    return NextSongResponse(song=SongPrompt.from_song(song), game_session=game_service.to_state(session))

@router.post("/submit", response_model=SubmitGuessResponse)
async def submit_guess(
    request: SubmitGuessRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    result, session = game_service.submit_guess(db, identity.user_id, request)
    return SubmitGuessResponse(
        round=result,
        game_session=game_service.to_state(session),
        is_complete=session.status == GameStatus.COMPLETED.value,
    )

@router.get("/session/{session_id}", response_model=GameSessionDetail)
async def get_session(
    session_id: str,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    return game_service.get_session_detail(db, identity.user_id, session_id)
