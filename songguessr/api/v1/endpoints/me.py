# ============================================================================
# FILE: songguessr/api/v1/endpoints/me.py
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from songguessr.db.session import get_db
from songguessr.api.dependencies import require_identity
from songguessr.schemas.history import GameHistoryResponse, UserStats
from songguessr.schemas.playlist import PlaylistResponse
from songguessr.schemas.user import Identity
from songguessr.services.playlist_service import playlist_service
from songguessr.services.stats_service import stats_service

router = APIRouter()

@router.get("/game-history", response_model=GameHistoryResponse)
async def get_game_history(
    limit: Optional[int] = Query(None, description="Number of games, most recent first"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    history = stats_service.get_history(db, identity.user_id, limit)
    return GameHistoryResponse(history=history)

@router.post("/recalculate-stats", response_model=UserStats)
async def recalculate_stats(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Rebuild the caller's statistics from their completed games
    """
    return stats_service.recalculate(db, identity.user_id)

@router.get("/playlists", response_model=List[PlaylistResponse])
async def get_my_playlists(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Get all playlists created by the current user
    """
    playlists = playlist_service.get_user_playlists(db, identity.user_id)
    return [playlist_service.to_response(db, p) for p in playlists]
