# ============================================================================
# FILE: songguessr/api/v1/endpoints/playlists.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from songguessr.db.session import get_db
from songguessr.api.dependencies import require_identity
from songguessr.schemas.playlist import (
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistResponse,
    PlaylistSongAdd
)
from songguessr.schemas.song import SongResponse
from songguessr.schemas.user import Identity
from songguessr.services.playlist_service import playlist_service

router = APIRouter()

@router.get("", response_model=List[PlaylistResponse])
async def list_playlists(db: Session = Depends(get_db)):
    """Active playlists, by name"""
    return playlist_service.list_active_playlists(db)

@router.post("", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    playlist_data: PlaylistCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Create a new playlist
    Requires authentication
    """
    playlist = playlist_service.create_playlist(db, identity.user_id, playlist_data)
    return playlist_service.to_response(db, playlist)

@router.get("/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(
    playlist_id: int,
    db: Session = Depends(get_db)
):
    return playlist_service.get_playlist_details(db, playlist_id)

@router.patch("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: int,
    update_data: PlaylistUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Update playlist details
    Requires authentication and ownership
    """
    playlist = playlist_service.update_playlist(db, playlist_id, identity.user_id, update_data)
    return playlist_service.to_response(db, playlist)

@router.get("/{playlist_id}/songs", response_model=List[SongResponse])
async def get_playlist_songs(
    playlist_id: int,
    db: Session = Depends(get_db)
):
    return playlist_service.get_playlist_songs(db, playlist_id)

@router.post("/{playlist_id}/songs", response_model=PlaylistResponse)
async def add_song_to_playlist(
    playlist_id: int,
    song_data: PlaylistSongAdd,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Add a song to a playlist by id, or by title and artist
    Requires authentication and ownership
    """
    playlist = playlist_service.add_song_to_playlist(db, playlist_id, identity.user_id, song_data)
    return playlist_service.to_response(db, playlist)
