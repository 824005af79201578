# ============================================================================
# FILE: songguessr/api/v1/endpoints/songs.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from songguessr.db.session import get_db
from songguessr.api.dependencies import require_identity
from songguessr.schemas.song import SongCreate, SongUpdate, SongResponse
from songguessr.schemas.user import Identity
from songguessr.services.song_service import song_service

router = APIRouter()

@router.get("", response_model=List[SongResponse])
async def list_songs(db: Session = Depends(get_db)):
    """Latest songs in the catalog"""
    return song_service.list_songs(db)

@router.post("", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def create_song(
    song_data: SongCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    return song_service.create_song(db, song_data)

@router.get("/{song_id}", response_model=SongResponse)
async def get_song(
    song_id: int,
    db: Session = Depends(get_db)
):
    return song_service.get_song_details(db, song_id)

@router.patch("/{song_id}", response_model=SongResponse)
async def update_song(
    song_id: int,
    update_data: SongUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    return song_service.update_song(db, song_id, update_data)
