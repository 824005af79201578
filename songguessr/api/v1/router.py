# ============================================================================
# FILE: songguessr/api/v1/router.py
# ============================================================================
from fastapi import APIRouter
from songguessr.api.v1.endpoints import auth, game, me, playlists, songs

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(game.router, prefix="/game", tags=["game"])
api_router.include_router(me.router, prefix="/me", tags=["me"])
api_router.include_router(playlists.router, prefix="/playlists", tags=["playlists"])
api_router.include_router(songs.router, prefix="/songs", tags=["songs"])
