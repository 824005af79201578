from songguessr.db.models.user import User
from songguessr.db.models.song import Song
from songguessr.db.models.playlist import Playlist, PlaylistSong
from songguessr.db.models.game_session import GameSession, GameRound

__all__ = ["User", "Song", "Playlist", "PlaylistSong", "GameSession", "GameRound"]
