# ============================================================================
# FILE: songguessr/db/models/playlist.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Float, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from songguessr.core.enums import PlaylistType, SelectionType
from songguessr.db.base import Base

class Playlist(Base):
    """A named set of songs to play a game against"""
    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String, nullable=True)
    playlist_type = Column(String, nullable=False, default=PlaylistType.CUSTOM.value)
    is_active = Column(Boolean, nullable=False, default=True)
    song_count = Column(Integer, nullable=False, default=0)
    play_count = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=False, default=0.0)
    tags = Column(JSON, nullable=False, default=list)
    selection_type = Column(String, nullable=False, default=SelectionType.DYNAMIC.value)
    # start_year, end_year, genres, artists, mood, energy, popularity_range
    criteria = Column(JSON, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("User", back_populates="playlists")
    songs = relationship("PlaylistSong", back_populates="playlist", cascade="all, delete-orphan", order_by="PlaylistSong.id")

    @property
    def song_ids(self):
        return [entry.song_id for entry in self.songs]

class PlaylistSong(Base):
    """Junction table for playlist songs"""
    __tablename__ = "playlist_songs"
    __table_args__ = (UniqueConstraint("playlist_id", "song_id", name="uq_playlist_song"),)

    id = Column(Integer, primary_key=True, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id"), nullable=False, index=True)
    song_id = Column(Integer, ForeignKey("songs.id"), nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    playlist = relationship("Playlist", back_populates="songs")
    song = relationship("Song")
