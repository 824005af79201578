# ============================================================================
# FILE: songguessr/schemas/song.py
# ============================================================================
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from songguessr.core.enums import Difficulty, Energy, PopularityRange
from songguessr.core import soundcloud

def _check_soundcloud_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not soundcloud.is_valid_soundcloud_url(value):
        raise ValueError("Invalid SoundCloud URL format")
    return value

def _normalize_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return values
    return [v.strip().lower() for v in values if v and v.strip()]

class SongBase(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    soundcloud_track_id: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    starting_offset: int = Field(0, ge=0)
    is_active: bool = True
    release_year: Optional[int] = Field(None, ge=1900, le=2030)
    genres: List[str] = []
    mood: Optional[str] = None
    energy: Optional[Energy] = None
    popularity_range: Optional[PopularityRange] = None

    normalize_genres = field_validator("genres")(_normalize_tags)

    @field_validator("title", "artist", "mood")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value else value

class SongCreate(SongBase):
    """Schema for adding a song to the catalog"""
    soundcloud_url: str

    validate_url = field_validator("soundcloud_url")(_check_soundcloud_url)

class SongUpdate(BaseModel):
    """Partial update; only fields that are set are written"""
    soundcloud_url: Optional[str] = None
    soundcloud_track_id: Optional[str] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    starting_offset: Optional[int] = Field(None, ge=0)
    play_count: Optional[int] = Field(None, ge=0)
    correct_guesses: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    release_year: Optional[int] = Field(None, ge=1900, le=2030)
    genres: Optional[List[str]] = None
    mood: Optional[str] = None
    energy: Optional[Energy] = None
    popularity_range: Optional[PopularityRange] = None

    validate_url = field_validator("soundcloud_url")(_check_soundcloud_url)
    normalize_genres = field_validator("genres")(_normalize_tags)

class SongResponse(BaseModel):
    """Full catalog entry"""
    id: int
    soundcloud_url: str
    soundcloud_track_id: Optional[str] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    difficulty: str
    starting_offset: int = 0
    play_count: int = 0
    correct_guesses: int = 0
    success_rate: float = 0.0
    is_active: bool = True
    release_year: Optional[int] = None
    genres: List[str] = []
    mood: Optional[str] = None
    energy: Optional[str] = None
    popularity_range: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SongPrompt(BaseModel):
    """What a player needs to play a round, without the answer"""
    id: int
    soundcloud_url: str
    soundcloud_track_id: Optional[str] = None
    embed_url: Optional[str] = None
    starting_offset: int = 0
    difficulty: str

    @classmethod
    def from_song(cls, song) -> "SongPrompt":
        return cls(**_prompt_fields(song))

class GuestSongPrompt(SongPrompt):
    """Guests score rounds themselves, so they get the answer fields too"""
    title: Optional[str] = None
    artist: Optional[str] = None

    @classmethod
    def from_song(cls, song) -> "GuestSongPrompt":
        return cls(title=song.title, artist=song.artist, **_prompt_fields(song))

def _prompt_fields(song) -> dict:
    return {
        "id": song.id,
        "soundcloud_url": song.soundcloud_url,
        "soundcloud_track_id": song.soundcloud_track_id,
        "embed_url": soundcloud.embed_url(song.soundcloud_track_id) if song.soundcloud_track_id else song.soundcloud_url,
        "starting_offset": song.starting_offset or 0,
        "difficulty": song.difficulty,
    }
