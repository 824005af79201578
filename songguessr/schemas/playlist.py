# ============================================================================
# FILE: songguessr/schemas/playlist.py
# ============================================================================
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from songguessr.core.enums import PlaylistType, SelectionType, Energy, PopularityRange, Difficulty

class PlaylistCriteria(BaseModel):
    """Selection rules for dynamic playlists"""
    start_year: Optional[int] = Field(None, ge=1900, le=2030)
    end_year: Optional[int] = Field(None, ge=1900, le=2030)
    genres: List[str] = []
    artists: List[str] = []
    mood: Optional[str] = None
    energy: Optional[Energy] = None
    popularity_range: Optional[PopularityRange] = None

    @model_validator(mode="after")
    def check_year_range(self):
        if self.start_year and self.end_year and self.start_year > self.end_year:
            raise ValueError("start_year must not be after end_year")
        return self

    @property
    def is_empty(self) -> bool:
        return not (self.artists or self.genres or self.start_year or self.end_year)

class PlaylistCreate(BaseModel):
    """Schema for creating a playlist"""
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: str = Field("", max_length=500)
    image_url: Optional[str] = None
    playlist_type: PlaylistType = PlaylistType.CUSTOM
    is_active: bool = True
    tags: List[str] = []
    selection_type: SelectionType = SelectionType.DYNAMIC
    song_ids: List[int] = []
    criteria: Optional[PlaylistCriteria] = None

class PlaylistUpdate(BaseModel):
    """Schema for updating a playlist"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    playlist_type: Optional[PlaylistType] = None
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None
    selection_type: Optional[SelectionType] = None
    criteria: Optional[PlaylistCriteria] = None

class PlaylistSongAdd(BaseModel):
    """Add an existing song by id, or create one from title and artist"""
    song_id: Optional[int] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    soundcloud_url: Optional[str] = None
    soundcloud_track_id: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    starting_offset: int = Field(0, ge=0)
    release_year: Optional[int] = Field(None, ge=1900, le=2030)
    genres: List[str] = []
    mood: Optional[str] = None
    energy: Optional[Energy] = None
    popularity_range: Optional[PopularityRange] = None

    @model_validator(mode="after")
    def check_reference(self):
        if self.song_id is None and not (self.title and self.artist):
            raise ValueError("Either song_id or both title and artist are required")
        return self

class PlaylistResponse(BaseModel):
    """Schema for playlist response"""
    id: int
    name: str
    slug: str
    description: str = ""
    image_url: Optional[str] = None
    playlist_type: str
    is_active: bool
    song_count: int = 0
    play_count: int = 0
    average_rating: float = 0.0
    tags: List[str] = []
    selection_type: str
    criteria: Optional[PlaylistCriteria] = None
    song_ids: List[int] = []
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
