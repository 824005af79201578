# ============================================================================
# FILE: songguessr/services/song_service.py
# ============================================================================
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from songguessr.config import settings
from songguessr.core.cache import cache, PLAYLISTS_ACTIVE_KEY, playlist_key, song_key
from songguessr.core.enums import SelectionType
from songguessr.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from songguessr.core.soundcloud import extract_track_id
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.song import Song
from songguessr.schemas.song import SongCreate, SongResponse, SongUpdate
import logging

logger = logging.getLogger(__name__)

LATEST_SONGS_LIMIT = 100

# An explicit null clears these; for every other field null means "leave as is"
NULLABLE_FIELDS = {"soundcloud_track_id", "title", "artist", "release_year", "mood", "energy", "popularity_range"}

class SongService:
    """Service layer for the song catalog"""

    def _invalidate_dynamic_playlists(self, db: Session) -> None:
        # Dynamic members are resolved from song fields, so any song write can change them
        ids = db.query(Playlist.id).filter(Playlist.selection_type == SelectionType.DYNAMIC.value)
        cache.delete_cache(PLAYLISTS_ACTIVE_KEY, *(playlist_key(playlist_id) for (playlist_id,) in ids))

    def list_songs(self, db: Session, limit: int = LATEST_SONGS_LIMIT) -> List[Song]:
        """Newest songs first"""
        return db.query(Song).order_by(Song.created_at.desc(), Song.id.desc()).limit(limit).all()

    def get_song(self, db: Session, song_id: int) -> Song:
        song = db.get(Song, song_id)
        if song is None:
            raise NotFoundError("Song not found")
        return song

    def get_song_details(self, db: Session, song_id: int) -> dict:
        """Song as a response dict, served from cache when possible"""
        key = song_key(song_id)
        cached = cache.get_cache(key)
        if cached:
            logger.info(f"Cache hit for song: {song_id}")
            return cached

        data = SongResponse.model_validate(self.get_song(db, song_id)).model_dump(mode="json")
        cache.set_cache(key, data, settings.CACHE_EXPIRE_SECONDS)
        return data

    def create_song(self, db: Session, song_data: SongCreate) -> Song:
        if db.query(Song).filter(Song.soundcloud_url == song_data.soundcloud_url).first():
            raise ConflictError("Song with this SoundCloud URL already exists")

        values = song_data.model_dump(mode="json")
        if not values.get("soundcloud_track_id"):
            values["soundcloud_track_id"] = extract_track_id(song_data.soundcloud_url)

        try:
            song = Song(**values)
            db.add(song)
            db.commit()
            db.refresh(song)
            logger.info(f"Song created: {song.id} ({song.artist} - {song.title})")
        except IntegrityError:
            db.rollback()
            raise ConflictError("Song with this SoundCloud URL already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating song: {e}")
            raise InternalError("Failed to create song") from e

        self._invalidate_dynamic_playlists(db)
        return song

    def update_song(self, db: Session, song_id: int, update_data: SongUpdate) -> Song:
        song = self.get_song(db, song_id)
        changes = {
            field: value
            for field, value in update_data.model_dump(mode="json", exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }

        play_count = changes.get("play_count", song.play_count)
        correct_guesses = changes.get("correct_guesses", song.correct_guesses)
        if correct_guesses > play_count:
            raise ValidationError("correct_guesses cannot exceed play_count")

        if changes.get("soundcloud_url") and not changes.get("soundcloud_track_id"):
            changes["soundcloud_track_id"] = extract_track_id(changes["soundcloud_url"]) or song.soundcloud_track_id

        try:
            for field, value in changes.items():
                setattr(song, field, value)
            db.commit()
            db.refresh(song)
            logger.info(f"Song updated: {song_id}")
        except IntegrityError:
            db.rollback()
            raise ConflictError("Song with this SoundCloud URL already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating song {song_id}: {e}")
            raise InternalError("Failed to update song") from e

        cache.delete_cache(song_key(song_id))
        self._invalidate_dynamic_playlists(db)
        return song

    def find_by_title_artist(self, db: Session, title: str, artist: str) -> Optional[Song]:
        return db.query(Song).filter(Song.title == title, Song.artist == artist).first()

# Create singleton instance
song_service = SongService()
