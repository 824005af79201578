# ============================================================================
# FILE: songguessr/services/playlist_service.py
# ============================================================================
import re
from typing import List
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from songguessr.config import settings
from songguessr.core.cache import cache, PLAYLISTS_ACTIVE_KEY, playlist_key
from songguessr.core.enums import SelectionType
from songguessr.core.exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError, ValidationError
from songguessr.db.models.playlist import Playlist, PlaylistSong
from songguessr.db.models.song import Song
from songguessr.schemas.playlist import PlaylistCreate, PlaylistUpdate, PlaylistSongAdd, PlaylistResponse
from songguessr.schemas.song import SongCreate
from songguessr.services.song_selector import song_selector
from songguessr.services.song_service import song_service
import logging

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")

def slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value.lower()).strip("-") or "playlist"

class PlaylistService:
    """Service layer for playlist operations"""

    def _invalidate(self, playlist_id: int = None) -> None:
        keys = [PLAYLISTS_ACTIVE_KEY]
        if playlist_id is not None:
            keys.append(playlist_key(playlist_id))
        cache.delete_cache(*keys)

    def to_response(self, db: Session, playlist: Playlist) -> dict:
        """Response dict with dynamic members resolved into song_ids"""
        response = PlaylistResponse.model_validate(playlist)
        if playlist.selection_type == SelectionType.DYNAMIC.value:
            song_ids = song_selector.playlist_song_ids(db, playlist)
            response = response.model_copy(update={"song_ids": song_ids, "song_count": len(song_ids)})
        return response.model_dump(mode="json")

    def list_active_playlists(self, db: Session) -> List[dict]:
        cached = cache.get_cache(PLAYLISTS_ACTIVE_KEY)
        if cached is not None:
            logger.info("Cache hit for active playlists")
            return cached

        playlists = db.query(Playlist).filter(Playlist.is_active.is_(True)).order_by(Playlist.name).all()
        data = [self.to_response(db, p) for p in playlists]
        cache.set_cache(PLAYLISTS_ACTIVE_KEY, data, settings.CACHE_EXPIRE_SECONDS)
        return data

    def get_user_playlists(self, db: Session, user_id: int) -> List[Playlist]:
        """Get all playlists created by a user"""
        return db.query(Playlist).filter(Playlist.created_by == user_id).order_by(Playlist.id).all()

    def get_playlist(self, db: Session, playlist_id: int) -> Playlist:
        playlist = db.get(Playlist, playlist_id)
        if playlist is None:
            raise NotFoundError("Playlist not found")
        return playlist

    def get_playlist_details(self, db: Session, playlist_id: int) -> dict:
        key = playlist_key(playlist_id)
        cached = cache.get_cache(key)
        if cached:
            logger.info(f"Cache hit for playlist: {playlist_id}")
            return cached

        data = self.to_response(db, self.get_playlist(db, playlist_id))
        cache.set_cache(key, data, settings.CACHE_EXPIRE_SECONDS)
        return data

    def get_playlist_songs(self, db: Session, playlist_id: int) -> List[Song]:
        playlist = self.get_playlist(db, playlist_id)
        song_ids = song_selector.playlist_song_ids(db, playlist)
        if not song_ids:
            return []
        songs = {song.id: song for song in db.query(Song).filter(Song.id.in_(song_ids))}
        return [songs[song_id] for song_id in song_ids if song_id in songs]

    def _check_owner(self, playlist: Playlist, user_id: int) -> None:
        if playlist.created_by is not None and playlist.created_by != user_id:
            raise ForbiddenError("Only the playlist creator can modify it")

    def create_playlist(self, db: Session, user_id: int, playlist_data: PlaylistCreate) -> Playlist:
        """Create a new playlist owned by a user"""
        name = playlist_data.name.strip()
        slug = slugify(playlist_data.slug or name)

        if db.query(Playlist).filter(Playlist.name == name).first():
            raise ConflictError("Playlist already exists")
        if db.query(Playlist).filter(Playlist.slug == slug).first():
            raise ConflictError("Playlist slug already in use")

        song_ids = list(dict.fromkeys(playlist_data.song_ids))
        if song_ids:
            found = {song_id for (song_id,) in db.query(Song.id).filter(Song.id.in_(song_ids))}
            missing = [song_id for song_id in song_ids if song_id not in found]
            if missing:
                raise ValidationError(f"Unknown song ids: {missing}")

        try:
            playlist = Playlist(
                name=name,
                slug=slug,
                description=playlist_data.description,
                image_url=playlist_data.image_url,
                playlist_type=playlist_data.playlist_type.value,
                is_active=playlist_data.is_active,
                tags=playlist_data.tags,
                selection_type=playlist_data.selection_type.value,
                criteria=playlist_data.criteria.model_dump(mode="json") if playlist_data.criteria else None,
                created_by=user_id,
                songs=[PlaylistSong(song_id=song_id) for song_id in song_ids],
                song_count=len(song_ids),
            )
            db.add(playlist)
            db.commit()
            db.refresh(playlist)
            logger.info(f"Playlist created: {playlist.id} for user {user_id}")
        except IntegrityError:
            db.rollback()
            raise ConflictError("Playlist already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating playlist: {e}")
            raise InternalError("Failed to create playlist") from e

        self._invalidate()
        return playlist

    def update_playlist(self, db: Session, playlist_id: int, user_id: int, update_data: PlaylistUpdate) -> Playlist:
        """Update playlist details"""
        playlist = self.get_playlist(db, playlist_id)
        self._check_owner(playlist, user_id)

        changes = {k: v for k, v in update_data.model_dump(mode="json", exclude_unset=True).items() if v is not None or k == "criteria"}
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            clash = db.query(Playlist).filter(Playlist.name == changes["name"], Playlist.id != playlist_id).first()
            if clash:
                raise ConflictError("Playlist already exists")

        try:
            for field, value in changes.items():
                setattr(playlist, field, value)
            if playlist.selection_type == SelectionType.MANUAL.value:
                playlist.song_count = len(playlist.songs)
            db.commit()
            db.refresh(playlist)
            logger.info(f"Playlist updated: {playlist_id}")
        except IntegrityError:
            db.rollback()
            raise ConflictError("Playlist already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating playlist: {e}")
            raise InternalError("Failed to update playlist") from e

        self._invalidate(playlist_id)
        return playlist

    def add_song_to_playlist(self, db: Session, playlist_id: int, user_id: int, song_data: PlaylistSongAdd) -> Playlist:
        """
        Add a song to a playlist, by id or by title and artist.
        An unknown title/artist pair creates the song first.
        """
        playlist = self.get_playlist(db, playlist_id)
        self._check_owner(playlist, user_id)

        if song_data.song_id is not None:
            song = song_service.get_song(db, song_data.song_id)
        else:
            song = song_service.find_by_title_artist(db, song_data.title.strip(), song_data.artist.strip())
            if song is None:
                if not song_data.soundcloud_url:
                    raise ValidationError("soundcloud_url is required to add a new song")
                try:
                    new_song = SongCreate(**song_data.model_dump(exclude={"song_id"}))
                except PydanticValidationError as e:
                    raise ValidationError(e.errors()[0].get("msg", "Invalid song"))
                song = song_service.create_song(db, new_song)

        if song.id in playlist.song_ids:
            logger.info(f"Song already in playlist: {song.id}")
            return playlist

        try:
            playlist.songs.append(PlaylistSong(song_id=song.id))
            if playlist.selection_type == SelectionType.MANUAL.value:
                playlist.song_count = len(playlist.songs)
            db.commit()
            db.refresh(playlist)
            logger.info(f"Song added to playlist {playlist_id}: {song.id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adding song to playlist: {e}")
            raise InternalError("Failed to add song to playlist") from e

        self._invalidate(playlist_id)
        return playlist

# Create singleton instance
playlist_service = PlaylistService()
