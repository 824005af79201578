# ============================================================================
# FILE: songguessr/services/song_selector.py
# ============================================================================
import random
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session, Query
from songguessr.core.enums import GameMode, SelectionType
from songguessr.core.exceptions import NotFoundError
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.song import Song
import logging

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2030

class SongSelector:
    """Picks the next prompt for a round"""

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def playlist_song_ids(self, db: Session, playlist: Playlist) -> List[int]:
        """
        Explicit members plus, for dynamic playlists, every song matching the
        playlist criteria. Order is stable and ids are unique.
        """
        ids = list(playlist.song_ids)
        if playlist.selection_type == SelectionType.DYNAMIC.value and playlist.criteria:
            ids.extend(self._dynamic_song_ids(db, playlist.criteria))
        return list(dict.fromkeys(ids))

    def _dynamic_song_ids(self, db: Session, criteria: dict) -> List[int]:
        ids: List[int] = []

        artists = criteria.get("artists") or []
        if artists:
            ids.extend(song_id for (song_id,) in db.query(Song.id).filter(Song.artist.in_(artists)))

        genres = {g.lower() for g in criteria.get("genres") or []}
        if genres:
            # genres is a JSON list, so the overlap test happens here
            for song_id, song_genres in db.query(Song.id, Song.genres):
                if genres.intersection(song_genres or []):
                    ids.append(song_id)

        start_year = criteria.get("start_year")
        end_year = criteria.get("end_year")
        if start_year or end_year:
            ids.extend(
                song_id for (song_id,) in db.query(Song.id).filter(
                    Song.release_year >= (start_year or MIN_YEAR),
                    Song.release_year <= (end_year or MAX_YEAR),
                )
            )
        return ids

    def _playable(self, query: Query, game_mode: Optional[str]) -> Query:
        query = query.filter(Song.is_active.is_(True))
        if game_mode == GameMode.CLASSIC.value:
            query = query.filter(Song.title.isnot(None), Song.title != "")
        elif game_mode == GameMode.ARTIST.value:
            query = query.filter(Song.artist.isnot(None), Song.artist != "")
        return query

    def next_song(
        self,
        db: Session,
        playlist: Playlist,
        exclude_ids: Iterable[int] = (),
        game_mode: Optional[str] = None,
    ) -> Song:
        """
        Uniform pick among the playlist's playable songs not in exclude_ids.

        When every member is excluded the whole playlist is eligible again, so a
        game never stalls. A playlist without a song set draws from the full
        catalog. Raises NotFoundError only when nothing at all is playable.
        """
        exclude = set(exclude_ids or ())
        song_ids = self.playlist_song_ids(db, playlist)

        if song_ids:
            pool = self._playable(db.query(Song).filter(Song.id.in_(song_ids)), game_mode).order_by(Song.id).all()
            if not pool:
                raise NotFoundError("Playlist has no playable songs")
            available = [song for song in pool if song.id not in exclude]
            if not available:
                logger.info(f"All {len(pool)} songs of playlist {playlist.id} used, allowing repeats")
            return self.rng.choice(available or pool)

        return self._random_from_catalog(db, exclude, game_mode)

    def _random_from_catalog(self, db: Session, exclude: set, game_mode: Optional[str]) -> Song:
        base = self._playable(db.query(Song), game_mode)
        query = base.filter(Song.id.notin_(exclude)) if exclude else base
        total = query.count()
        if total == 0 and exclude:
            query = base
            total = query.count()
        if total == 0:
            raise NotFoundError("No songs available")

        offset = self.rng.randrange(total)
        return query.order_by(Song.id).offset(offset).first()

# Create singleton instance
song_selector = SongSelector()
