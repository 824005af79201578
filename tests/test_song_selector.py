import random
import pytest
from songguessr.core.exceptions import NotFoundError
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.song import Song
from songguessr.services.song_selector import SongSelector


@pytest.fixture
def selector():
    return SongSelector(random.Random(42))


def test_picks_only_playlist_members(db, selector, playlist, songs):
    members = set(playlist.song_ids)
    for _ in range(50):
        assert selector.next_song(db, playlist).id in members


def test_exclusions_are_respected(db, selector, playlist):
    excluded = playlist.song_ids[:4]
    for _ in range(20):
        assert selector.next_song(db, playlist, excluded).id == playlist.song_ids[4]


def test_falls_back_to_whole_playlist_when_everything_is_excluded(db, selector, playlist):
    song = selector.next_song(db, playlist, playlist.song_ids)
    assert song.id in playlist.song_ids


def test_empty_playlist_draws_from_catalog(db, selector, empty_playlist, songs):
    catalog = {song.id for song in songs}
    seen = {selector.next_song(db, empty_playlist).id for _ in range(60)}
    assert seen <= catalog
    assert len(seen) > 1


def test_catalog_draw_honours_exclusions(db, selector, empty_playlist, songs):
    excluded = [song.id for song in songs[1:]]
    assert selector.next_song(db, empty_playlist, excluded).id == songs[0].id


def test_empty_catalog_raises(db, selector, empty_playlist):
    with pytest.raises(NotFoundError):
        selector.next_song(db, empty_playlist)


def test_inactive_and_untitled_songs_are_skipped(db, selector, playlist, songs):
    for song in songs[:4]:
        song.is_active = False
    db.commit()
    assert selector.next_song(db, playlist).id == songs[4].id

    songs[4].title = None
    db.commit()
    with pytest.raises(NotFoundError):
        selector.next_song(db, playlist, game_mode="classic")
    # artist mode only needs the artist
    assert selector.next_song(db, playlist, game_mode="artist").id == songs[4].id


def test_dynamic_playlist_uses_criteria(db, selector, songs):
    playlist = Playlist(
        name="Nineties and Pop",
        slug="nineties-and-pop",
        selection_type="dynamic",
        criteria={"genres": ["grunge"], "start_year": 2015, "end_year": 2020},
    )
    db.add(playlist)
    db.commit()

    ids = selector.playlist_song_ids(db, playlist)
    titles = {db.get(Song, song_id).title for song_id in ids}
    assert titles == {"Smells Like Teen Spirit", "Blinding Lights"}
    for _ in range(20):
        assert selector.next_song(db, playlist).id in ids


def test_dynamic_playlist_by_artist(db, selector, songs):
    playlist = Playlist(
        name="Queen Only",
        slug="queen-only",
        selection_type="dynamic",
        criteria={"artists": ["Queen"]},
    )
    db.add(playlist)
    db.commit()
    assert selector.playlist_song_ids(db, playlist) == [songs[0].id]
