import os

# Must be set before songguessr.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import random
import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from songguessr.core.cache import RedisCache
from songguessr.core.security import create_access_token
from songguessr.db.models.playlist import Playlist, PlaylistSong
from songguessr.db.models.song import Song
from songguessr.db.session import Database, get_db
from songguessr.main import app
from songguessr.schemas.user import UserCreate
from songguessr.services.game_service import GameService
from songguessr.services.song_selector import SongSelector
from songguessr.services.stats_service import StatsService
from songguessr.services.user_service import user_service

PASSWORD = "Str0ng!pass"

SONGS = [
    ("Bohemian Rhapsody", "Queen", 1975, ["rock"]),
    ("Billie Jean", "Michael Jackson", 1982, ["pop"]),
    ("Smells Like Teen Spirit", "Nirvana", 1991, ["rock", "grunge"]),
    ("Hey Ya!", "OutKast", 2003, ["hip-hop"]),
    ("Rolling in the Deep", "Adele", 2010, ["pop", "soul"]),
    ("Blinding Lights", "The Weeknd", 2019, ["pop"]),
]


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.init()
    yield database
    database.shutdown()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def client(database):
    def override_get_db():
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return user_service.create_user(
        db, UserCreate(username="player_one", email="player@example.com", password=PASSWORD)
    )


@pytest.fixture
def other_user(db):
    return user_service.create_user(
        db, UserCreate(username="player_two", email="other@example.com", password=PASSWORD)
    )


@pytest.fixture
def make_token():
    def _make(user, expires_delta=None):
        return create_access_token({"sub": str(user.id)}, expires_delta or timedelta(minutes=30))
    return _make


@pytest.fixture
def token(user, make_token):
    return make_token(user)


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def songs(db):
    created = []
    for i, (title, artist, year, genres) in enumerate(SONGS, start=1):
        song = Song(
            soundcloud_url=f"https://soundcloud.com/test-artist/track-{i}",
            soundcloud_track_id=str(1000 + i),
            title=title,
            artist=artist,
            release_year=year,
            genres=genres,
        )
        db.add(song)
        created.append(song)
    db.commit()
    for song in created:
        db.refresh(song)
    return created


@pytest.fixture
def playlist(db, songs):
    """Manual playlist holding the first five songs"""
    playlist = Playlist(
        name="Classics",
        slug="classics",
        selection_type="manual",
        songs=[PlaylistSong(song_id=song.id) for song in songs[:5]],
        song_count=5,
    )
    db.add(playlist)
    db.commit()
    db.refresh(playlist)
    return playlist


@pytest.fixture
def empty_playlist(db):
    playlist = Playlist(name="Anything Goes", slug="anything-goes", selection_type="manual")
    db.add(playlist)
    db.commit()
    db.refresh(playlist)
    return playlist


@pytest.fixture
def stats():
    return StatsService(win_threshold=0.6)


@pytest.fixture
def game(stats):
    return GameService(selector=SongSelector(random.Random(7)), stats=stats)


class FakeRedis:
    def __init__(self):
        self.store = {}

    def setex(self, key, expire, value):
        self.store[key] = value

    def set(self, key, value):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_cache(monkeypatch):
    """In-memory cache swapped in for every service that reads or invalidates it"""
    cache = RedisCache(enabled=False)
    cache.redis_client = FakeRedis()
    for module in ("song_service", "playlist_service", "game_service"):
        monkeypatch.setattr(f"songguessr.services.{module}.cache", cache)
    return cache
