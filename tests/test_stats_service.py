import math
import threading
import pytest
from datetime import datetime, timedelta
from songguessr.core.enums import GameStatus
from songguessr.core.exceptions import NotFoundError, StateError, ValidationError
from songguessr.db.models.game_session import GameSession
from songguessr.db.models.playlist import Playlist
from songguessr.db.models.user import User
from songguessr.db.session import Database
from songguessr.schemas.history import UserStats

GAMES = [(17, 25), (25, 25), (3, 50), (30, 50), (0, 5), (9, 15)]


def _completed(db, user, playlist, score, max_score, ended_at=None):
    start = datetime(2024, 1, 1) if ended_at is None else ended_at - timedelta(minutes=5)
    session = GameSession(
        user_id=user.id,
        playlist_id=playlist.id,
        game_mode="classic",
        status=GameStatus.COMPLETED.value,
        total_rounds=max_score // 5,
        current_round=max_score // 5,
        total_score=score,
        max_possible_score=max_score,
        client_session_id="client",
        session_start_time=start,
        session_end_time=ended_at or start + timedelta(minutes=5),
    )
    db.add(session)
    db.commit()
    return session


def _stored(db, user):
    db.expire_all()
    return UserStats.model_validate(db.get(User, user.id))


@pytest.mark.parametrize("max_score,win_score", [(5, 3), (25, 15), (15, 9), (50, 30), (100, 60)])
def test_win_score(stats, max_score, win_score):
    assert stats.win_score(max_score) == win_score
    assert stats.is_win(win_score, max_score)
    assert not stats.is_win(win_score - 1, max_score)


def test_zero_max_is_never_a_win(stats):
    assert not stats.is_win(0, 0)


def test_threshold_is_configurable(stats):
    from songguessr.services.stats_service import StatsService
    assert StatsService(win_threshold=0.8).win_score(25) == 20


def test_average_tracks_totals_after_each_completion(db, stats, user, playlist):
    for i, (score, max_score) in enumerate(GAMES, start=1):
        session = _completed(db, user, playlist, score, max_score)
        stats.record_completion(db, user.id, session)
        current = _stored(db, user)
        assert current.games_played == i
        assert current.average_score == pytest.approx(current.total_score / current.games_played)

    final = _stored(db, user)
    assert final.total_score == sum(score for score, _ in GAMES)
    assert final.best_score == 30
    # 17/25, 25/25, 30/50 and 9/15 reach ceil(0.6 * max)
    assert final.games_won == 4
    assert final.games_won == sum(1 for s, m in GAMES if s >= math.ceil(0.6 * m))


def test_fold_matches_recorded_completion(db, stats, user, playlist):
    expected = UserStats()
    for score, max_score in GAMES:
        expected = stats.fold(expected, score, max_score)
        stats.record_completion(db, user.id, _completed(db, user, playlist, score, max_score))
    assert _stored(db, user) == expected


def test_record_completion_rejects_active_session(db, stats, user, playlist):
    session = _completed(db, user, playlist, 5, 25)
    session.status = GameStatus.ACTIVE.value
    with pytest.raises(StateError):
        stats.record_completion(db, user.id, session)


def test_record_completion_rejects_foreign_session(db, stats, user, other_user, playlist):
    session = _completed(db, user, playlist, 5, 25)
    with pytest.raises(ValidationError):
        stats.record_completion(db, other_user.id, session)


def test_record_completion_unknown_user(db, stats, user, playlist):
    session = _completed(db, user, playlist, 5, 25)
    session.user_id = None
    with pytest.raises(NotFoundError):
        stats.record_completion(db, 12345, session)


def test_recalculate_repairs_corrupted_stats(db, stats, user, playlist):
    base = datetime(2024, 3, 1)
    for i, (score, max_score) in enumerate(GAMES):
        _completed(db, user, playlist, score, max_score, ended_at=base + timedelta(hours=i))

    corrupted = db.get(User, user.id)
    corrupted.total_score = 9999
    corrupted.games_played = 1
    corrupted.games_won = 42
    corrupted.best_score = -3
    corrupted.average_score = 1.5
    db.commit()

    expected = UserStats()
    for score, max_score in GAMES:
        expected = stats.fold(expected, score, max_score)

    first = stats.recalculate(db, user.id)
    second = stats.recalculate(db, user.id)
    assert first == second == expected
    assert _stored(db, user) == expected


def test_recalculate_ignores_unfinished_games(db, stats, user, playlist):
    _completed(db, user, playlist, 20, 25)
    abandoned = _completed(db, user, playlist, 25, 25)
    abandoned.status = GameStatus.ABANDONED.value
    db.commit()

    result = stats.recalculate(db, user.id)
    assert result.games_played == 1
    assert result.total_score == 20


def test_recalculate_without_games_zeroes_stats(db, stats, user):
    user.total_score = 10
    user.games_played = 2
    db.commit()
    assert stats.recalculate(db, user.id) == UserStats()


def test_recalculate_unknown_user(db, stats):
    with pytest.raises(NotFoundError):
        stats.recalculate(db, 404)


def test_history_most_recent_first_and_limited(db, stats, user, playlist):
    base = datetime(2024, 5, 1)
    for i in range(5):
        _completed(db, user, playlist, i, 25, ended_at=base + timedelta(days=i))

    history = stats.get_history(db, user.id, limit=3)
    assert [item.total_score for item in history] == [4, 3, 2]
    assert all(item.playlist_name == playlist.name for item in history)


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_history_limit_bounds(db, stats, user, limit):
    with pytest.raises(ValidationError):
        stats.get_history(db, user.id, limit=limit)


def test_concurrent_completions_do_not_lose_updates(tmp_path, stats):
    database = Database(f"sqlite:///{tmp_path}/concurrent.db", connect_timeout=30)
    database.init()
    with database.session() as setup:
        user = User(username="racer", email="racer@example.com", hashed_password="x")
        playlist = Playlist(name="Race", slug="race")
        setup.add_all([user, playlist])
        setup.commit()
        sessions = [_completed(setup, user, playlist, 5, 25).id for _ in range(8)]

    errors = []

    def finish(session_id):
        with database.session() as db:
            try:
                stats.record_completion(db, user.id, db.get(GameSession, session_id))
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=finish, args=(session_id,)) for session_id in sessions]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    with database.session() as db:
        stored = db.get(User, user.id)
        assert stored.games_played == 8
        assert stored.total_score == 40
        assert stored.average_score == 5.0
    database.shutdown()
