import pytest
from datetime import timedelta
from jose import jwt
from songguessr.config import settings
from songguessr.core.exceptions import AuthError
from songguessr.core.route_policy import RouteRule, requires_identity
from songguessr.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    resolve_identity,
    strip_bearer,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("Str0ng!pass")
    assert hashed != "Str0ng!pass"
    assert verify_password("Str0ng!pass", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_against_garbage_hash():
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_carries_user_id():
    token = create_access_token({"sub": "42"})
    assert decode_access_token(token)["sub"] == "42"
    assert resolve_identity(token).user_id == 42
    assert resolve_identity(f"Bearer {token}").user_id == 42


@pytest.mark.parametrize("credential", [None, "", "garbage", "Bearer", "Bearer garbage", "Basic dXNlcjpwYXNz"])
def test_unusable_credentials_resolve_to_no_identity(credential):
    assert resolve_identity(credential) is None


def test_expired_token_is_no_identity():
    token = create_access_token({"sub": "1"}, timedelta(seconds=-5))
    assert resolve_identity(token) is None
    with pytest.raises(AuthError) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token expired"


def test_forged_token_is_no_identity():
    forged = jwt.encode({"sub": "1"}, "some-other-key", algorithm=settings.ALGORITHM)
    assert resolve_identity(forged) is None


@pytest.mark.parametrize("sub", [None, "abc", ""])
def test_token_with_bad_subject_is_no_identity(sub):
    claims = {} if sub is None else {"sub": sub}
    assert resolve_identity(create_access_token(claims)) is None


def test_missing_signing_key_raises(monkeypatch):
    token = create_access_token({"sub": "1"})
    monkeypatch.setattr(settings, "SECRET_KEY", "")
    with pytest.raises(RuntimeError):
        resolve_identity(token)


def test_strip_bearer():
    assert strip_bearer("Bearer abc") == "abc"
    assert strip_bearer("bearer   abc ") == "abc"
    assert strip_bearer("abc") == "abc"
    assert strip_bearer("  ") is None


# ----------------------------------------------------------------------------
# Route policy
# ----------------------------------------------------------------------------

@pytest.mark.parametrize("path,method", [
    ("/api/v1/auth/me", "GET"),
    ("/api/v1/auth/validate", "get"),
    ("/api/v1/me/game-history", "GET"),
    ("/api/v1/me/recalculate-stats", "POST"),
    ("/api/v1/game/start", "POST"),
    ("/api/v1/game/submit", "POST"),
    ("/api/v1/game/session/abc-123", "GET"),
    ("/api/v1/playlists", "POST"),
    ("/api/v1/playlists/7", "PATCH"),
    ("/api/v1/playlists/7/songs", "POST"),
    ("/api/v1/songs/3/", "PATCH"),
])
def test_protected_routes(path, method):
    assert requires_identity(path, method)


@pytest.mark.parametrize("path,method", [
    ("/api/v1/auth/login", "POST"),
    ("/api/v1/auth/signup", "POST"),
    ("/api/v1/auth/me", "POST"),
    ("/api/v1/game/guest/start", "POST"),
    ("/api/v1/game/guest/next-song", "POST"),
    ("/api/v1/playlists", "GET"),
    ("/api/v1/playlists/7", "GET"),
    ("/api/v1/playlists/7/songs", "GET"),
    ("/api/v1/game/session", "GET"),
    ("/api/v1/game/session/a/b", "GET"),
    ("/health", "GET"),
])
def test_public_routes(path, method):
    assert not requires_identity(path, method)


def test_exact_rule_decides_before_wildcards():
    rules = [
        RouteRule("/items/*", frozenset({"GET"})),
        RouteRule("/items/public", frozenset({"POST"})),
    ]
    assert not requires_identity("/items/public", "GET", rules)
    assert requires_identity("/items/public", "POST", rules)
    assert requires_identity("/items/other", "GET", rules)


def test_first_matching_wildcard_wins():
    rules = [
        RouteRule("/a/*/c", frozenset({"PUT"})),
        RouteRule("/a/*/*", frozenset({"GET"})),
    ]
    assert requires_identity("/a/b/c", "GET", rules)
    assert requires_identity("/a/b/c", "PUT", rules)
    assert not requires_identity("/a/b/c", "DELETE", rules)
