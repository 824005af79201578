from datetime import timedelta
from songguessr.db.models.user import User

SIGNUP = {"username": "newplayer", "email": "New@Example.com", "password": "Str0ng!pass"}


def test_signup_creates_user(client, db):
    response = client.post("/api/v1/auth/signup", json=SIGNUP)
    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "newplayer"
    assert data["email"] == "new@example.com"
    assert data["games_played"] == 0
    assert data["win_rate"] == 0.0
    assert "password" not in data and "hashed_password" not in data


def test_signup_duplicate_email_conflicts(client, db):
    assert client.post("/api/v1/auth/signup", json=SIGNUP).status_code == 201
    response = client.post("/api/v1/auth/signup", json={**SIGNUP, "username": "someoneelse"})
    assert response.status_code == 409
    assert db.query(User).filter(User.email == "new@example.com").count() == 1


def test_signup_duplicate_username_conflicts(client):
    client.post("/api/v1/auth/signup", json=SIGNUP)
    response = client.post("/api/v1/auth/signup", json={**SIGNUP, "email": "other@example.com"})
    assert response.status_code == 409


def test_signup_missing_fields(client):
    response = client.post("/api/v1/auth/signup", json={"username": "abc"})
    assert response.status_code == 400
    assert "detail" in response.json()


def test_signup_weak_password(client):
    response = client.post("/api/v1/auth/signup", json={**SIGNUP, "password": "password"})
    assert response.status_code == 400


def test_login_returns_token(client, user):
    response = client.post("/api/v1/auth/login", json={"email": "player@example.com", "password": "Str0ng!pass"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["token"] == data["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == user.id


def test_login_wrong_password(client, user):
    response = client.post("/api/v1/auth/login", json={"email": "player@example.com", "password": "Wr0ng!pass"})
    assert response.status_code == 401


def test_login_unknown_email(client, user):
    response = client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "Str0ng!pass"})
    assert response.status_code == 404


def test_me_requires_token(client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authenticated"}


def test_me_with_garbage_token(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_me_for_deleted_user(client, db, user, auth_headers):
    db.delete(user)
    db.commit()
    assert client.get("/api/v1/auth/me", headers=auth_headers).status_code == 404


def test_validate(client, user, auth_headers, make_token):
    response = client.get("/api/v1/auth/validate", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"valid": True, "user_id": user.id}

    expired = make_token(user, timedelta(seconds=-10))
    response = client.get("/api/v1/auth/validate", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
