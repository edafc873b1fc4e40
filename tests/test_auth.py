import time
from datetime import timedelta

from jose import jwt

from auth import create_access_token, decode_access_token, get_password_hash, verify_password
from config import settings


def register(client, email="new.teacher@example.com", password="pa55word", **extra):
    body = {"full_name": "New Teacher", "email": email, "password": password}
    body.update(extra)
    return client.post("/register", json=body)


def test_register_then_login_returns_token_for_same_user(client):
    res = register(client, role="admin")
    assert res.status_code == 201
    data = res.json()
    assert data["message"] == "User registered successfully"
    assert data["user"]["role"] == "admin"
    assert "password" not in data["user"]
    user_id = data["user"]["id"]

    res = client.post(
        "/login", json={"email": "new.teacher@example.com", "password": "pa55word"}
    )
    assert res.status_code == 200
    token = res.json()["token"]
    identity = decode_access_token(token)
    assert identity.id == user_id
    assert identity.role == "admin"


def test_register_defaults_to_teacher_role(client):
    res = register(client)
    assert res.json()["user"]["role"] == "teacher"


def test_register_twice_with_same_email_fails(client):
    assert register(client).status_code == 201
    res = register(client)
    assert res.status_code == 400
    assert res.json() == {"error": "User already exists"}


def test_register_rejects_unknown_role(client):
    res = register(client, role="principal")
    assert res.status_code == 400
    assert "role" in res.json()["error"]


def test_password_is_stored_hashed(client, db):
    import models as db_models

    register(client)
    user = db.query(db_models.User).first()
    assert user.hashed_password != "pa55word"
    assert verify_password("pa55word", user.hashed_password)


def test_login_errors_do_not_reveal_which_part_was_wrong(client):
    register(client)
    wrong_password = client.post(
        "/login", json={"email": "new.teacher@example.com", "password": "nope"}
    )
    unknown_user = client.post(
        "/login", json={"email": "ghost@example.com", "password": "pa55word"}
    )
    assert wrong_password.status_code == unknown_user.status_code == 400
    assert wrong_password.json() == unknown_user.json() == {"error": "Invalid credentials"}


def test_login_email_is_case_insensitive(client):
    register(client)
    res = client.post(
        "/login", json={"email": "New.Teacher@Example.com", "password": "pa55word"}
    )
    assert res.status_code == 200


def test_token_expires_after_seven_days(client):
    res = register(client)
    claims = jwt.get_unverified_claims(res.json()["token"])
    expected = time.time() + settings.ACCESS_TOKEN_EXPIRE_DAYS * 86400
    assert settings.ACCESS_TOKEN_EXPIRE_DAYS == 7
    assert abs(claims["exp"] - expected) < 120


def test_protected_route_without_token_is_unauthorized(client):
    for method, path in [
        ("get", "/api/students"),
        ("get", "/api/grades/all"),
        ("get", "/api/attendance/stats"),
        ("get", "/api/fees"),
        ("get", "/api/notifications"),
        ("get", "/api/stats/dashboard"),
        ("post", "/logout"),
    ]:
        res = getattr(client, method)(path)
        assert res.status_code == 401, path
        assert res.json() == {"error": "Access denied. No token provided."}


def test_tampered_token_is_rejected(client, user):
    token = create_access_token({"sub": user.id, "role": user.role})
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    res = client.get("/api/students", headers={"Authorization": f"Bearer {tampered}"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid token"}


def test_token_signed_with_other_secret_is_rejected(client, user):
    token = jwt.encode({"sub": user.id, "role": "admin"}, "other-secret", algorithm="HS256")
    res = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 400


def test_expired_token_is_rejected(client, user):
    token = create_access_token(
        {"sub": user.id, "role": user.role}, expires_delta=timedelta(seconds=-10)
    )
    res = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid token"}


def test_logout_is_acknowledged_and_token_stays_valid(client, auth_headers):
    res = client.post("/logout", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Logged out successfully"}
    assert client.get("/api/students", headers=auth_headers).status_code == 200


def test_me_returns_current_user(client, user, auth_headers):
    res = client.get("/api/auth/me", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["email"] == user.email


def test_password_hash_roundtrip():
    hashed = get_password_hash("s3cret")
    assert verify_password("s3cret", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("s3cret", "not-a-hash")
