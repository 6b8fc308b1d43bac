"""
Tests for registration, login and token handling.
"""
import time
from datetime import timedelta

import pytest
from jose import jwt

from arcadeboard.config import get_settings
from arcadeboard.exceptions import InvalidCredentialsError
from arcadeboard.models import User
from arcadeboard.security import (
    authenticate, create_access_token, decode_access_token, register_user
)


def test_register_success(client, test_db):
    response = client.post("/api/register", json={"username": "ana", "password": "s3cret"})
    assert response.status_code == 200
    assert response.json()["ok"] is True

    user = test_db.query(User).filter(User.username == "ana").one()
    assert user.password_hash != "s3cret"
    assert user.password_hash.startswith("$2")


@pytest.mark.parametrize("body", [
    {"username": "ana"},
    {"password": "x"},
    {"username": "", "password": "x"},
    {"username": "   ", "password": "x"},
    {"username": "ana", "password": ""},
])
def test_register_missing_fields(client, body):
    response = client.post("/api/register", json=body)
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_register_duplicate_keeps_existing_user(client, test_db):
    client.post("/api/register", json={"username": "ana", "password": "first"})
    original_hash = test_db.query(User).filter(User.username == "ana").one().password_hash

    response = client.post("/api/register", json={"username": "ana", "password": "second"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Username already exists"}
    test_db.expire_all()
    users = test_db.query(User).filter(User.username == "ana").all()
    assert len(users) == 1
    assert users[0].password_hash == original_hash


def test_login_success(client):
    client.post("/api/register", json={"username": "ana", "password": "s3cret"})

    response = client.post("/api/login", json={"username": "ana", "password": "s3cret"})

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["username"] == "ana"

    claims = decode_access_token(data["token"])
    assert claims["username"] == "ana"
    assert claims["sub"]


def test_token_expires_in_seven_days(client):
    client.post("/api/register", json={"username": "ana", "password": "s3cret"})
    token = client.post("/api/login", json={"username": "ana", "password": "s3cret"}).json()["token"]

    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - time.time() == pytest.approx(7 * 86400, abs=60)


def test_wrong_password_and_unknown_user_look_identical(client):
    client.post("/api/register", json={"username": "ana", "password": "s3cret"})

    wrong_password = client.post("/api/login", json={"username": "ana", "password": "nope"})
    unknown_user = client.post("/api/login", json={"username": "bob", "password": "s3cret"})
    missing_fields = client.post("/api/login", json={})

    assert wrong_password.status_code == unknown_user.status_code == missing_fields.status_code == 401
    assert wrong_password.json() == unknown_user.json() == missing_fields.json() == {
        "ok": False, "error": "Invalid credentials"
    }


@pytest.mark.parametrize("body", [
    {"username": 123, "password": "s3cret"},
    {"username": "ana", "password": None},
    {"username": {"$ne": ""}, "password": "s3cret"},
    {"username": ["ana"], "password": 42},
])
def test_login_with_non_string_fields_is_bad_credentials(client, body):
    client.post("/api/register", json={"username": "ana", "password": "s3cret"})

    response = client.post("/api/login", json=body)

    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "Invalid credentials"}


def test_authenticate_raises_for_bad_credentials(test_db):
    register_user(test_db, "ana", "s3cret")

    assert authenticate(test_db, "ana", "s3cret").username == "ana"
    with pytest.raises(InvalidCredentialsError):
        authenticate(test_db, "ana", "wrong")
    with pytest.raises(InvalidCredentialsError):
        authenticate(test_db, "ghost", "s3cret")


def test_expired_token_is_rejected(client, test_db, monkeypatch):
    monkeypatch.setattr(get_settings(), "runs_require_auth", True)
    user = register_user(test_db, "ana", "s3cret")
    token = create_access_token(user, expires_delta=timedelta(seconds=-10))

    response = client.post(
        "/api/runs",
        json={"playerId": "p1", "score": 1, "time": 0, "level": 1},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert response.json()["ok"] is False


def test_token_signed_with_other_secret_is_rejected(client, test_db, monkeypatch):
    monkeypatch.setattr(get_settings(), "runs_require_auth", True)
    register_user(test_db, "ana", "s3cret")
    forged = jwt.encode({"sub": "1", "username": "ana"}, "not-the-secret", algorithm="HS256")

    response = client.post(
        "/api/runs",
        json={"playerId": "p1", "score": 1, "time": 0, "level": 1},
        headers={"Authorization": f"Bearer {forged}"},
    )

    assert response.status_code == 401
