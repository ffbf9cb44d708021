from datetime import timedelta

import pytest

from api.app.auth import create_access_token, hash_password, verify_password, verify_token
from api.app.errors import TokenExpired, Unauthorized


def test_register_then_login(client):
    resp = client.post(
        "/api/auth/register", json={"username": "admin", "password": "secret123"}
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["username"] == "admin"
    assert "password" not in resp.text

    resp = client.post(
        "/api/auth/login", json={"username": "admin", "password": "secret123"}
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 3600

    resp = client.post(
        "/api/sweets",
        json={"name": "Jalebi", "category": "Fried", "price": 1.5, "quantity": 4},
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert resp.status_code == 201


def test_duplicate_username_is_rejected(client):
    creds = {"username": "admin", "password": "secret123"}
    assert client.post("/api/auth/register", json=creds).status_code == 201
    resp = client.post("/api/auth/register", json=creds)
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Username already taken"


@pytest.mark.parametrize(
    "creds",
    [
        {"username": "admin", "password": "wrong-password"},
        {"username": "nobody", "password": "secret123"},
    ],
)
def test_bad_credentials_are_401(client, creds):
    client.post("/api/auth/register", json={"username": "admin", "password": "secret123"})
    resp = client.post("/api/auth/login", json=creds)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_short_password_is_400(client):
    resp = client.post("/api/auth/register", json={"username": "admin", "password": "x"})
    assert resp.status_code == 400


def test_expired_token(client, settings):
    token = create_access_token("tester", settings, expires_delta=timedelta(seconds=-5))
    resp = client.delete(
        "/api/sweets/1", headers={"Authorization": f"Bearer {token.access_token}"}
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "TOKEN_EXPIRED"


def test_token_signed_with_other_key(settings):
    token = create_access_token("tester", settings.model_copy(update={"secret_key": "y" * 32}))
    with pytest.raises(Unauthorized):
        verify_token(token.access_token, settings)


def test_verify_token_returns_subject(settings):
    token = create_access_token("tester", settings)
    assert verify_token(token.access_token, settings) == "tester"
    expired = create_access_token("tester", settings, timedelta(seconds=-5))
    with pytest.raises(TokenExpired):
        verify_token(expired.access_token, settings)


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("secret123", "not-a-hash")
