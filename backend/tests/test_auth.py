from datetime import datetime, timedelta, timezone

import jwt
import pytest

from shopledger.config import settings
from shopledger.services.auth_service import (
    AuthException,
    hash_password,
    issue_token,
    verify_password,
    verify_token,
)


def test_password_hashing():
    h = hash_password("s3cret")
    assert h != "s3cret"
    assert verify_password("s3cret", h)
    assert not verify_password("wrong", h)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_token_roundtrip_and_tampering():
    token = issue_token(7, "manager")
    actor = verify_token(token)
    assert actor.user_id == 7
    assert actor.role == "manager"
    assert actor.has_role("admin", "manager")

    header, payload, sig = token.split(".")
    assert verify_token(f"{header}.{payload}.{sig[:-2]}xx") is None
    assert verify_token("garbage") is None
    assert verify_token(None) is None


def test_foreign_or_unsigned_tokens_are_rejected():
    claims = {"sub": "1", "role": "admin", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}
    assert verify_token(jwt.encode(claims, "some-other-key", algorithm="HS256")) is None
    assert verify_token(jwt.encode(claims, None, algorithm="none")) is None

    no_role = {"sub": "1", "exp": claims["exp"]}
    assert verify_token(jwt.encode(no_role, settings.SECRET_KEY, algorithm="HS256")) is None


def test_token_is_a_standard_hs256_jwt():
    token = issue_token(3, "sales")
    assert jwt.get_unverified_header(token)["alg"] == "HS256"
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    assert claims["sub"] == "3"
    assert claims["role"] == "sales"
    assert claims["exp"] - claims["iat"] == settings.TOKEN_TTL_MINUTES * 60


def test_expired_token_is_rejected(client):
    token = issue_token(1, "admin", ttl_minutes=-1)
    assert verify_token(token) is None
    res = client.get("/api/sales", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_login_sets_cookie_and_me(client, seed):
    seed.user(email="admin@shop.local", password="letmein", role="admin")

    res = client.post("/api/auth/login", json={"email": "Admin@Shop.local", "password": "letmein"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["user"]["role"] == "admin"
    assert body["user"]["last_login"] is not None
    assert "password_hash" not in body["user"]
    assert res.cookies.get("token") == body["token"]

    # the cookie alone authenticates follow-up requests
    me = client.get("/api/auth/me")
    assert me.json()["authenticated"] is True
    assert me.json()["user"]["email"] == "admin@shop.local"
    assert client.get("/api/sales").status_code == 200

    client.post("/api/auth/logout")
    client.cookies.clear()
    assert client.get("/api/auth/me").json() == {"authenticated": False}


def test_login_failures(client, seed):
    seed.user(email="clerk@shop.local", password="right")

    res = client.post("/api/auth/login", json={"email": "clerk@shop.local", "password": "wrong"})
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid credentials"}

    res = client.post("/api/auth/login", json={"email": "nobody@shop.local", "password": "right"})
    assert res.status_code == 401

    res = client.post("/api/auth/login", json={"email": "clerk@shop.local"})
    assert res.status_code == 400


def test_create_user_rejects_unknown_role(seed):
    with pytest.raises(AuthException):
        seed.user(email="x@shop.local", role="overlord")
