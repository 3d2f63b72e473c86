from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from memberdb import security
from memberdb.apps.accounts import models
from memberdb.database import get_db, get_read_db
from memberdb.main import app

PASSWORD = "Rahasia123!"


@pytest.fixture()
def client(db_session):
    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_read_db] = _override_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _create_user(db_session, *, username="siti", is_verified=True, is_active=True) -> models.User:
    user = models.User(
        username=username,
        email=f"{username}@example.org",
        hashed_password=security.get_password_hash(PASSWORD),
        is_verified=is_verified,
        is_active=is_active,
        role=models.AccountRole.MEMBER,
    )
    db_session.add(user)
    db_session.commit()
    return user


def test_password_hash_round_trip():
    hashed = security.get_password_hash(PASSWORD)

    assert hashed.startswith("$argon2")
    assert security.verify_password(PASSWORD, hashed) is True
    assert security.verify_password("salah", hashed) is False
    assert security.verify_password(PASSWORD, "$2b$12$legacybcrypt") is False


def test_login_issues_token_for_user(client, db_session):
    user = _create_user(db_session)

    response = client.post("/auth/login", json={"username": "siti", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == user.id
    claims = jwt.decode(body["access_token"], security.SECRET_KEY, algorithms=[security.JWT_ALGORITHM])
    assert claims["sub"] == str(user.id)
    assert claims["role"] == "member"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "siti"


@pytest.mark.parametrize(
    "username, password, flags, message",
    [
        ("siti", "salah", {}, "Username atau password salah"),
        ("nobody", PASSWORD, {}, "Username atau password salah"),
        ("siti", PASSWORD, {"is_verified": False}, "Akun belum diverifikasi, cek email Anda"),
        ("siti", PASSWORD, {"is_active": False}, "Akun dinonaktifkan"),
    ],
)
def test_login_rejections(client, db_session, username, password, flags, message):
    _create_user(db_session, **flags)

    response = client.post("/auth/login", json={"username": username, "password": password})

    assert response.status_code == 401
    assert response.json()["detail"] == message


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def _bearer(user_id) -> dict:
    token = security.create_access_token(data={"sub": str(user_id), "role": "member"})
    return {"Authorization": f"Bearer {token}"}


def test_token_for_disabled_account_is_refused(client, db_session):
    user = _create_user(db_session)
    headers = _bearer(user.id)
    user.is_active = False
    db_session.commit()

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Akun dinonaktifkan"


@pytest.mark.parametrize("subject", ["9999", "bukan-angka"])
def test_token_for_unknown_subject_is_refused(client, db_session, subject):
    _create_user(db_session)

    response = client.get("/auth/me", headers=_bearer(subject))

    assert response.status_code == 401
    assert response.json()["detail"] == "Sesi tidak valid, silakan login kembali"
    assert response.headers["www-authenticate"] == "Bearer"


def test_members_cannot_reach_admin_routes(client, db_session):
    user = _create_user(db_session)

    response = client.get("/pelatihan/peserta-pelatihan/1/pendaftar", headers=_bearer(user.id))

    assert response.status_code == 403
    assert response.json()["detail"] == "Hanya admin yang dapat mengakses fitur ini"
