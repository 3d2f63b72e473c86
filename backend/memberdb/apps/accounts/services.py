# backend/memberdb/apps/accounts/services.py

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from memberdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    verify_password,
)

from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account cannot log in."""


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _normalise_username(value: str) -> str:
    return value.strip()


def get_user_by_username(db: Session, *, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.username == _normalise_username(username))
        .first()
    )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    """
    Password-based login by username.

    Unverified or deactivated accounts are refused with a specific message;
    wrong username and wrong password share one generic message.
    """
    user = get_user_by_username(db, username=login_req.username)
    if not user or not verify_password(login_req.password, user.hashed_password):
        logger.info("Login failed", extra={"username": login_req.username})
        raise AuthenticationError("Username atau password salah")

    if not user.is_verified:
        raise AuthenticationError("Akun belum diverifikasi, cek email Anda")
    if not user.is_active:
        raise AuthenticationError("Akun dinonaktifkan")

    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": str(user.id),
        "role": user.role.value if user.role is not None else None,
    }

    access_token = create_access_token(
        data=payload,
        expires_delta=expires_delta,
    )
    return access_token, int(expires_delta.total_seconds())
