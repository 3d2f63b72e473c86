# backend/memberdb/security.py

"""
Authentication for the member portal.

Members and admins log in with a username and password (Argon2 hashes)
and receive a bearer JWT whose `sub` is the user id and whose `role` is
"member" or "admin". The dependencies at the bottom resolve that token
back to a User for the training endpoints: active accounts may use the
member workflows, and only admins reach rosters, overrides, exports and
catalogue maintenance.

Accounts are created by an admin script or the seed script; there is no
self-service sign-up here.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from .database import get_db
from memberdb.apps.accounts import models as account_models

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

# Must be set per deployment; tokens signed with the default are forgeable.
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ---------------------------------------------------------------------------
# PASSWORDS
# ---------------------------------------------------------------------------

_pwd_hasher = PasswordHasher(
    time_cost=_int_env("ARGON2_TIME_COST", 3),
    memory_cost=_int_env("ARGON2_MEMORY_COST", 65536),  # KiB
    parallelism=_int_env("ARGON2_PARALLELISM", 2),
    hash_len=_int_env("ARGON2_HASH_LEN", 32),
    salt_len=_int_env("ARGON2_SALT_LEN", 16),
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Only Argon2 hashes are issued by this portal; anything else never matches.
    if not plain_password or not hashed_password:
        return False
    if not hashed_password.startswith("$argon2"):
        return False
    try:
        return _pwd_hasher.verify(hashed_password, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def get_password_hash(password: str) -> str:
    return _pwd_hasher.hash(password)


# ---------------------------------------------------------------------------
# TOKENS
# ---------------------------------------------------------------------------


def create_access_token(
    *,
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign the login claims (`sub`, `role`) with an expiry."""
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, SECRET_KEY, algorithm=JWT_ALGORITHM)


def _user_id_from_token(token: str) -> Optional[int]:
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    subject = claims.get("sub")
    if subject is None:
        return None
    try:
        return int(str(subject).strip())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# DEPENDENCIES
# ---------------------------------------------------------------------------


def _session_rejected() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Sesi tidak valid, silakan login kembali",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> account_models.User:
    """The account behind the bearer token; 401 when it cannot be resolved."""
    user_id = _user_id_from_token(token)
    if user_id is None:
        raise _session_rejected()

    user = db.get(account_models.User, user_id)
    if user is None:
        raise _session_rejected()
    return user


def get_current_active_user(
    current_user: account_models.User = Depends(get_current_user),
) -> account_models.User:
    # A token issued before the account was disabled stays signed; refuse it here.
    if not getattr(current_user, "is_active", False):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Akun dinonaktifkan",
        )
    return current_user


def require_admin(
    current_user: account_models.User = Depends(get_current_active_user),
) -> account_models.User:
    """Rosters, status overrides, exports and catalogue maintenance."""
    if current_user.role != account_models.AccountRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Hanya admin yang dapat mengakses fitur ini",
        )
    return current_user
