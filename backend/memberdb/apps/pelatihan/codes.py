# backend/memberdb/apps/pelatihan/codes.py
"""
Registration code generator.

A code is the member's identity number, shifted one code point up, mixed
with nine random alphanumerics, shuffled, then shifted two more code points
up. The result is tied to the member without being guessable from the
identity alone, and is checked against every stored code before use.

The database UNIQUE constraint on peserta_pelatihan.kode remains the final
arbiter; the lookup here only avoids a predictable insert failure.
"""

from __future__ import annotations

import logging
import os
import secrets
import string
from random import Random
from typing import Callable, Optional

from sqlalchemy.orm import Session

from . import errors, models

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_letters + string.digits
RANDOM_RUN_LENGTH = 9
IDENTITY_SHIFT = 1
CODE_SHIFT = 2

MAX_ATTEMPTS = int(os.getenv("PELATIHAN_CODE_MAX_ATTEMPTS", "100"))

_system_random = secrets.SystemRandom()


def _shift(text: str, offset: int) -> str:
    return "".join(chr(ord(ch) + offset) for ch in text)


def _random_run(rng: Random, length: int = RANDOM_RUN_LENGTH) -> str:
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(length))


def build_candidate(identity: str, *, rng: Optional[Random] = None) -> str:
    """
    Build one candidate code for `identity` (no uniqueness check).
    """
    if not identity:
        raise errors.MissingIdentityError()

    rng = rng or _system_random
    chars = list(_shift(identity, IDENTITY_SHIFT) + _random_run(rng))
    rng.shuffle(chars)
    return _shift("".join(chars), CODE_SHIFT)


def generate_unique_code(
    identity: Optional[str],
    *,
    is_taken: Callable[[str], bool],
    rng: Optional[Random] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """
    Return a candidate for which `is_taken` is False.

    A missing identity fails immediately. Running out of attempts means the
    code space for this identity is close to exhausted and is treated as an
    infrastructure fault.
    """
    if not identity:
        raise errors.MissingIdentityError()

    for attempt in range(1, max_attempts + 1):
        candidate = build_candidate(identity, rng=rng)
        if not is_taken(candidate):
            if attempt > 1:
                logger.warning(
                    "Registration code collided before a free one was found",
                    extra={"attempts": attempt},
                )
            return candidate

    raise errors.CodeSpaceExhaustedError(
        f"Tidak dapat membuat kode unik setelah {max_attempts} percobaan"
    )


def code_exists(db: Session, kode: str) -> bool:
    return (
        db.query(models.PesertaPelatihan.id)
        .filter(models.PesertaPelatihan.kode == kode)
        .first()
        is not None
    )


def generate_registration_code(db: Session, identity: Optional[str]) -> str:
    """Generate a code that no registration row currently holds."""
    return generate_unique_code(identity, is_taken=lambda kode: code_exists(db, kode))
