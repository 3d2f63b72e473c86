# backend/memberdb/apps/pelatihan/badges.py
"""
Badge ledger codec.

members.badge stores one JSON object keyed by generation (the last two
characters of the member's identity number). Each generation maps dense
string indices "0".."n-1" to one entry per training:

    {"25": {"0": {"pelatihan_id": 7, "status": "ongoing", ...}}}

In memory the ledger is `Dict[str, List[BadgeEntry]]`; list position is
the stored index. Older rows sometimes hold a JSON array per generation;
those are accepted and rewritten as objects on the next encode. Any other
shape raises BadgeDecodeError rather than being coerced.

Mutators never modify their input ledger.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from . import errors


class BadgeStatus(str, enum.Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    UNCOMPLETED = "uncompleted"


class Durasi(BaseModel):
    """Elapsed time between registration and completion (30-day months)."""

    tahun: int = Field(0, ge=0)
    bulan: int = Field(0, ge=0)
    hari: int = Field(0, ge=0)
    jam: int = Field(0, ge=0)
    menit: int = Field(0, ge=0)
    detik: int = Field(0, ge=0)


class BadgeEntry(BaseModel):
    pelatihan_id: int
    judul_pelatihan: Optional[str] = None
    deskripsi_pelatihan: Optional[str] = None
    narasumber: Optional[str] = None
    badge: Optional[str] = None
    key: Optional[str] = None

    status: BadgeStatus = BadgeStatus.ONGOING
    waktu_daftar: Optional[datetime] = None
    waktu_selesai: Optional[datetime] = None
    durasi: Optional[Durasi] = None

    class Config:
        # Unknown keys written by older clients are carried through untouched.
        extra = "allow"


Ledger = Dict[str, List[BadgeEntry]]
RawLedger = Union[str, bytes, bytearray, Mapping[str, Any], None]


# ---------------------------------------------------------------------------
# GENERATION KEYS
# ---------------------------------------------------------------------------


def generation_key(no_identitas: Optional[str]) -> str:
    if not no_identitas:
        raise errors.MissingIdentityError()
    return no_identitas[-2:]


# ---------------------------------------------------------------------------
# DECODE / ENCODE
# ---------------------------------------------------------------------------


def _decode_bucket(key: str, bucket: Any) -> List[BadgeEntry]:
    if isinstance(bucket, list):
        items = bucket
    elif isinstance(bucket, Mapping):
        expected = {str(i) for i in range(len(bucket))}
        if set(map(str, bucket.keys())) != expected:
            raise errors.BadgeDecodeError(
                f"Badge generasi {key} memiliki indeks yang tidak berurutan"
            )
        items = [bucket[k] for k in sorted(bucket.keys(), key=lambda k: int(k))]
    else:
        raise errors.BadgeDecodeError(f"Badge generasi {key} bukan objek atau daftar")

    entries: List[BadgeEntry] = []
    seen = set()
    for item in items:
        try:
            entry = BadgeEntry.model_validate(item)
        except ValidationError as exc:
            raise errors.BadgeDecodeError(f"Entri badge generasi {key} tidak valid") from exc
        if entry.pelatihan_id in seen:
            raise errors.BadgeDecodeError(
                f"Pelatihan {entry.pelatihan_id} tercatat ganda pada generasi {key}"
            )
        seen.add(entry.pelatihan_id)
        entries.append(entry)
    return entries


def decode(raw: RawLedger) -> Ledger:
    """
    Parse a members.badge value.

    NULL / empty text is an empty ledger; an already-parsed mapping is
    validated the same way as text.
    """
    if raw is None:
        return {}

    data: Any = raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            data = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise errors.BadgeDecodeError("Data badge bukan teks UTF-8") from exc

    if isinstance(data, str):
        if not data.strip():
            return {}
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise errors.BadgeDecodeError("Data badge bukan JSON yang valid") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise errors.BadgeDecodeError("Data badge harus berupa objek JSON")

    return {str(key): _decode_bucket(str(key), bucket) for key, bucket in data.items()}


def dump(ledger: Ledger) -> Dict[str, Dict[str, Any]]:
    """JSON-ready form of the ledger, as stored and as returned to clients."""
    return {
        key: {str(index): entry.model_dump(mode="json") for index, entry in enumerate(entries)}
        for key, entries in ledger.items()
    }


def encode(ledger: Ledger) -> str:
    return json.dumps(dump(ledger), ensure_ascii=False)


# ---------------------------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------------------------


def find_entry(ledger: Ledger, key: str, pelatihan_id: int) -> Optional[int]:
    for index, entry in enumerate(ledger.get(key, [])):
        if entry.pelatihan_id == pelatihan_id:
            return index
    return None


def locate_entry(ledger: Ledger, pelatihan_id: int) -> Optional[Tuple[str, int]]:
    """Find a training in any generation bucket (first match)."""
    for key in ledger:
        index = find_entry(ledger, key, pelatihan_id)
        if index is not None:
            return key, index
    return None


def entries_for_generation(ledger: Ledger, key: str) -> List[BadgeEntry]:
    return list(ledger.get(key, []))


# ---------------------------------------------------------------------------
# MUTATORS
# ---------------------------------------------------------------------------


def append_entry(ledger: Ledger, key: str, entry: BadgeEntry) -> Ledger:
    """Add `entry` at index len(bucket), creating the bucket if needed."""
    updated = dict(ledger)
    updated[key] = [*ledger.get(key, []), entry]
    return updated


def update_entry(ledger: Ledger, key: str, index: int, patch: Mapping[str, Any]) -> Ledger:
    bucket = ledger.get(key)
    if bucket is None or not 0 <= index < len(bucket):
        raise errors.EntryNotFoundError(
            f"Entri badge {index} pada generasi {key} tidak ditemukan"
        )

    merged = BadgeEntry.model_validate({**bucket[index].model_dump(), **patch})
    new_bucket = list(bucket)
    new_bucket[index] = merged

    updated = dict(ledger)
    updated[key] = new_bucket
    return updated
