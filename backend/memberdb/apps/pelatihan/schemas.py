# backend/memberdb/apps/pelatihan/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .badges import BadgeEntry


# ---------------------------------------------------------------------------
# TRAINING CATALOGUE
# ---------------------------------------------------------------------------


class PelatihanBase(BaseModel):
    judul_pelatihan: str = Field(..., min_length=1)
    deskripsi_pelatihan: Optional[str] = None
    narasumber: Optional[str] = None
    tanggal_pelatihan: Optional[datetime] = None
    tanggal_berakhir: Optional[datetime] = None
    link: Optional[str] = None
    badge: Optional[str] = Field(None, description="Label of the badge awarded on completion.")


class PelatihanCreate(PelatihanBase):
    kode: Optional[str] = Field(None, description="Organiser's secret for this training.")


class PelatihanUpdate(BaseModel):
    judul_pelatihan: Optional[str] = Field(None, min_length=1)
    deskripsi_pelatihan: Optional[str] = None
    narasumber: Optional[str] = None
    tanggal_pelatihan: Optional[datetime] = None
    tanggal_berakhir: Optional[datetime] = None
    link: Optional[str] = None
    badge: Optional[str] = None
    kode: Optional[str] = None


class PelatihanRead(PelatihanBase):
    """Catalogue view; the training's secret `kode` is deliberately absent."""

    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# REGISTRATION / COMPLETION
# ---------------------------------------------------------------------------


class RegistrationRequest(BaseModel):
    pelatihan_id: int
    member_id: int


class RegistrationResponse(BaseModel):
    message: str
    kode: str
    badge: Dict[str, Dict[str, Any]]


class CompletionRequest(BaseModel):
    pelatihan_id: int
    kode: str = Field(..., min_length=1)
    member_id: int = Field(..., alias="idMember")

    class Config:
        populate_by_name = True


class CompletionResponse(BaseModel):
    message: str
    badge: Dict[str, Dict[str, Any]]


class UncompletedRequest(BaseModel):
    member_id: int = Field(..., alias="idMember")
    pelatihan_id: int = Field(..., alias="pelatihanId")

    class Config:
        populate_by_name = True


class UncompletedResponse(BaseModel):
    message: str
    updatedBadge: Dict[str, Dict[str, Any]]


# ---------------------------------------------------------------------------
# ROSTER
# ---------------------------------------------------------------------------


class RegistrantActions(BaseModel):
    deleteId: int
    kirimId: int
    pelatihanId: int
    isKirim: int


class RegistrantRow(BaseModel):
    nama: str
    kode: str
    aksi: RegistrantActions


class MessageResponse(BaseModel):
    message: str


class KodeResponse(BaseModel):
    kode: str


class PesertaPelatihanRead(BaseModel):
    """Registration row as shown to its member; the code is served separately once sent."""

    id: int
    pelatihan_id: int
    member_id: int
    is_kirim: int
    waktu_daftar: datetime
    waktu_selesai: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberBadgeRead(BaseModel):
    """A member's own generation of the badge ledger."""

    member_id: int
    no_identitas: Optional[str] = None
    badge: List[BadgeEntry]
