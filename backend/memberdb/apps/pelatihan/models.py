# backend/memberdb/apps/pelatihan/models.py

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ...database import Base


# ---------------------------------------------------------------------------
# TRAINING CATALOGUE
# ---------------------------------------------------------------------------


class Pelatihan(Base):
    """
    A training members can register for and complete.

    - narasumber = source / speaker
    - badge      = label of the badge awarded on completion
    - kode       = organiser's secret for the training itself; never
      returned by member-facing endpoints
    """

    __tablename__ = "pelatihan_member"

    id = Column(Integer, primary_key=True, autoincrement=True)

    judul_pelatihan = Column(String(255), nullable=False)
    deskripsi_pelatihan = Column(Text, nullable=True)
    narasumber = Column(String(255), nullable=True)

    tanggal_pelatihan = Column(DateTime(timezone=True), nullable=True)
    tanggal_berakhir = Column(DateTime(timezone=True), nullable=True)
    link = Column(String(512), nullable=True)

    badge = Column(String(255), nullable=True)
    kode = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    peserta = relationship("PesertaPelatihan", back_populates="pelatihan")


# ---------------------------------------------------------------------------
# REGISTRATION RECORDS
# ---------------------------------------------------------------------------


class PesertaPelatihan(Base):
    """
    One member registered for one training.

    - kode     = opaque code the member submits to complete the training;
      unique across all registrations
    - is_kirim = 1 once an admin has delivered the code to the member;
      never reset
    """

    __tablename__ = "peserta_pelatihan"
    __table_args__ = (
        UniqueConstraint("pelatihan_id", "member_id", name="uq_peserta_pelatihan_member"),
        UniqueConstraint("kode", name="uq_peserta_pelatihan_kode"),
        CheckConstraint("is_kirim IN (0, 1)", name="ck_peserta_pelatihan_is_kirim"),
        Index("idx_peserta_pelatihan_member", "member_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    pelatihan_id = Column(
        Integer,
        ForeignKey("pelatihan_member.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    member_id = Column(
        Integer,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )

    kode = Column(String(128), nullable=False)
    is_kirim = Column(Integer, nullable=False, default=0)

    waktu_daftar = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    waktu_selesai = Column(DateTime(timezone=True), nullable=True)

    pelatihan = relationship("Pelatihan", back_populates="peserta")
    member = relationship("Member")
