# backend/memberdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from memberdb.database import Base


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AccountRole(str, enum.Enum):
    """Portal roles.

    A freshly registered account has no role until its membership
    application is accepted (role becomes MEMBER). ADMIN manages
    trainings, rosters and verification.
    """

    ADMIN = "admin"
    MEMBER = "member"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    DITERIMA = "DITERIMA"
    DITOLAK = "DITOLAK"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Login account.

    Membership data (identity number, badges, profile) lives on Member;
    a user may exist without ever applying for membership.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    username = Column(String(128), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    role = Column(
        Enum(
            AccountRole,
            name="account_role_enum",
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=True,
        index=True,
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    member = relationship("Member", back_populates="user", uselist=False)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN


# ---------------------------------------------------------------------------
# MEMBERS
# ---------------------------------------------------------------------------


class Member(Base):
    """
    Membership record.

    - no_identitas: formatted identity number; its last two characters are
      the generation (cohort/year) key used to bucket badges.
    - badge: JSON text ledger of training participation, keyed by
      generation. Read and written only through pelatihan.badges.
    """

    __tablename__ = "members"
    __table_args__ = (
        Index("idx_members_status", "status_verifikasi"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    nama = Column(String(255), nullable=True, doc="Display name used in rosters.")
    no_identitas = Column(String(64), nullable=True, unique=True)

    tipe_keanggotaan = Column(String(64), nullable=True)
    institusi = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    alamat = Column(Text, nullable=True)
    wilayah = Column(String(128), nullable=True)
    nomor_wa = Column(String(32), nullable=True)

    status_verifikasi = Column(
        Enum(VerificationStatus, name="member_verification_status_enum"),
        nullable=True,
        default=VerificationStatus.PENDING,
    )
    tanggal_submit = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    badge = Column(Text, nullable=True)

    user = relationship("User", back_populates="member")
