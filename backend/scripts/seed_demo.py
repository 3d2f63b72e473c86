# backend/scripts/seed_demo.py
"""
Seed a demo catalogue: two trainings, one admin, two members, and one
registration that has been completed. Safe to run repeatedly.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from memberdb.database import WriteSessionLocal
from memberdb.security import get_password_hash
from memberdb.apps.accounts import models as account_models
from memberdb.apps.pelatihan import errors as pelatihan_errors
from memberdb.apps.pelatihan import models as pelatihan_models
from memberdb.apps.pelatihan import services as pelatihan_services

DEMO_PASSWORD = "ChangeMe123!"

TRAININGS = [
    {
        "judul_pelatihan": "Dasar Tata Kelola Data",
        "deskripsi_pelatihan": "Pengantar tata kelola dan kualitas data.",
        "narasumber": "Tim Kurikulum",
        "badge": "Data Steward Pemula",
        "link": "https://example.org/pelatihan/tata-kelola",
    },
    {
        "judul_pelatihan": "Keamanan Informasi untuk Anggota",
        "deskripsi_pelatihan": "Praktik keamanan dasar untuk pengelola situs institusi.",
        "narasumber": "Tim Keamanan",
        "badge": "Security Aware",
        "link": "https://example.org/pelatihan/keamanan",
    },
]

MEMBERS = [
    ("anggota1", "anggota1@example.org", "Anggota Satu", "ID-2024-0001-24"),
    ("anggota2", "anggota2@example.org", "Anggota Dua", "ID-2025-0002-25"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_or_create_user(db, username: str, email: str, role) -> account_models.User:
    user = db.query(account_models.User).filter(account_models.User.username == username).first()
    if user:
        return user
    user = account_models.User(
        username=username,
        email=email,
        role=role,
        is_active=True,
        is_verified=True,
        hashed_password=get_password_hash(DEMO_PASSWORD),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _get_or_create_member(db, user: account_models.User, nama: str, no_identitas: str) -> account_models.Member:
    if user.member:
        return user.member
    member = account_models.Member(
        user_id=user.id,
        nama=nama,
        no_identitas=no_identitas,
        email=user.email,
        tipe_keanggotaan="Institusi",
        institusi="Universitas Contoh",
        wilayah="Jawa Barat",
        status_verifikasi=account_models.VerificationStatus.DITERIMA,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def _get_or_create_training(db, data: dict) -> pelatihan_models.Pelatihan:
    training = (
        db.query(pelatihan_models.Pelatihan)
        .filter(pelatihan_models.Pelatihan.judul_pelatihan == data["judul_pelatihan"])
        .first()
    )
    if training:
        return training
    start = _utcnow() + timedelta(days=7)
    training = pelatihan_models.Pelatihan(
        tanggal_pelatihan=start,
        tanggal_berakhir=start + timedelta(hours=3),
        **data,
    )
    db.add(training)
    db.commit()
    db.refresh(training)
    return training


def main() -> None:
    db = WriteSessionLocal()
    try:
        _get_or_create_user(db, "admin", "admin@example.org", account_models.AccountRole.ADMIN)
        members = [
            _get_or_create_member(
                db,
                _get_or_create_user(db, username, email, account_models.AccountRole.MEMBER),
                nama,
                no_identitas,
            )
            for username, email, nama, no_identitas in MEMBERS
        ]
        trainings = [_get_or_create_training(db, data) for data in TRAININGS]

        try:
            result = pelatihan_services.register_for_training(
                db, pelatihan_id=trainings[0].id, member_id=members[0].id
            )
        except pelatihan_errors.DuplicateRegistrationError:
            print("Demo registration already present.")
        else:
            pelatihan_services.mark_sent(db, registration_id=result.registration.id)
            pelatihan_services.complete_training(
                db,
                pelatihan_id=trainings[0].id,
                kode=result.kode,
                member_id=members[0].id,
            )
            print("Demo registration created and completed.")

        print(f"Seeded {len(trainings)} trainings and {len(members)} members.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
