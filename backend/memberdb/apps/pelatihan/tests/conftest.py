from __future__ import annotations

from datetime import datetime, timezone

import pytest

from memberdb.apps.accounts import models as account_models
from memberdb.apps.pelatihan import models as pelatihan_models


@pytest.fixture()
def make_member(db_session):
    counter = {"n": 0}

    def _make(
        *,
        no_identitas="ID-2025-0001-25",
        nama="Siti Rahma",
        role=account_models.AccountRole.MEMBER,
        badge=None,
        **profile,
    ) -> account_models.Member:
        counter["n"] += 1
        user = account_models.User(
            username=f"member{counter['n']}",
            email=f"member{counter['n']}@example.org",
            hashed_password="hash",
            is_verified=True,
            is_active=True,
            role=role,
        )
        db_session.add(user)
        db_session.flush()
        member = account_models.Member(
            user_id=user.id,
            nama=nama,
            no_identitas=no_identitas,
            status_verifikasi=account_models.VerificationStatus.DITERIMA,
            badge=badge,
            **profile,
        )
        db_session.add(member)
        db_session.commit()
        return member

    return _make


@pytest.fixture()
def make_training(db_session):
    def _make(*, id=None, judul_pelatihan="Dasar Tata Kelola Data", **fields) -> pelatihan_models.Pelatihan:
        training = pelatihan_models.Pelatihan(
            id=id,
            judul_pelatihan=judul_pelatihan,
            deskripsi_pelatihan=fields.pop("deskripsi_pelatihan", "Pengantar tata kelola data"),
            narasumber=fields.pop("narasumber", "Tim Kurikulum"),
            badge=fields.pop("badge", "Data Steward"),
            kode=fields.pop("kode", "RAHASIA"),
            tanggal_pelatihan=fields.pop(
                "tanggal_pelatihan", datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
            ),
            **fields,
        )
        db_session.add(training)
        db_session.commit()
        return training

    return _make
