from __future__ import annotations

import json
import logging

import pytest

from memberdb.apps.pelatihan import badges, errors, models, services


def _registrations(db_session, **filters):
    q = db_session.query(models.PesertaPelatihan)
    for field, value in filters.items():
        q = q.filter(getattr(models.PesertaPelatihan, field) == value)
    return q.all()


def test_register_creates_row_and_ongoing_badge(db_session, make_member, make_training):
    member = make_member(no_identitas="ID-2025-0001-25")
    training = make_training(id=7, judul_pelatihan="Dasar Tata Kelola Data")

    result = services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert result.kode
    rows = _registrations(db_session)
    assert len(rows) == 1
    assert rows[0].kode == result.kode
    assert rows[0].is_kirim == 0
    assert rows[0].waktu_selesai is None

    entry = result.ledger["25"][0]
    assert entry.pelatihan_id == 7
    assert entry.status is badges.BadgeStatus.ONGOING
    assert entry.judul_pelatihan == training.judul_pelatihan
    assert entry.narasumber == training.narasumber
    assert entry.key == "25"
    assert entry.waktu_daftar is not None

    db_session.refresh(member)
    stored = json.loads(member.badge)
    assert stored["25"]["0"]["pelatihan_id"] == 7
    assert stored["25"]["0"]["status"] == "ongoing"


def test_register_keeps_other_generations(db_session, make_member, make_training):
    older = json.dumps({"24": {"0": {"pelatihan_id": 3, "status": "completed"}}})
    member = make_member(no_identitas="ID-2025-0001-25", badge=older)
    make_training(id=7)

    result = services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert [e.pelatihan_id for e in result.ledger["24"]] == [3]
    assert result.ledger["24"][0].status is badges.BadgeStatus.COMPLETED
    assert [e.pelatihan_id for e in result.ledger["25"]] == [7]


def test_second_registration_appends_to_same_generation(db_session, make_member, make_training):
    member = make_member()
    make_training(id=7)
    make_training(id=8, judul_pelatihan="Keamanan Informasi")

    services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)
    result = services.register_for_training(db_session, pelatihan_id=8, member_id=member.id)

    assert [e.pelatihan_id for e in result.ledger["25"]] == [7, 8]
    assert len({row.kode for row in _registrations(db_session)}) == 2


def test_duplicate_registration_is_rejected(db_session, make_member, make_training):
    member = make_member()
    make_training(id=7, judul_pelatihan="Dasar Tata Kelola Data")
    services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    with pytest.raises(errors.DuplicateRegistrationError) as excinfo:
        services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert excinfo.value.message == "Anda sudah terdaftar di pelatihan Dasar Tata Kelola Data"
    assert excinfo.value.status_code == 409
    assert len(_registrations(db_session)) == 1
    db_session.refresh(member)
    assert len(badges.decode(member.badge)["25"]) == 1


def test_sequential_attempts_for_one_pair_register_once(db_session, make_member, make_training):
    member = make_member()
    make_training(id=7)

    outcomes = []
    for _ in range(5):
        try:
            services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)
            outcomes.append("ok")
        except errors.DuplicateRegistrationError:
            outcomes.append("duplicate")

    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == 4
    assert len(_registrations(db_session)) == 1


def test_ledger_only_duplicate_rolls_back_inserted_row(db_session, make_member, make_training, caplog):
    existing = json.dumps({"25": {"0": {"pelatihan_id": 7, "status": "ongoing"}}})
    member = make_member(badge=existing)
    make_training(id=7)

    with caplog.at_level(logging.WARNING, logger="memberdb.apps.pelatihan.services"):
        with pytest.raises(errors.DuplicateRegistrationError):
            services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert _registrations(db_session) == []
    db_session.refresh(member)
    assert json.loads(member.badge) == json.loads(existing)
    assert "without a registration row" in caplog.text


def test_concurrent_duplicate_is_reported_as_duplicate(db_session, make_member, make_training, monkeypatch):
    member = make_member()
    make_training(id=7)
    services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    original = services._find_registration

    def stale_check(db, pelatihan_id, member_id, *, for_update=False):
        # The locked pre-insert check misses the row another request committed.
        if for_update:
            return None
        return original(db, pelatihan_id, member_id)

    monkeypatch.setattr(services, "_find_registration", stale_check)

    with pytest.raises(errors.DuplicateRegistrationError):
        services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert len(_registrations(db_session)) == 1
    db_session.refresh(member)
    assert len(badges.decode(member.badge)["25"]) == 1


def test_code_collision_on_insert_is_retried(db_session, make_member, make_training, monkeypatch, caplog):
    first = make_member(no_identitas="ID-2025-0001-25")
    second = make_member(no_identitas="ID-2025-0002-25")
    make_training(id=7)

    issued = iter(["KODE-A", "KODE-A", "KODE-B"])
    monkeypatch.setattr(services.codes, "generate_registration_code", lambda db, identity: next(issued))

    services.register_for_training(db_session, pelatihan_id=7, member_id=first.id)
    with caplog.at_level(logging.WARNING, logger="memberdb.apps.pelatihan.services"):
        result = services.register_for_training(db_session, pelatihan_id=7, member_id=second.id)

    assert result.kode == "KODE-B"
    assert sorted(row.kode for row in _registrations(db_session)) == ["KODE-A", "KODE-B"]
    assert "retrying" in caplog.text


def test_persistent_code_collision_gives_up(db_session, make_member, make_training, monkeypatch):
    first = make_member(no_identitas="ID-2025-0001-25")
    second = make_member(no_identitas="ID-2025-0002-25")
    make_training(id=7)

    monkeypatch.setattr(services.codes, "generate_registration_code", lambda db, identity: "KODE-A")
    services.register_for_training(db_session, pelatihan_id=7, member_id=first.id)

    with pytest.raises(errors.InfrastructureError):
        services.register_for_training(db_session, pelatihan_id=7, member_id=second.id)

    assert _registrations(db_session, member_id=second.id) == []
    db_session.refresh(second)
    assert second.badge is None


def test_unknown_training_or_member(db_session, make_member, make_training):
    member = make_member()
    make_training(id=7)

    with pytest.raises(errors.NotFoundError) as missing_training:
        services.register_for_training(db_session, pelatihan_id=99, member_id=member.id)
    with pytest.raises(errors.NotFoundError) as missing_member:
        services.register_for_training(db_session, pelatihan_id=7, member_id=999)

    assert missing_training.value.resource == "training"
    assert missing_member.value.resource == "member"
    assert _registrations(db_session) == []


def test_member_without_identity_cannot_register(db_session, make_member, make_training):
    member = make_member(no_identitas=None)
    make_training(id=7)

    with pytest.raises(errors.MissingIdentityError):
        services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert _registrations(db_session) == []


def test_corrupt_ledger_aborts_registration(db_session, make_member, make_training):
    member = make_member(badge="{broken")
    make_training(id=7)

    with pytest.raises(errors.BadgeDecodeError):
        services.register_for_training(db_session, pelatihan_id=7, member_id=member.id)

    assert _registrations(db_session) == []
    db_session.refresh(member)
    assert member.badge == "{broken"
