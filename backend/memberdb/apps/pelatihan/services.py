# backend/memberdb/apps/pelatihan/services.py

from __future__ import annotations

import hmac
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from memberdb.apps.accounts import models as account_models
from memberdb.apps.workflow import apply_transition
from memberdb.database import transaction

from . import badges, codes, errors, models, schemas

logger = logging.getLogger(__name__)

REGISTER_ATTEMPTS = int(os.getenv("PELATIHAN_REGISTER_ATTEMPTS", "3"))

UNKNOWN_MEMBER_NAME = "Member tidak ditemukan"
EMPTY_NAME = "-"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class RegistrationResult:
    kode: str
    ledger: badges.Ledger
    registration: models.PesertaPelatihan


@dataclass
class CompletionResult:
    ledger: badges.Ledger
    entry: badges.BadgeEntry
    registration: models.PesertaPelatihan


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything here is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@contextmanager
def _unit_of_work(db: Session) -> Iterator[Session]:
    """
    One workflow invocation = one transaction.

    Business errors and IntegrityError pass through unchanged (after
    rollback); any other driver/pool failure becomes InfrastructureError.
    """
    try:
        with transaction(db):
            yield db
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("Training transaction failed")
        raise errors.InfrastructureError(
            "Terjadi kesalahan pada server, silakan coba lagi"
        ) from exc


@contextmanager
def reading(db: Session) -> Iterator[Session]:
    """
    Read-only counterpart of _unit_of_work.

    Nothing is committed. Driver/pool failures roll the session back and
    become InfrastructureError; business errors pass through.
    """
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Training query failed")
        raise errors.InfrastructureError(
            "Terjadi kesalahan pada server, silakan coba lagi"
        ) from exc


def _get_training(db: Session, pelatihan_id: int) -> models.Pelatihan:
    training = db.get(models.Pelatihan, pelatihan_id)
    if training is None:
        raise errors.NotFoundError("training")
    return training


def _get_member(db: Session, member_id: int, *, for_update: bool = False) -> account_models.Member:
    q = db.query(account_models.Member).filter(account_models.Member.id == member_id)
    if for_update:
        q = q.with_for_update()
    member = q.first()
    if member is None:
        raise errors.NotFoundError("member")
    return member


def _find_registration(
    db: Session,
    pelatihan_id: int,
    member_id: int,
    *,
    for_update: bool = False,
) -> Optional[models.PesertaPelatihan]:
    q = db.query(models.PesertaPelatihan).filter(
        models.PesertaPelatihan.pelatihan_id == pelatihan_id,
        models.PesertaPelatihan.member_id == member_id,
    )
    if for_update:
        q = q.with_for_update()
    return q.first()


def _get_registration(db: Session, registration_id: int) -> models.PesertaPelatihan:
    registration = db.get(models.PesertaPelatihan, registration_id, with_for_update=True)
    if registration is None:
        raise errors.NotFoundError("registration")
    return registration


def _codes_match(submitted: str, stored: str) -> bool:
    return hmac.compare_digest(
        submitted.encode("utf-8", "surrogatepass"),
        stored.encode("utf-8", "surrogatepass"),
    )


def _new_badge_entry(
    training: models.Pelatihan,
    *,
    key: str,
    waktu_daftar: datetime,
) -> badges.BadgeEntry:
    return badges.BadgeEntry(
        pelatihan_id=training.id,
        judul_pelatihan=training.judul_pelatihan,
        deskripsi_pelatihan=training.deskripsi_pelatihan,
        narasumber=training.narasumber,
        badge=training.badge,
        key=key,
        status=badges.BadgeStatus.ONGOING,
        waktu_daftar=waktu_daftar,
    )


def _apply_status_change(member_id: int, entry: badges.BadgeEntry, patch: Dict[str, Any]) -> None:
    before = entry.model_dump()
    after = {**before, **patch}
    apply_transition(
        entity_type="badge_entry",
        entity_id=f"{member_id}:{entry.pelatihan_id}",
        from_state=badges.BadgeStatus(before["status"]).value,
        to_state=badges.BadgeStatus(after["status"]).value,
        before_obj=before,
        after_obj=after,
    )


def compute_durasi(start: datetime, end: datetime) -> badges.Durasi:
    """
    Break the elapsed time into display units.

    Months are 30 days and a year is twelve of them, so the calendar
    figures are approximate; each smaller unit is the remainder within the
    next one up.
    """
    total = max(int((end - start).total_seconds()), 0)
    days = total // 86400
    months = days // 30
    return badges.Durasi(
        tahun=months // 12,
        bulan=months % 12,
        hari=days % 30,
        jam=total // 3600 % 24,
        menit=total // 60 % 60,
        detik=total % 60,
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _register(db: Session, *, pelatihan_id: int, member_id: int) -> RegistrationResult:
    training = _get_training(db, pelatihan_id)
    member = _get_member(db, member_id, for_update=True)

    if _find_registration(db, pelatihan_id, member_id, for_update=True) is not None:
        raise errors.DuplicateRegistrationError(training.judul_pelatihan)

    kode = codes.generate_registration_code(db, member.no_identitas)
    now = _utcnow()

    registration = models.PesertaPelatihan(
        pelatihan_id=training.id,
        member_id=member.id,
        kode=kode,
        is_kirim=0,
        waktu_daftar=now,
    )
    db.add(registration)
    db.flush()

    ledger = badges.decode(member.badge)
    key = badges.generation_key(member.no_identitas)

    if badges.find_entry(ledger, key, training.id) is not None:
        logger.warning(
            "Badge ledger already lists training without a registration row",
            extra={"pelatihan_id": training.id, "member_id": member.id, "generation": key},
        )
        raise errors.DuplicateRegistrationError(training.judul_pelatihan)

    ledger = badges.append_entry(ledger, key, _new_badge_entry(training, key=key, waktu_daftar=now))
    member.badge = badges.encode(ledger)
    db.flush()

    return RegistrationResult(kode=kode, ledger=ledger, registration=registration)


def register_for_training(db: Session, *, pelatihan_id: int, member_id: int) -> RegistrationResult:
    """
    Register a member for a training.

    Inserts the registration row and appends an `ongoing` badge entry in
    one transaction. When the insert loses a race the pair is re-checked:
    an existing row means a concurrent duplicate registration; otherwise the
    code collided and the whole workflow runs again.
    """
    for attempt in range(1, REGISTER_ATTEMPTS + 1):
        try:
            with _unit_of_work(db):
                result = _register(db, pelatihan_id=pelatihan_id, member_id=member_id)
        except IntegrityError as exc:
            with _unit_of_work(db):
                existing = _find_registration(db, pelatihan_id, member_id)
                training = db.get(models.Pelatihan, pelatihan_id)

            if existing is not None:
                logger.warning(
                    "Concurrent duplicate registration rejected",
                    extra={"pelatihan_id": pelatihan_id, "member_id": member_id},
                )
                judul = training.judul_pelatihan if training is not None else str(pelatihan_id)
                raise errors.DuplicateRegistrationError(judul) from exc

            logger.warning(
                "Registration insert conflicted; retrying",
                extra={"pelatihan_id": pelatihan_id, "member_id": member_id, "attempt": attempt},
            )
            continue

        logger.info(
            "Member registered for training",
            extra={
                "pelatihan_id": pelatihan_id,
                "member_id": member_id,
                "registration_id": result.registration.id,
            },
        )
        return result

    raise errors.InfrastructureError("Gagal membuat kode pendaftaran unik, silakan coba lagi")


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


def complete_training(
    db: Session,
    *,
    pelatihan_id: int,
    kode: str,
    member_id: int,
) -> CompletionResult:
    """
    Complete a training by submitting the registration code.

    A wrong code changes nothing. A registration without a matching badge
    entry is a data fault and is reported as EntryNotFoundError, distinct
    from user mistakes.
    """
    with _unit_of_work(db):
        registration = _find_registration(db, pelatihan_id, member_id, for_update=True)
        if registration is None:
            raise errors.NotFoundError("registration")

        if not _codes_match(kode, registration.kode):
            logger.info(
                "Invalid training code submitted",
                extra={"pelatihan_id": pelatihan_id, "member_id": member_id},
            )
            raise errors.InvalidCodeError()

        now = _utcnow()
        registration.waktu_selesai = now

        member = _get_member(db, member_id, for_update=True)
        ledger = badges.decode(member.badge)
        key = badges.generation_key(member.no_identitas)

        index = badges.find_entry(ledger, key, pelatihan_id)
        if index is None:
            logger.warning(
                "Registration exists without a badge ledger entry",
                extra={"pelatihan_id": pelatihan_id, "member_id": member_id, "generation": key},
            )
            raise errors.EntryNotFoundError("Data badge untuk pelatihan ini tidak ditemukan")

        entry = ledger[key][index]
        registered_at = _as_aware(entry.waktu_daftar or registration.waktu_daftar)
        patch = {
            "status": badges.BadgeStatus.COMPLETED,
            "waktu_daftar": registered_at,
            "waktu_selesai": now,
            "durasi": compute_durasi(registered_at, now),
        }
        _apply_status_change(member_id, entry, patch)

        ledger = badges.update_entry(ledger, key, index, patch)
        member.badge = badges.encode(ledger)

    logger.info(
        "Training completed",
        extra={"pelatihan_id": pelatihan_id, "member_id": member_id},
    )
    return CompletionResult(ledger=ledger, entry=ledger[key][index], registration=registration)


def mark_uncompleted(db: Session, *, member_id: int, pelatihan_id: int) -> badges.Ledger:
    """
    Administrative override: set the training's badge status to
    `uncompleted`. Timestamps and duration are left as they are.
    """
    with _unit_of_work(db):
        member = _get_member(db, member_id, for_update=True)
        ledger = badges.decode(member.badge)

        location = badges.locate_entry(ledger, pelatihan_id)
        if location is None:
            raise errors.EntryNotFoundError("Pelatihan tidak ditemukan dalam badge member")

        key, index = location
        patch = {"status": badges.BadgeStatus.UNCOMPLETED}
        _apply_status_change(member_id, ledger[key][index], patch)

        ledger = badges.update_entry(ledger, key, index, patch)
        member.badge = badges.encode(ledger)

    logger.info(
        "Training marked uncompleted",
        extra={"pelatihan_id": pelatihan_id, "member_id": member_id, "generation": key},
    )
    return ledger


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------


def list_registrants(db: Session, *, pelatihan_id: int) -> List[schemas.RegistrantRow]:
    with reading(db):
        rows = (
            db.query(models.PesertaPelatihan, account_models.Member.id, account_models.Member.nama)
            .outerjoin(account_models.Member, account_models.Member.id == models.PesertaPelatihan.member_id)
            .filter(models.PesertaPelatihan.pelatihan_id == pelatihan_id)
            .order_by(models.PesertaPelatihan.waktu_daftar.asc(), models.PesertaPelatihan.id.asc())
            .all()
        )

    out: List[schemas.RegistrantRow] = []
    for registration, found_member_id, nama in rows:
        if found_member_id is None:
            display_name = UNKNOWN_MEMBER_NAME
        else:
            display_name = nama or EMPTY_NAME
        out.append(
            schemas.RegistrantRow(
                nama=display_name,
                kode=registration.kode,
                aksi=schemas.RegistrantActions(
                    deleteId=registration.id,
                    kirimId=registration.id,
                    pelatihanId=registration.pelatihan_id,
                    isKirim=registration.is_kirim,
                ),
            )
        )
    return out


def _set_sent(registration: models.PesertaPelatihan) -> None:
    if registration.is_kirim != 1:
        registration.is_kirim = 1
        logger.info(
            "Registration code marked as sent",
            extra={"registration_id": registration.id},
        )


def mark_sent(db: Session, *, registration_id: int) -> models.PesertaPelatihan:
    """Flag the code as delivered. Already-sent rows are left as they are."""
    with _unit_of_work(db):
        registration = _get_registration(db, registration_id)
        _set_sent(registration)
    return registration


def mark_sent_for(db: Session, *, pelatihan_id: int, member_id: int) -> models.PesertaPelatihan:
    """Same as mark_sent, addressed by the (training, member) pair."""
    with _unit_of_work(db):
        registration = _find_registration(db, pelatihan_id, member_id, for_update=True)
        if registration is None:
            raise errors.NotFoundError("registration")
        _set_sent(registration)
    return registration


def delete_registrant(db: Session, *, registration_id: int) -> None:
    """
    Delete the registration row only.

    The member's badge entry for the training is kept; nothing here
    retracts ledger history.
    """
    with _unit_of_work(db):
        registration = _get_registration(db, registration_id)
        pelatihan_id, member_id = registration.pelatihan_id, registration.member_id
        db.delete(registration)

    logger.info(
        "Registration deleted; badge ledger entry kept",
        extra={"registration_id": registration_id, "pelatihan_id": pelatihan_id, "member_id": member_id},
    )


def get_sent_code(db: Session, *, member_id: int, pelatihan_id: int) -> str:
    with reading(db):
        registration = _find_registration(db, pelatihan_id, member_id)
    if registration is None:
        raise errors.NotFoundError("registration")
    if registration.is_kirim != 1:
        raise errors.CodeNotSentError()
    return registration.kode


# ---------------------------------------------------------------------------
# Member views
# ---------------------------------------------------------------------------


def get_member_badges(db: Session, *, user_id: int) -> schemas.MemberBadgeRead:
    """The member's identity and the badge entries of their own generation."""
    with reading(db):
        member = (
            db.query(account_models.Member)
            .filter(account_models.Member.user_id == user_id)
            .first()
        )
    if member is None:
        raise errors.NotFoundError("member")

    entries: List[badges.BadgeEntry] = []
    if member.no_identitas:
        ledger = badges.decode(member.badge)
        entries = badges.entries_for_generation(ledger, badges.generation_key(member.no_identitas))

    return schemas.MemberBadgeRead(
        member_id=member.id,
        no_identitas=member.no_identitas,
        badge=entries,
    )


def list_member_registrations(db: Session, *, member_id: int) -> List[models.PesertaPelatihan]:
    with reading(db):
        rows = (
            db.query(models.PesertaPelatihan)
            .filter(models.PesertaPelatihan.member_id == member_id)
            .order_by(models.PesertaPelatihan.waktu_daftar.asc())
            .all()
        )
    if not rows:
        raise errors.NotFoundError("registration", "Data pelatihan tidak ditemukan")
    return rows


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


def list_trainings(db: Session) -> List[models.Pelatihan]:
    with reading(db):
        return (
            db.query(models.Pelatihan)
            .order_by(models.Pelatihan.tanggal_pelatihan.desc(), models.Pelatihan.id.desc())
            .all()
        )


def get_training(db: Session, *, pelatihan_id: int) -> models.Pelatihan:
    with reading(db):
        return _get_training(db, pelatihan_id)
