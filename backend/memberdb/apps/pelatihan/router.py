# backend/memberdb/apps/pelatihan/router.py

from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from memberdb.apps.accounts import models as account_models
from memberdb.apps.workflow import TransitionError
from memberdb.database import get_db, get_read_db
from memberdb.security import get_current_active_user, require_admin

from . import badges, errors, export, schemas, services

router = APIRouter(prefix="/pelatihan", tags=["pelatihan"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _http_error(exc: Union[errors.PelatihanError, TransitionError]) -> HTTPException:
    if isinstance(exc, TransitionError):
        message = "; ".join(item.get("reason", "") for item in exc.detail) or exc.code
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"kind": "invalid_transition", "message": message},
        )
    return HTTPException(
        status_code=exc.status_code,
        detail={"kind": exc.kind, "message": exc.message},
    )


def _ensure_own_member(user: account_models.User, member_id: int) -> None:
    """Members act on their own record only; admins act on any."""
    if user.is_admin:
        return
    member = user.member
    if member is None or member.id != member_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"kind": "forbidden", "message": "Tidak diizinkan mengakses data member lain"},
        )


# ---------------------------------------------------------------------------
# Member workflows
# ---------------------------------------------------------------------------


@router.post(
    "/mendaftar-pelatihan",
    response_model=schemas.RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member for a training",
)
def register_for_training(
    payload: schemas.RegistrationRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    _ensure_own_member(current_user, payload.member_id)
    try:
        result = services.register_for_training(
            db,
            pelatihan_id=payload.pelatihan_id,
            member_id=payload.member_id,
        )
    except errors.PelatihanError as exc:
        raise _http_error(exc)

    return schemas.RegistrationResponse(
        message="Berhasil mendaftar pelatihan",
        kode=result.kode,
        badge=badges.dump(result.ledger),
    )


@router.post(
    "/selesai-pelatihan",
    response_model=schemas.CompletionResponse,
    summary="Complete a training with its registration code",
)
def complete_training(
    payload: schemas.CompletionRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    _ensure_own_member(current_user, payload.member_id)
    try:
        result = services.complete_training(
            db,
            pelatihan_id=payload.pelatihan_id,
            kode=payload.kode,
            member_id=payload.member_id,
        )
    except (errors.PelatihanError, TransitionError) as exc:
        raise _http_error(exc)

    return schemas.CompletionResponse(
        message="Pelatihan berhasil diselesaikan",
        badge=badges.dump(result.ledger),
    )


@router.get(
    "/peserta-pelatihan/kode/{member_id}/{pelatihan_id}",
    response_model=schemas.KodeResponse,
    summary="Get a registration code once it has been sent",
)
def get_sent_code(
    member_id: int,
    pelatihan_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    _ensure_own_member(current_user, member_id)
    try:
        kode = services.get_sent_code(db, member_id=member_id, pelatihan_id=pelatihan_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)
    return schemas.KodeResponse(kode=kode)


@router.get(
    "/members/id/{user_id}",
    response_model=schemas.MemberBadgeRead,
    summary="Get a member's badges for their own generation",
)
def get_member_badges(
    user_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"kind": "forbidden", "message": "Tidak diizinkan mengakses data member lain"},
        )
    try:
        return services.get_member_badges(db, user_id=user_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)


@router.get(
    "/pelatihan-info/{member_id}",
    response_model=List[schemas.PesertaPelatihanRead],
    summary="List a member's registrations",
)
def list_member_registrations(
    member_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    _ensure_own_member(current_user, member_id)
    try:
        return services.list_member_registrations(db, member_id=member_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@router.put(
    "/update-status/uncompleted",
    response_model=schemas.UncompletedResponse,
    summary="Mark a member's training as uncompleted",
)
def mark_uncompleted(
    payload: schemas.UncompletedRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    try:
        ledger = services.mark_uncompleted(
            db,
            member_id=payload.member_id,
            pelatihan_id=payload.pelatihan_id,
        )
    except (errors.PelatihanError, TransitionError) as exc:
        raise _http_error(exc)

    return schemas.UncompletedResponse(
        message="Status pelatihan diubah menjadi uncompleted",
        updatedBadge=badges.dump(ledger),
    )


@router.get(
    "/peserta-pelatihan/{pelatihan_id}/pendaftar",
    response_model=List[schemas.RegistrantRow],
    summary="List registrants of a training",
)
def list_registrants(
    pelatihan_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_admin),
):
    try:
        return services.list_registrants(db, pelatihan_id=pelatihan_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)


@router.delete(
    "/peserta/{registration_id}",
    response_model=schemas.MessageResponse,
    summary="Delete a registration (badge history is kept)",
)
def delete_registrant(
    registration_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    try:
        services.delete_registrant(db, registration_id=registration_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)
    return schemas.MessageResponse(message="Peserta berhasil dihapus")


@router.put(
    "/peserta/{registration_id}/kirim",
    response_model=schemas.MessageResponse,
    summary="Mark a registration code as sent",
)
def mark_sent(
    registration_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    try:
        services.mark_sent(db, registration_id=registration_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)
    return schemas.MessageResponse(message="Kode berhasil ditandai terkirim")


@router.put(
    "/peserta-pelatihan/{pelatihan_id}/member/{member_id}/kirim",
    response_model=schemas.MessageResponse,
    summary="Mark a member's registration code for a training as sent",
)
def mark_sent_for_member(
    pelatihan_id: int,
    member_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    try:
        services.mark_sent_for(db, pelatihan_id=pelatihan_id, member_id=member_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)
    return schemas.MessageResponse(message="Kode berhasil ditandai terkirim")


@router.get(
    "/export-peserta/{pelatihan_id}",
    summary="Export registrants of a training as a spreadsheet",
)
def export_registrants(
    pelatihan_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_admin),
) -> StreamingResponse:
    try:
        content, filename = export.export_roster(db, pelatihan_id=pelatihan_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)

    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(
        iter([content]),
        media_type=export.XLSX_MEDIA_TYPE,
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=List[schemas.PelatihanRead],
    summary="List trainings",
)
def list_trainings(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    try:
        return services.list_trainings(db)
    except errors.PelatihanError as exc:
        raise _http_error(exc)


@router.get(
    "/{pelatihan_id}",
    response_model=schemas.PelatihanRead,
    summary="Get a training",
)
def get_training(
    pelatihan_id: int,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    try:
        return services.get_training(db, pelatihan_id=pelatihan_id)
    except errors.PelatihanError as exc:
        raise _http_error(exc)
