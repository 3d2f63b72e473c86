# backend/memberdb/apps/pelatihan/router_admin.py

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from memberdb.apps.accounts import models as account_models
from memberdb.database import get_db
from memberdb.security import require_admin

from . import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/pelatihan", tags=["pelatihan-admin"])


def _get_training_or_404(db: Session, pelatihan_id: int) -> models.Pelatihan:
    training = db.get(models.Pelatihan, pelatihan_id)
    if training is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"kind": "not_found", "message": "Pelatihan tidak ditemukan"},
        )
    return training


@router.post(
    "/tambah",
    response_model=schemas.PelatihanRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a training",
)
def create_training(
    payload: schemas.PelatihanCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    training = models.Pelatihan(**payload.model_dump())
    db.add(training)
    db.commit()
    db.refresh(training)

    logger.info(
        "Training created",
        extra={"pelatihan_id": training.id, "actor_user_id": current_user.id},
    )
    return training


@router.put(
    "/edit/{pelatihan_id}",
    response_model=schemas.PelatihanRead,
    summary="Edit a training",
)
def update_training(
    pelatihan_id: int,
    payload: schemas.PelatihanUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    training = _get_training_or_404(db, pelatihan_id)

    # Existing badge entries keep the title/speaker they were registered under.
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(training, field, value)

    db.add(training)
    db.commit()
    db.refresh(training)

    logger.info(
        "Training updated",
        extra={"pelatihan_id": training.id, "actor_user_id": current_user.id},
    )
    return training


@router.delete(
    "/delete/{pelatihan_id}",
    response_model=schemas.MessageResponse,
    summary="Delete a training without registrants",
)
def delete_training(
    pelatihan_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    training = _get_training_or_404(db, pelatihan_id)

    has_registrants = (
        db.query(models.PesertaPelatihan.id)
        .filter(models.PesertaPelatihan.pelatihan_id == pelatihan_id)
        .first()
        is not None
    )
    if has_registrants:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "kind": "has_registrants",
                "message": "Pelatihan masih memiliki peserta dan tidak dapat dihapus",
            },
        )

    db.delete(training)
    db.commit()

    logger.info(
        "Training deleted",
        extra={"pelatihan_id": pelatihan_id, "actor_user_id": current_user.id},
    )
    return schemas.MessageResponse(message="Pelatihan berhasil dihapus")
