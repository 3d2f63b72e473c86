# backend/memberdb/apps/pelatihan/export.py
"""
Spreadsheet export of a training's registrants.

One row per registration, joined to the member's profile. Missing values
are written as "-" and timestamps as DD-MM-YYYY HH:MM (UTC).
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy.orm import Session

from memberdb.apps.accounts import models as account_models

from . import errors, models, services

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EMPTY_CELL = "-"
DATE_FORMAT = "%d-%m-%Y %H:%M"

COLUMNS = [
    "No",
    "Nama",
    "No Identitas",
    "Email",
    "Institusi",
    "Tipe Keanggotaan",
    "Wilayah",
    "Nomor WA",
    "Kode",
    "Status Kirim",
    "Waktu Daftar",
    "Waktu Selesai",
]


def _text(value: Any) -> str:
    if value is None:
        return EMPTY_CELL
    if isinstance(value, datetime):
        return _format_datetime(value)
    text = str(value).strip()
    return text or EMPTY_CELL


def _format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return EMPTY_CELL
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATE_FORMAT)


def export_filename(training: models.Pelatihan) -> str:
    return f"peserta_pelatihan_{training.id}.xlsx"


def build_roster_rows(db: Session, pelatihan_id: int) -> List[List[str]]:
    rows = (
        db.query(models.PesertaPelatihan, account_models.Member)
        .outerjoin(account_models.Member, account_models.Member.id == models.PesertaPelatihan.member_id)
        .filter(models.PesertaPelatihan.pelatihan_id == pelatihan_id)
        .order_by(models.PesertaPelatihan.waktu_daftar.asc(), models.PesertaPelatihan.id.asc())
        .all()
    )

    out: List[List[str]] = []
    for number, (registration, member) in enumerate(rows, start=1):
        out.append(
            [
                str(number),
                _text(member.nama if member else None),
                _text(member.no_identitas if member else None),
                _text(member.email if member else None),
                _text(member.institusi if member else None),
                _text(member.tipe_keanggotaan if member else None),
                _text(member.wilayah if member else None),
                _text(member.nomor_wa if member else None),
                _text(registration.kode),
                "Terkirim" if registration.is_kirim == 1 else "Belum dikirim",
                _format_datetime(registration.waktu_daftar),
                _format_datetime(registration.waktu_selesai),
            ]
        )
    return out


def export_roster(db: Session, *, pelatihan_id: int) -> tuple[bytes, str]:
    """
    Build the xlsx workbook for a training.

    Returns (content, filename). A missing training or a training without
    registrants is NotFoundError; no empty workbook is produced.
    """
    with services.reading(db):
        training = db.get(models.Pelatihan, pelatihan_id)
        if training is None:
            raise errors.NotFoundError("training")
        rows = build_roster_rows(db, pelatihan_id)

    if not rows:
        raise errors.NotFoundError("registrants")

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Peserta"

    sheet.append([f"Peserta Pelatihan: {training.judul_pelatihan}"])
    sheet["A1"].font = Font(bold=True)
    sheet.append([])
    sheet.append(COLUMNS)
    for cell in sheet[3]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    buffer.seek(0)

    logger.info(
        "Roster exported",
        extra={"pelatihan_id": pelatihan_id, "rows": len(rows)},
    )
    return buffer.read(), export_filename(training)
