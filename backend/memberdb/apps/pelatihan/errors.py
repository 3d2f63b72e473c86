# backend/memberdb/apps/pelatihan/errors.py

from __future__ import annotations

from typing import Optional


class PelatihanError(Exception):
    """
    Base class for training workflow errors.

    `kind` is a stable identifier clients can switch on; `message` is the
    user-facing text; `status_code` is what the router answers with.
    """

    kind = "pelatihan_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PelatihanError):
    kind = "not_found"
    status_code = 404

    _MESSAGES = {
        "training": "Pelatihan tidak ditemukan",
        "member": "Member tidak ditemukan",
        "registration": "Data pendaftaran pelatihan tidak ditemukan",
        "registrants": "Belum ada peserta untuk pelatihan ini",
    }

    def __init__(self, resource: str, message: Optional[str] = None) -> None:
        super().__init__(message or self._MESSAGES.get(resource, f"{resource} tidak ditemukan"))
        self.resource = resource


class DuplicateRegistrationError(PelatihanError):
    kind = "duplicate_registration"
    status_code = 409

    def __init__(self, judul_pelatihan: str) -> None:
        super().__init__(f"Anda sudah terdaftar di pelatihan {judul_pelatihan}")
        self.judul_pelatihan = judul_pelatihan


class InvalidCodeError(PelatihanError):
    kind = "invalid_code"
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Kode pelatihan tidak valid")


class BadgeDecodeError(PelatihanError):
    """The member's badge column does not hold a valid ledger."""

    kind = "badge_decode_error"
    status_code = 500


class EntryNotFoundError(PelatihanError):
    """A ledger entry (or ledger position) expected to exist is missing."""

    kind = "entry_not_found"
    status_code = 409


class MissingIdentityError(PelatihanError):
    """The member has no identity number, so no code or generation key exists."""

    kind = "configuration_error"
    status_code = 422

    def __init__(self) -> None:
        super().__init__("Nomor identitas member belum diatur")


class CodeNotSentError(PelatihanError):
    kind = "code_not_sent"
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Kode pelatihan belum dikirim oleh admin")


class InfrastructureError(PelatihanError):
    kind = "infrastructure_error"
    status_code = 503


class CodeSpaceExhaustedError(InfrastructureError):
    pass
