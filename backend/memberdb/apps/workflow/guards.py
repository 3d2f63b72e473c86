from __future__ import annotations

from typing import Any, Dict, List

GuardResult = List[Dict[str, str]]


def _get_value(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def guard_badge_completion(
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    waktu_daftar = _get_value(after_obj, "waktu_daftar")
    waktu_selesai = _get_value(after_obj, "waktu_selesai")
    durasi = _get_value(after_obj, "durasi")

    missing = []
    if not waktu_selesai:
        missing.append({"field": "waktu_selesai", "reason": "completion timestamp required"})
    if not durasi:
        missing.append({"field": "durasi", "reason": "duration breakdown required"})
    if waktu_daftar and waktu_selesai and waktu_selesai < waktu_daftar:
        missing.append({"field": "waktu_selesai", "reason": "completion precedes registration"})
    return missing
