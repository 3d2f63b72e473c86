from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from memberdb.apps.pelatihan import badges, errors


def _entry(pelatihan_id, **fields):
    return badges.BadgeEntry(
        pelatihan_id=pelatihan_id,
        judul_pelatihan=fields.pop("judul_pelatihan", f"Pelatihan {pelatihan_id}"),
        key=fields.pop("key", "25"),
        waktu_daftar=fields.pop("waktu_daftar", datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)),
        **fields,
    )


# ---------------------------------------------------------------------------
# decode / encode
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", [None, "", "   ", "null", b""])
def test_empty_values_decode_to_empty_ledger(raw):
    assert badges.decode(raw) == {}


def test_encode_then_decode_preserves_ledger():
    ledger = {
        "25": [_entry(7), _entry(9, status=badges.BadgeStatus.COMPLETED)],
        "24": [_entry(3, key="24", narasumber="Tim Keamanan")],
    }

    decoded = badges.decode(badges.encode(ledger))

    assert badges.dump(decoded) == badges.dump(ledger)
    assert [e.pelatihan_id for e in decoded["25"]] == [7, 9]


def test_encoded_shape_uses_dense_string_indices():
    ledger = {"25": [_entry(7), _entry(9)]}

    stored = json.loads(badges.encode(ledger))

    assert list(stored) == ["25"]
    assert list(stored["25"]) == ["0", "1"]
    assert stored["25"]["0"]["pelatihan_id"] == 7
    assert stored["25"]["0"]["status"] == "ongoing"
    assert stored["25"]["0"]["waktu_daftar"] == "2025-03-01T10:00:00Z"


def test_non_ascii_text_is_stored_verbatim():
    ledger = {"25": [_entry(7, judul_pelatihan="Pelatihan Pengelolaan Jurnal – Lanjutan")]}

    assert "Pengelolaan Jurnal – Lanjutan" in badges.encode(ledger)


def test_legacy_list_bucket_is_accepted_and_rewritten():
    raw = json.dumps({"25": [{"pelatihan_id": 7, "status": "completed"}]})

    ledger = badges.decode(raw)

    assert ledger["25"][0].pelatihan_id == 7
    assert ledger["25"][0].status is badges.BadgeStatus.COMPLETED
    stored = json.loads(badges.encode(ledger))
    assert list(stored["25"]) == ["0"]


def test_unknown_entry_keys_are_carried_through():
    raw = json.dumps({"25": {"0": {"pelatihan_id": 7, "sertifikat_url": "https://example.org/s/7"}}})

    stored = json.loads(badges.encode(badges.decode(raw)))

    assert stored["25"]["0"]["sertifikat_url"] == "https://example.org/s/7"


def test_bytes_are_decoded_as_utf8():
    raw = json.dumps({"25": {"0": {"pelatihan_id": 7}}}).encode("utf-8")

    assert badges.decode(raw)["25"][0].pelatihan_id == 7


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2]",
        '"text"',
        json.dumps({"25": "oops"}),
        json.dumps({"25": {"0": {"pelatihan_id": 7}, "2": {"pelatihan_id": 8}}}),
        json.dumps({"25": {"0": {"judul_pelatihan": "tanpa id"}}}),
        json.dumps({"25": {"0": {"pelatihan_id": 7, "status": "lost"}}}),
        json.dumps({"25": [{"pelatihan_id": 7}, {"pelatihan_id": 7}]}),
        b"\xff\xfe",
    ],
)
def test_malformed_ledgers_are_rejected(raw):
    with pytest.raises(errors.BadgeDecodeError):
        badges.decode(raw)


# ---------------------------------------------------------------------------
# lookups / mutators
# ---------------------------------------------------------------------------


def test_generation_key_is_last_two_characters():
    assert badges.generation_key("ID-2025-0001-25") == "25"


@pytest.mark.parametrize("identity", [None, ""])
def test_generation_key_requires_identity(identity):
    with pytest.raises(errors.MissingIdentityError):
        badges.generation_key(identity)


def test_find_and_locate_entry():
    ledger = {"24": [_entry(3, key="24")], "25": [_entry(7), _entry(9)]}

    assert badges.find_entry(ledger, "25", 9) == 1
    assert badges.find_entry(ledger, "25", 3) is None
    assert badges.find_entry(ledger, "99", 7) is None
    assert badges.locate_entry(ledger, 3) == ("24", 0)
    assert badges.locate_entry(ledger, 42) is None


def test_append_entry_creates_bucket_without_touching_input():
    ledger = {"24": [_entry(3, key="24")]}

    updated = badges.append_entry(ledger, "25", _entry(7))

    assert list(ledger) == ["24"]
    assert [e.pelatihan_id for e in updated["25"]] == [7]
    assert updated["24"] == ledger["24"]


def test_append_entry_adds_at_next_index():
    ledger = {"25": [_entry(7)]}

    updated = badges.append_entry(ledger, "25", _entry(9))

    assert badges.find_entry(updated, "25", 9) == 1
    assert len(ledger["25"]) == 1


def test_update_entry_merges_patch():
    ledger = {"25": [_entry(7), _entry(9)]}

    updated = badges.update_entry(ledger, "25", 1, {"status": badges.BadgeStatus.UNCOMPLETED})

    assert updated["25"][1].status is badges.BadgeStatus.UNCOMPLETED
    assert updated["25"][1].judul_pelatihan == "Pelatihan 9"
    assert ledger["25"][1].status is badges.BadgeStatus.ONGOING


@pytest.mark.parametrize("key, index", [("25", 2), ("25", -1), ("99", 0)])
def test_update_entry_out_of_range(key, index):
    with pytest.raises(errors.EntryNotFoundError):
        badges.update_entry({"25": [_entry(7)]}, key, index, {"status": "completed"})
