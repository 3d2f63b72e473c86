# backend/memberdb/apps/pelatihan/__init__.py
"""
Pelatihan (training) app

Responsible for:
- Training catalogue rows (read by members, maintained by admins)
- Member registration with unique opaque codes
- Completion by code submission and administrative overrides
- The per-member badge ledger stored on members.badge
- Admin rosters, delivery ("kirim") flags and spreadsheet export
"""
