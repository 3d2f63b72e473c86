# backend/memberdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User login accounts and portal roles
- Member records (identity number, profile, badge ledger column)
- Public auth endpoints (login, current user)

Services are imported explicitly by callers; importing them here would
create a cycle with memberdb.security.
"""
