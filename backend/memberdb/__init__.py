# backend/memberdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- Relationship targets given by name ("Member") resolve across apps.

The actual model classes are kept in memberdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users / members
from .apps.pelatihan import models as pelatihan_models        # trainings + registrations

__all__ = [
    "accounts_models",
    "pelatihan_models",
]
