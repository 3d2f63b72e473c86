from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

from memberdb.database import Base  # noqa: E402
from memberdb.apps.accounts import models as account_models  # noqa: E402
from memberdb.apps.pelatihan import models as pelatihan_models  # noqa: E402


@pytest.fixture()
def db_session():
    # One shared connection so endpoints running in TestClient's threadpool
    # see the same in-memory database as the test body.
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.User.__table__,
            account_models.Member.__table__,
            pelatihan_models.Pelatihan.__table__,
            pelatihan_models.PesertaPelatihan.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
