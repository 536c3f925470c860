from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure the project root (which exposes the ``bungalow_rates`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bungalow_rates.app import models  # noqa: F401  registers the tables
from bungalow_rates.app.config import RateSettings
from bungalow_rates.app.database import Base, enable_sqlite_savepoints
from bungalow_rates.app.services import RateService, UnitLocks
from bungalow_rates.app.stores import InMemoryRateStore, SqlAlchemyRateStore

TODAY = date(2025, 1, 15)

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = enable_sqlite_savepoints(
    create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def file_sessions(tmp_path) -> Generator[sessionmaker, None, None]:
    """Session factory on a file database, for checks on what gets committed."""

    file_engine = enable_sqlite_savepoints(
        create_engine(f"sqlite:///{tmp_path / 'rates.db'}", connect_args={"check_same_thread": False})
    )
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(bind=file_engine, autocommit=False, autoflush=False)
    file_engine.dispose()


@pytest.fixture(autouse=True)
def _reset_unit_locks() -> Generator[None, None, None]:
    yield
    UnitLocks.reset()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def memory_store() -> InMemoryRateStore:
    return InMemoryRateStore()


@pytest.fixture
def sql_store(db_session: Session) -> SqlAlchemyRateStore:
    return SqlAlchemyRateStore(db_session)


@pytest.fixture
def service(memory_store: InMemoryRateStore) -> RateService:
    return RateService(memory_store, settings=RateSettings(), today=lambda: TODAY)


@pytest.fixture
def sql_service(sql_store: SqlAlchemyRateStore) -> RateService:
    return RateService(sql_store, settings=RateSettings(), today=lambda: TODAY)
