"""Pytest configuration and fixtures for the temple tax test suite."""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Set test environment BEFORE any application imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_LOG_LEVEL", "WARNING")
os.environ.setdefault("DB_DRIVER", "sqlite")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from temple_tax.config.settings import Settings
from temple_tax.database.connection import configure_sqlite_transactions, get_session
from temple_tax.database.models import Base, TaxRegistrationRecord, TaxSettingRecord

from factories import TEMPLE_ID


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_transactions(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Session bound to the in-memory engine."""
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def seed_policies(db_session):
    """
    Insert policy rows directly.

    Usage:
        seed_policies((2023, 450, True), (2024, 500, True), (2025, 600, False))
    """
    def _seed(*rows, temple_id=TEMPLE_ID, is_active=True):
        for year, amount, include_previous in rows:
            db_session.add(TaxSettingRecord(
                temple_id=temple_id,
                year=year,
                tax_amount=Decimal(str(amount)),
                is_active=is_active,
                include_previous_years=include_previous,
                description=f"Tax for {year}",
            ))
        db_session.commit()

    return _seed


@pytest.fixture
def seed_registration(db_session):
    """Insert one registration snapshot directly."""
    def _seed(mobile, year, tax_amount, amount_paid, outstanding=None,
              temple_id=TEMPLE_ID, name="Ravi Kumar"):
        if outstanding is None:
            outstanding = max(Decimal("0"), Decimal(str(tax_amount)) - Decimal(str(amount_paid)))
        record = TaxRegistrationRecord(
            temple_id=temple_id,
            name=name,
            father_name="Subramani",
            address="12 Temple Street",
            mobile_number=mobile,
            year=year,
            tax_amount=Decimal(str(tax_amount)),
            amount_paid=Decimal(str(amount_paid)),
            outstanding_amount=Decimal(str(outstanding)),
        )
        db_session.add(record)
        db_session.commit()
        return record

    return _seed


@pytest.fixture
def client(db_session):
    """TestClient whose requests all run on the test session."""
    from fastapi.testclient import TestClient
    from temple_tax.web.app import app

    def _override_session():
        yield db_session

    app.dependency_overrides[get_session] = _override_session
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_session, None)
