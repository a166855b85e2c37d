"""Tests for engine/session management and the transaction helper."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from temple_tax.config.database import DatabaseSettings
from temple_tax.database import connection
from temple_tax.database.models import TaxSettingRecord
from temple_tax.database.transaction import transaction


@pytest.fixture
def file_database(tmp_path, monkeypatch):
    """Point the module-level engine at a throwaway SQLite file."""
    settings = DatabaseSettings(_env_file=None, sqlite_path=tmp_path / "temple_tax.db")
    monkeypatch.setattr(connection, "get_database_settings", lambda: settings)
    connection.close_sync_engine()
    connection.init_database()
    yield settings
    connection.close_sync_engine()


def _count(session):
    return session.scalar(select(func.count()).select_from(TaxSettingRecord))


def _policy(year):
    return TaxSettingRecord(temple_id=1, year=year, tax_amount=Decimal("500"))


class TestSessionScope:

    def test_commits_on_success(self, file_database):
        with connection.get_db_session() as session:
            session.add(_policy(2024))

        with connection.get_db_session() as session:
            assert _count(session) == 1

    def test_rolls_back_on_error(self, file_database):
        with pytest.raises(RuntimeError):
            with connection.get_db_session() as session:
                session.add(_policy(2024))
                session.flush()
                raise RuntimeError("boom")

        with connection.get_db_session() as session:
            assert _count(session) == 0

    def test_health_check(self, file_database):
        assert connection.check_database_connection() is True

    def test_engine_is_reused(self, file_database):
        assert connection.get_sync_engine() is connection.get_sync_engine()


class TestTransaction:

    def test_begins_and_commits_when_idle(self, db_session):
        with transaction(db_session):
            db_session.add(_policy(2024))

        assert not db_session.in_transaction()
        assert _count(db_session) == 1

    def test_rolls_back_when_idle(self, db_session):
        with pytest.raises(ValueError):
            with transaction(db_session):
                db_session.add(_policy(2024))
                db_session.flush()
                raise ValueError("bad")

        assert _count(db_session) == 0

    def test_savepoint_keeps_outer_work(self, db_session):
        db_session.add(_policy(2023))
        db_session.flush()

        with pytest.raises(ValueError):
            with transaction(db_session):
                db_session.add(_policy(2024))
                db_session.flush()
                raise ValueError("bad")

        # The failed block is gone, the outer insert is still pending.
        assert db_session.in_transaction()
        years = db_session.scalars(select(TaxSettingRecord.year)).all()
        assert years == [2023]
        db_session.commit()
        assert _count(db_session) == 1
