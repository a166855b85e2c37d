"""
Database layer for the temple tax engine.

Modules:
- models: SQLAlchemy ORM models (tax_settings, user_tax_registrations)
- connection: engine and session management
- transaction: atomic blocks over a session
- repositories: policy store and registrant history
"""

from .models import Base, TaxSettingRecord, TaxRegistrationRecord
from .connection import (
    get_sync_engine,
    get_db_session,
    get_session,
    init_database,
    close_sync_engine,
)

__all__ = [
    "Base",
    "TaxSettingRecord",
    "TaxRegistrationRecord",
    "get_sync_engine",
    "get_db_session",
    "get_session",
    "init_database",
    "close_sync_engine",
]
