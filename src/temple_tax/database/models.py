"""
SQLAlchemy ORM Models for temple tax data.

Tables:
- tax_settings: one tax policy row per (temple, year)
- user_tax_registrations: one row per filed registration; the money columns
  are a snapshot taken at submission time

Monetary values use Numeric(12, 2). Tenant scope is the integer temple_id;
isolation between temples is enforced upstream of this service.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Numeric, Boolean, DateTime, Text,
    Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaxSettingRecord(Base):
    """
    Tax policy for a temple and year.

    Natural Key: (temple_id, year) - unique composite
    """
    __tablename__ = "tax_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    temple_id = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    include_previous_years = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Backfill this year for first-time registrants"
    )

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('temple_id', 'year', name='uq_tax_setting_temple_year'),
        CheckConstraint('tax_amount >= 0', name='ck_tax_setting_amount'),
        Index('ix_tax_setting_active_year', 'temple_id', 'is_active', 'year'),
    )

    def __repr__(self):
        return f"<TaxSetting(temple={self.temple_id}, year={self.year}, amount={self.tax_amount})>"


class TaxRegistrationRecord(Base):
    """
    A filed tax registration.

    outstanding_amount equals max(0, tax_amount - amount_paid) when the row
    is written and is never recomputed afterwards.
    """
    __tablename__ = "user_tax_registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    temple_id = Column(Integer, nullable=False, default=1)

    # Registrant
    reference_number = Column(String(64), nullable=True)
    name = Column(String(255), nullable=False)
    father_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    village = Column(String(255), nullable=True)
    mobile_number = Column(String(10), nullable=True, comment="Digits only")

    # Snapshot
    year = Column(Integer, nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    outstanding_amount = Column(Numeric(12, 2), nullable=False, default=0)

    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint('tax_amount >= 0', name='ck_registration_tax_amount'),
        CheckConstraint('amount_paid >= 0', name='ck_registration_amount_paid'),
        CheckConstraint('outstanding_amount >= 0', name='ck_registration_outstanding'),
        Index('ix_registration_mobile', 'temple_id', 'mobile_number', 'year'),
        Index('ix_registration_created', 'temple_id', 'created_at'),
    )

    def __repr__(self):
        return f"<TaxRegistration(id={self.id}, mobile={self.mobile_number}, year={self.year})>"
