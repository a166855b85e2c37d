"""Tax Policy Repository.

Persistence for per-temple, per-year tax policies, including the bulk
toggle of the ``include_previous_years`` flag.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from temple_tax.calculator.decimal_math import MAX_MONEY, Numeric, money, to_decimal
from temple_tax.config.settings import Settings, get_settings
from temple_tax.database.models import TaxSettingRecord
from temple_tax.database.transaction import transaction
from temple_tax.domain.exceptions import NotFound, ValidationError
from temple_tax.domain.models import TaxYearPolicy
from temple_tax.services.logging_config import get_logger

logger = get_logger(__name__)


class TaxPolicyRepository:
    """
    Store for TaxYearPolicy rows.

    One row per (temple, year) is guaranteed by a unique constraint and by
    upsert semantics in ``upsert_policy``.
    """

    def __init__(self, session: Session, settings: Optional[Settings] = None):
        """
        Initialize repository with a session.

        Args:
            session: SQLAlchemy session.
            settings: Application settings (year range). Defaults to cached settings.
        """
        self._session = session
        self._settings = settings or get_settings()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_policy(self, temple_id: int, year: int) -> Optional[TaxYearPolicy]:
        """
        Get the policy for a year, active or not.

        Returns:
            TaxYearPolicy or None when the year is not configured.
        """
        record = self._get_record(temple_id, year)
        return self._to_domain(record) if record is not None else None

    def get_active_policy(self, temple_id: int, year: int) -> Optional[TaxYearPolicy]:
        """Get the policy for a year only if it is active."""
        policy = self.get_policy(temple_id, year)
        if policy is None or not policy.is_active:
            return None
        return policy

    def list_active_policies(self, temple_id: int) -> List[TaxYearPolicy]:
        """
        All active policies of a temple, ordered by year ascending.

        Read with a single statement so a caller gets one consistent snapshot.
        """
        query = (
            select(TaxSettingRecord)
            .where(TaxSettingRecord.temple_id == temple_id, TaxSettingRecord.is_active.is_(True))
            .order_by(TaxSettingRecord.year.asc())
        )
        return [self._to_domain(r) for r in self._session.scalars(query).all()]

    def list_policies(self, temple_id: int) -> List[TaxYearPolicy]:
        """All policies of a temple, newest year first."""
        query = (
            select(TaxSettingRecord)
            .where(TaxSettingRecord.temple_id == temple_id)
            .order_by(TaxSettingRecord.year.desc())
        )
        return [self._to_domain(r) for r in self._session.scalars(query).all()]

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert_policy(
        self,
        temple_id: int,
        year: int,
        tax_amount: Numeric,
        description: Optional[str] = None,
        is_active: bool = True,
        include_previous_years: bool = False,
    ) -> Tuple[TaxYearPolicy, bool]:
        """
        Create or update the policy for (temple, year).

        Returns:
            (policy, created) where created is False for an update.

        Raises:
            ValidationError: If tax_amount <= 0 or year is out of range
        """
        year = self._validate_year(year)
        amount = self._validate_amount(tax_amount)

        with transaction(self._session):
            record = self._get_record(temple_id, year)
            created = record is None
            if created:
                record = TaxSettingRecord(temple_id=temple_id, year=year)
                self._session.add(record)

            record.tax_amount = amount
            record.description = description or ""
            record.is_active = bool(is_active)
            record.include_previous_years = bool(include_previous_years)
            self._session.flush()

        logger.info(
            f"Tax policy {'created' if created else 'updated'}",
            extra={"extra_data": {"temple_id": temple_id, "year": year, "tax_amount": str(amount)}},
        )
        return self._to_domain(record), created

    def delete_policy(self, temple_id: int, policy_id: int) -> None:
        """
        Delete a policy row by id.

        Raises:
            NotFound: If no row with that id belongs to the temple
        """
        record = self._session.scalars(
            select(TaxSettingRecord).where(
                TaxSettingRecord.id == policy_id,
                TaxSettingRecord.temple_id == temple_id,
            )
        ).first()
        if record is None:
            raise NotFound("Tax setting not found", details={"id": policy_id})

        with transaction(self._session):
            self._session.delete(record)
            self._session.flush()
        logger.info(
            "Tax policy deleted",
            extra={"extra_data": {"temple_id": temple_id, "year": record.year}},
        )

    def set_include_previous_years(
        self,
        temple_id: int,
        value: bool,
        years: Optional[Iterable[int]] = None,
    ) -> int:
        """
        Set include_previous_years on every policy of the temple.

        Runs as one UPDATE statement inside one transaction, so concurrent
        readers see either the old or the new flag set, never a mix.
        Registration snapshots are not touched.

        Args:
            temple_id: Temple scope
            value: New flag value
            years: Restrict to these years; None means all years

        Returns:
            Number of rows updated
        """
        statement = (
            update(TaxSettingRecord)
            .where(TaxSettingRecord.temple_id == temple_id)
            .values(include_previous_years=bool(value))
            .execution_options(synchronize_session="evaluate")
        )
        if years is not None:
            statement = statement.where(TaxSettingRecord.year.in_(list(years)))

        with transaction(self._session):
            result = self._session.execute(statement)

        logger.info(
            "Bulk toggled include_previous_years",
            extra={"extra_data": {
                "temple_id": temple_id, "value": bool(value), "rows": result.rowcount,
            }},
        )
        return result.rowcount

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_record(self, temple_id: int, year: int) -> Optional[TaxSettingRecord]:
        return self._session.scalars(
            select(TaxSettingRecord).where(
                TaxSettingRecord.temple_id == temple_id,
                TaxSettingRecord.year == year,
            )
        ).first()

    def _validate_year(self, year) -> int:
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise ValidationError("Year must be an integer", field="year")
        low, high = self._settings.policy_year_min, self._settings.policy_year_max
        if not low <= year <= high:
            raise ValidationError(
                f"Year must be between {low} and {high}",
                field="year",
                details={"year": year},
            )
        return year

    @staticmethod
    def _validate_amount(tax_amount) -> Decimal:
        try:
            amount = to_decimal(tax_amount)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("Tax amount must be a number", field="taxAmount")
        if amount > MAX_MONEY:
            raise ValidationError(
                f"Tax amount cannot exceed {MAX_MONEY}",
                field="taxAmount",
                details={"max": str(MAX_MONEY)},
            )
        try:
            amount = money(amount)
        except InvalidOperation:
            raise ValidationError("Tax amount must be a number", field="taxAmount")
        if amount <= 0:
            raise ValidationError("Tax amount must be greater than zero", field="taxAmount")
        return amount

    @staticmethod
    def _to_domain(record: TaxSettingRecord) -> TaxYearPolicy:
        return TaxYearPolicy(
            id=record.id,
            temple_id=record.temple_id,
            year=record.year,
            tax_amount=money(record.tax_amount),
            is_active=bool(record.is_active),
            include_previous_years=bool(record.include_previous_years),
            description=record.description or "",
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
