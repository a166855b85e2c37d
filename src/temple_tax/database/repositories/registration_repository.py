"""Registrant History Repository.

Read access to filed tax registrations keyed by normalized mobile number,
plus creation of new registration snapshots and the paginated listing used
by the registrations screen.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from temple_tax.calculator.decimal_math import money
from temple_tax.database.models import TaxRegistrationRecord
from temple_tax.database.transaction import transaction
from temple_tax.domain.history import has_any_record, normalize_mobile
from temple_tax.domain.models import RegistrantYearRecord
from temple_tax.services.logging_config import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class RegistrationPage:
    """One page of a registration listing."""
    items: List[RegistrantYearRecord]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.total else 0


class RegistrationRepository:
    """
    Registrant history and registration snapshots.

    Rows are written once per submission. Nothing here recalculates the
    stored outstanding amounts.
    """

    normalize_mobile = staticmethod(normalize_mobile)
    has_any_record = staticmethod(has_any_record)

    def __init__(self, session: Session):
        """
        Initialize repository with a session.

        Args:
            session: SQLAlchemy session.
        """
        self._session = session

    def find_by_mobile(self, temple_id: int, mobile: str) -> List[RegistrantYearRecord]:
        """
        All records filed under a mobile number, ordered by year.

        Raises:
            InvalidIdentifier: If mobile does not normalize to 10 digits
        """
        digits = normalize_mobile(mobile)
        query = (
            select(TaxRegistrationRecord)
            .where(
                TaxRegistrationRecord.temple_id == temple_id,
                TaxRegistrationRecord.mobile_number == digits,
            )
            .order_by(TaxRegistrationRecord.year.asc(), TaxRegistrationRecord.id.asc())
        )
        return [self._to_domain(r) for r in self._session.scalars(query).all()]

    def get(self, temple_id: int, registration_id: int) -> Optional[RegistrantYearRecord]:
        record = self._session.scalars(
            select(TaxRegistrationRecord).where(
                TaxRegistrationRecord.id == registration_id,
                TaxRegistrationRecord.temple_id == temple_id,
            )
        ).first()
        return self._to_domain(record) if record is not None else None

    def create_record(
        self,
        temple_id: int,
        year: int,
        name: str,
        tax_amount: Decimal,
        amount_paid: Decimal,
        outstanding_amount: Decimal,
        mobile: Optional[str] = None,
        reference_number: Optional[str] = None,
        father_name: Optional[str] = None,
        address: Optional[str] = None,
        village: Optional[str] = None,
        note: Optional[str] = None,
    ) -> RegistrantYearRecord:
        """
        Persist a registration snapshot.

        The caller is responsible for the amounts; they are stored as given.
        """
        record = TaxRegistrationRecord(
            temple_id=temple_id,
            year=year,
            name=name,
            mobile_number=mobile,
            reference_number=reference_number,
            father_name=father_name,
            address=address,
            village=village,
            tax_amount=money(tax_amount),
            amount_paid=money(amount_paid),
            outstanding_amount=money(outstanding_amount),
            note=note,
        )
        with transaction(self._session):
            self._session.add(record)
            self._session.flush()

        logger.info(
            "Tax registration stored",
            extra={"extra_data": {
                "temple_id": temple_id, "registration_id": record.id, "year": year,
            }},
        )
        return self._to_domain(record)

    def search(
        self,
        temple_id: int,
        search: str = "",
        pending: bool = False,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> RegistrationPage:
        """
        Paginated listing, newest first.

        Args:
            search: Substring matched against name, mobile and reference number
            pending: Only rows with an outstanding amount
            page: 1-based page number
            page_size: Clamped to 1..100
        """
        page = max(int(page or 1), 1)
        page_size = min(max(int(page_size or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)

        conditions = [TaxRegistrationRecord.temple_id == temple_id]
        search = (search or "").strip()
        if search:
            like = f"%{search}%"
            conditions.append(or_(
                TaxRegistrationRecord.name.like(like),
                TaxRegistrationRecord.mobile_number.like(like),
                TaxRegistrationRecord.reference_number.like(like),
            ))
        if pending:
            conditions.append(TaxRegistrationRecord.outstanding_amount > 0)

        total = self._session.scalar(
            select(func.count()).select_from(TaxRegistrationRecord).where(*conditions)
        ) or 0
        rows = self._session.scalars(
            select(TaxRegistrationRecord)
            .where(*conditions)
            .order_by(TaxRegistrationRecord.created_at.desc(), TaxRegistrationRecord.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        ).all()

        return RegistrationPage(
            items=[self._to_domain(r) for r in rows],
            total=int(total),
            page=page,
            page_size=page_size,
        )

    @staticmethod
    def _to_domain(record: TaxRegistrationRecord) -> RegistrantYearRecord:
        return RegistrantYearRecord(
            id=record.id,
            temple_id=record.temple_id,
            mobile=record.mobile_number,
            year=record.year,
            tax_amount=money(record.tax_amount or 0),
            amount_paid=money(record.amount_paid or 0),
            outstanding_amount=money(record.outstanding_amount or 0),
            reference_number=record.reference_number,
            name=record.name,
            father_name=record.father_name,
            address=record.address,
            village=record.village,
            note=record.note,
            created_at=record.created_at,
        )

