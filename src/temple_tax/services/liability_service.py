"""
Tax Liability Service.

Orchestrates one liability lookup or registration submission against a
database session:

1. Load the temple's active policy snapshot and the registrant's history
2. Run the liability calculator
3. Fold in any payment with the reconciler
4. On submission, persist the amounts as a frozen snapshot

A malformed mobile number never fails a lookup. The service falls back to
the flat current-year tax, since the mobile field is optional at entry time.
"""

from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from temple_tax.calculator.decimal_math import Numeric, parse_amount
from temple_tax.calculator.liability import LiabilityCalculator
from temple_tax.calculator.reconciliation import PaymentReconciler
from temple_tax.config.settings import Settings, get_settings
from temple_tax.database.repositories import RegistrationRepository, TaxPolicyRepository
from temple_tax.domain.exceptions import InvalidIdentifier, ValidationError
from temple_tax.domain.history import normalize_mobile
from temple_tax.domain.models import (
    CumulativeLiabilityResult,
    ReconciliationResult,
    RegistrantYearRecord,
)
from temple_tax.services.logging_config import get_logger, log_performance

logger = get_logger(__name__)


@dataclass(frozen=True)
class LiabilityLookup:
    """Result of a cumulative lookup as returned to the API layer."""
    liability: CumulativeLiabilityResult
    reconciliation: Optional[ReconciliationResult] = None
    fallback: bool = False


class TaxLiabilityService:
    """
    Service facade over the policy store, registrant history, calculator
    and reconciler.

    One instance is bound to one session (one request).
    """

    def __init__(
        self,
        session: Session,
        settings: Optional[Settings] = None,
        calculator: Optional[LiabilityCalculator] = None,
        reconciler: Optional[PaymentReconciler] = None,
    ):
        self._session = session
        self._settings = settings or get_settings()
        self.policies = TaxPolicyRepository(session, self._settings)
        self.registrations = RegistrationRepository(session)
        self.calculator = calculator or LiabilityCalculator()
        self.reconciler = reconciler or PaymentReconciler()

    # =========================================================================
    # Lookups
    # =========================================================================

    @log_performance("liability.calculate_cumulative")
    def calculate_cumulative(
        self,
        temple_id: int,
        mobile: Optional[str],
        current_year: int,
        amount_paid: Optional[Numeric] = None,
    ) -> LiabilityLookup:
        """
        Cumulative liability for a mobile number and year.

        Args:
            temple_id: Temple scope
            mobile: Registrant mobile; None or blank means no history
            current_year: Assessment year
            amount_paid: Optional payment to reconcile against the total

        Returns:
            LiabilityLookup; ``fallback`` is True when the mobile was malformed
            and only the current year's flat tax was used

        Raises:
            ValidationError: If current_year or amount_paid is invalid
        """
        current_year = self._coerce_year(current_year)

        history = []
        if mobile is not None and str(mobile).strip():
            try:
                history = self.registrations.find_by_mobile(temple_id, mobile)
            except InvalidIdentifier as e:
                logger.warning(
                    "Skipping cumulative lookup for malformed mobile",
                    extra={"extra_data": {"temple_id": temple_id, "reason": e.message}},
                )
                liability = self.single_year_liability(temple_id, current_year)
                return LiabilityLookup(
                    liability=liability,
                    reconciliation=self._reconcile(liability, amount_paid),
                    fallback=True,
                )

        policies = self.policies.list_active_policies(temple_id)
        liability = self.calculator.calculate(policies, history, current_year)
        return LiabilityLookup(
            liability=liability,
            reconciliation=self._reconcile(liability, amount_paid),
        )

    def single_year_liability(self, temple_id: int, current_year: int) -> CumulativeLiabilityResult:
        """Flat tax for the current year only, as for an unknown registrant."""
        policy = self.policies.get_active_policy(temple_id, current_year)
        return self.calculator.calculate([policy] if policy else [], [], current_year)

    # =========================================================================
    # Writes
    # =========================================================================

    def submit_registration(
        self,
        temple_id: int,
        *,
        year: int,
        name: Optional[str],
        father_name: Optional[str],
        address: Optional[str],
        tax_amount: Optional[Numeric] = None,
        amount_paid: Optional[Numeric] = None,
        mobile: Optional[str] = None,
        reference_number: Optional[str] = None,
        village: Optional[str] = None,
        note: Optional[str] = None,
    ) -> RegistrantYearRecord:
        """
        Store a registration with its outstanding amount frozen.

        The outstanding amount is derived here with the reconciler; a value
        sent by the client is never trusted.

        Raises:
            ValidationError: Missing required fields, bad amounts or a
                malformed (non-blank) mobile number
        """
        missing = [
            label for label, value in (
                ("name", name), ("fatherName", father_name), ("address", address)
            )
            if not (value and str(value).strip())
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing},
            )

        year = self._coerce_year(year)
        try:
            tax = parse_amount(tax_amount)
            paid = parse_amount(amount_paid)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("Amounts must be numbers", field="taxAmount")

        digits = None
        if mobile is not None and str(mobile).strip():
            try:
                digits = normalize_mobile(mobile)
            except InvalidIdentifier as e:
                raise ValidationError(e.message, field="mobileNumber")

        reconciliation = self.reconciler.reconcile(tax, paid)
        return self.registrations.create_record(
            temple_id=temple_id,
            year=year,
            name=name.strip(),
            mobile=digits,
            reference_number=reference_number,
            father_name=father_name.strip(),
            address=address.strip(),
            village=village,
            note=note,
            tax_amount=reconciliation.total_tax_due,
            amount_paid=reconciliation.amount_paid,
            outstanding_amount=reconciliation.outstanding_amount,
        )

    def bulk_toggle(
        self,
        temple_id: int,
        include_previous_years: bool,
        years: Optional[Iterable[int]] = None,
    ) -> int:
        """
        Flip include_previous_years for the temple's policies.

        Only future lookups are affected; stored outstanding amounts stay as
        they were saved.
        """
        return self.policies.set_include_previous_years(
            temple_id, include_previous_years, years=years
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _reconcile(
        self,
        liability: CumulativeLiabilityResult,
        amount_paid: Optional[Numeric],
    ) -> Optional[ReconciliationResult]:
        if amount_paid is None:
            return None
        return self.reconciler.reconcile(liability.total_tax_due, amount_paid)

    @staticmethod
    def _coerce_year(year) -> int:
        if isinstance(year, bool):
            raise ValidationError("Year must be an integer", field="year")
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise ValidationError("Year must be an integer", field="year")
        if year < 1:
            raise ValidationError("Year must be positive", field="year")
        return year
