"""
Cumulative Liability Calculator.

Works out what a registrant owes for a target year, given the temple's
active tax policies and the registrant's filed records.

Rules:
1. A registrant with no record at all is *new*. Every earlier active policy
   year flagged ``include_previous_years`` is charged in full.
2. An *existing* registrant is only charged the unpaid remainder of earlier
   years they actually filed for. Settled years and years without a record
   contribute nothing.
3. The current year is always listed, carrying the active policy amount for
   that year (zero when the year is not configured).

The calculator is pure: the same policy and history snapshot always produce
the same result. The only notion of time is the ``current_year`` argument.
"""

from typing import Dict, List, Optional, Sequence

from temple_tax.calculator.decimal_math import ZERO, money, sum_money
from temple_tax.domain.exceptions import ValidationError
from temple_tax.domain.history import has_any_record, totals_by_year
from temple_tax.domain.models import (
    BreakdownStatus,
    CumulativeLiabilityResult,
    LiabilityBreakdownEntry,
    RegistrantYearRecord,
    TaxYearPolicy,
)
from temple_tax.services.logging_config import get_logger

logger = get_logger(__name__)


class LiabilityCalculator:
    """
    Computes a year-by-year liability breakdown for one registrant.

    Usage:
        calculator = LiabilityCalculator()
        result = calculator.calculate(policies, history, current_year=2025)
        result.total_tax_due
    """

    def calculate(
        self,
        policies: Sequence[TaxYearPolicy],
        history: Sequence[RegistrantYearRecord],
        current_year: int,
    ) -> CumulativeLiabilityResult:
        """
        Calculate cumulative liability.

        Args:
            policies: Policy snapshot for the temple (inactive rows are ignored)
            history: Every record filed under the registrant's mobile, or an
                empty sequence when no mobile is known
            current_year: Assessment year being filed

        Returns:
            CumulativeLiabilityResult with the breakdown sorted by year

        Raises:
            ValidationError: If current_year is not an integer year
        """
        if isinstance(current_year, bool) or not isinstance(current_year, int) or current_year < 1:
            raise ValidationError("currentYear must be a positive integer", field="currentYear")

        by_year = self._active_by_year(policies)
        is_new = not has_any_record(history)
        filed = totals_by_year(history)

        entries: List[LiabilityBreakdownEntry] = []
        for year in sorted(by_year):
            if year >= current_year:
                continue
            policy = by_year[year]
            if not policy.include_previous_years:
                continue
            entry = self._previous_year_entry(policy, filed, is_new)
            if entry is not None:
                entries.append(entry)

        current_policy = by_year.get(current_year)
        current_year_tax = money(current_policy.tax_amount) if current_policy else money(ZERO)
        current_totals = filed.get(current_year)
        entries.append(
            LiabilityBreakdownEntry(
                year=current_year,
                amount_due=current_year_tax,
                status=(
                    BreakdownStatus.CURRENT_YEAR_NEW
                    if is_new
                    else BreakdownStatus.CURRENT_YEAR_REGISTERED
                ),
                tax_amount=current_year_tax,
                amount_paid=money(current_totals.amount_paid) if current_totals else money(ZERO),
            )
        )

        cumulative_outstanding = sum_money(
            e.amount_due for e in entries if e.status == BreakdownStatus.OWED_PREVIOUS_YEAR
        )
        total_tax_due = money(cumulative_outstanding + current_year_tax)

        result = CumulativeLiabilityResult(
            current_year=current_year,
            cumulative_outstanding=cumulative_outstanding,
            current_year_tax=current_year_tax,
            total_tax_due=total_tax_due,
            year_breakdown=entries,
            has_existing_registration=not is_new,
            joining_year=self._joining_year(entries, filed, current_year),
        )

        logger.debug(
            "Cumulative liability calculated",
            extra={"extra_data": {
                "current_year": current_year,
                "policy_years": len(by_year),
                "history_records": len(history),
                "is_new": is_new,
                "total_tax_due": str(total_tax_due),
            }},
        )
        return result

    @staticmethod
    def _active_by_year(policies: Sequence[TaxYearPolicy]) -> Dict[int, TaxYearPolicy]:
        by_year: Dict[int, TaxYearPolicy] = {}
        for policy in policies:
            if not policy.is_active:
                continue
            if policy.year in by_year:
                # One row per (temple, year) is a store invariant; never charge a year twice.
                logger.warning(
                    "Duplicate policy year in snapshot, keeping first",
                    extra={"extra_data": {"year": policy.year}},
                )
                continue
            by_year[policy.year] = policy
        return by_year

    @staticmethod
    def _previous_year_entry(
        policy: TaxYearPolicy,
        filed: Dict,
        is_new: bool,
    ) -> Optional[LiabilityBreakdownEntry]:
        if is_new:
            amount = money(policy.tax_amount)
            return LiabilityBreakdownEntry(
                year=policy.year,
                amount_due=amount,
                status=BreakdownStatus.OWED_PREVIOUS_YEAR,
                tax_amount=amount,
                amount_paid=money(ZERO),
            )

        totals = filed.get(policy.year)
        if totals is None or totals.outstanding_amount <= 0:
            # Not registered that year, or settled: nothing is charged.
            return None

        return LiabilityBreakdownEntry(
            year=policy.year,
            amount_due=money(totals.outstanding_amount),
            status=BreakdownStatus.OWED_PREVIOUS_YEAR,
            tax_amount=money(totals.tax_amount),
            amount_paid=money(totals.amount_paid),
        )

    @staticmethod
    def _joining_year(
        entries: Sequence[LiabilityBreakdownEntry],
        filed: Dict,
        current_year: int,
    ) -> int:
        years = [
            e.year for e in entries if e.status == BreakdownStatus.OWED_PREVIOUS_YEAR
        ]
        years.extend(y for y in filed if y <= current_year)
        return min(years) if years else current_year


_default_calculator = LiabilityCalculator()


def calculate_cumulative_liability(
    policies: Sequence[TaxYearPolicy],
    history: Sequence[RegistrantYearRecord],
    current_year: int,
) -> CumulativeLiabilityResult:
    """Module-level shortcut for LiabilityCalculator().calculate()."""
    return _default_calculator.calculate(policies, history, current_year)
