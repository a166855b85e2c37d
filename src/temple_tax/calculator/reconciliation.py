"""
Payment Reconciliation.

Folds an amount paid into a total due. The outstanding balance is
``max(0, total_tax_due - amount_paid)``: overpayment never produces a
negative balance, and paying more never increases what is outstanding.
"""

from decimal import InvalidOperation

from temple_tax.calculator.decimal_math import (
    MAX_MONEY,
    Numeric,
    money,
    subtract_floor_zero,
    to_decimal,
)
from temple_tax.domain.exceptions import ValidationError
from temple_tax.domain.models import ReconciliationResult


def _non_negative(value: Numeric, field: str):
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    if amount > MAX_MONEY:
        raise ValidationError(
            f"{field} cannot exceed {MAX_MONEY}", field=field, details={"max": str(MAX_MONEY)}
        )
    try:
        return money(amount)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field)


class PaymentReconciler:
    """Pure, stateless payment reconciliation."""

    def reconcile(self, total_tax_due: Numeric, amount_paid: Numeric) -> ReconciliationResult:
        """
        Reconcile a payment against the total due.

        Raises:
            ValidationError: If either amount is negative or not a number
        """
        due = _non_negative(total_tax_due, "totalTaxDue")
        paid = _non_negative(amount_paid, "amountPaid")
        return ReconciliationResult(
            total_tax_due=due,
            amount_paid=paid,
            outstanding_amount=subtract_floor_zero(due, paid),
        )

    def outstanding(self, total_tax_due: Numeric, amount_paid: Numeric):
        return self.reconcile(total_tax_due, amount_paid).outstanding_amount


_default_reconciler = PaymentReconciler()


def reconcile(total_tax_due: Numeric, amount_paid: Numeric):
    """Outstanding amount for a total due and an amount paid."""
    return _default_reconciler.outstanding(total_tax_due, amount_paid)
