"""
Tests for the Tax Liability Service.

Covers the full lookup path against a database session, the malformed
mobile fallback, and registration submission with the outstanding amount
frozen at save time.
"""

from decimal import Decimal

import pytest

from factories import TEMPLE_ID
from temple_tax.domain.exceptions import ValidationError
from temple_tax.domain.models import BreakdownStatus
from temple_tax.services.liability_service import TaxLiabilityService


@pytest.fixture
def service(db_session, settings):
    return TaxLiabilityService(db_session, settings)


@pytest.fixture
def policies(seed_policies):
    seed_policies((2023, 450, True), (2024, 500, True), (2025, 600, False))


def _submit(service, **overrides):
    data = dict(
        year=2025,
        name="Lakshmi",
        father_name="Raman",
        address="4 North Car Street",
        tax_amount=1550,
        amount_paid=500,
        mobile="9876543210",
    )
    data.update(overrides)
    return service.submit_registration(TEMPLE_ID, **data)


@pytest.mark.usefixtures("policies")
class TestCalculateCumulative:

    def test_new_registrant(self, service):
        lookup = service.calculate_cumulative(TEMPLE_ID, "9876543210", 2025)

        assert lookup.fallback is False
        assert lookup.reconciliation is None
        assert lookup.liability.is_new_user is True
        assert lookup.liability.total_tax_due == Decimal("1550.00")

    def test_existing_registrant(self, service, seed_registration):
        seed_registration("9876543210", 2023, 450, 450)
        seed_registration("9876543210", 2024, 500, 200)

        lookup = service.calculate_cumulative(TEMPLE_ID, "98765-43210", 2025)

        assert lookup.liability.has_existing_registration is True
        assert lookup.liability.cumulative_outstanding == Decimal("300.00")
        assert lookup.liability.total_tax_due == Decimal("900.00")

    def test_amount_paid_is_reconciled(self, service):
        lookup = service.calculate_cumulative(TEMPLE_ID, "9876543210", 2025, amount_paid="500")

        assert lookup.reconciliation.outstanding_amount == Decimal("1050.00")

    def test_negative_amount_paid_rejected(self, service):
        with pytest.raises(ValidationError):
            service.calculate_cumulative(TEMPLE_ID, "9876543210", 2025, amount_paid=-1)

    def test_malformed_mobile_falls_back_to_current_year(self, service, caplog):
        with caplog.at_level("WARNING"):
            lookup = service.calculate_cumulative(TEMPLE_ID, "12345", 2025)

        assert lookup.fallback is True
        assert lookup.liability.total_tax_due == Decimal("600.00")
        assert [e.year for e in lookup.liability.year_breakdown] == [2025]
        assert lookup.liability.year_breakdown[0].status == BreakdownStatus.CURRENT_YEAR_NEW
        assert "malformed mobile" in caplog.text

    def test_fallback_still_reconciles_payment(self, service):
        lookup = service.calculate_cumulative(TEMPLE_ID, "abc", 2025, amount_paid=100)

        assert lookup.fallback is True
        assert lookup.reconciliation.outstanding_amount == Decimal("500.00")

    def test_blank_mobile_is_treated_as_new(self, service):
        lookup = service.calculate_cumulative(TEMPLE_ID, "  ", 2025)

        assert lookup.fallback is False
        assert lookup.liability.total_tax_due == Decimal("1550.00")

    def test_bulk_toggle_changes_future_lookups(self, service):
        service.bulk_toggle(TEMPLE_ID, False)
        lookup = service.calculate_cumulative(TEMPLE_ID, "9876543210", 2025)

        assert lookup.liability.cumulative_outstanding == Decimal("0.00")
        assert lookup.liability.total_tax_due == Decimal("600.00")

    @pytest.mark.parametrize("year", ["next", None, 0])
    def test_invalid_year_rejected(self, service, year):
        with pytest.raises(ValidationError):
            service.calculate_cumulative(TEMPLE_ID, "9876543210", year)


@pytest.mark.usefixtures("policies")
class TestSubmitRegistration:

    def test_outstanding_is_computed_server_side(self, service):
        record = _submit(service)

        assert record.tax_amount == Decimal("1550.00")
        assert record.amount_paid == Decimal("500.00")
        assert record.outstanding_amount == Decimal("1050.00")
        assert record.mobile == "9876543210"

    def test_overpayment_stores_zero_outstanding(self, service):
        record = _submit(service, tax_amount=600, amount_paid=700)
        assert record.outstanding_amount == Decimal("0.00")

    def test_mobile_is_normalized(self, service):
        record = _submit(service, mobile="98765 43210")
        assert record.mobile == "9876543210"

    def test_mobile_is_optional(self, service):
        record = _submit(service, mobile="")
        assert record.mobile is None

    def test_malformed_mobile_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _submit(service, mobile="12345")
        assert exc_info.value.field == "mobileNumber"

    def test_missing_required_fields(self, service):
        with pytest.raises(ValidationError) as exc_info:
            _submit(service, father_name="", address=None)
        assert exc_info.value.message == "Missing required fields: fatherName, address"

    def test_negative_payment_rejected(self, service):
        with pytest.raises(ValidationError):
            _submit(service, amount_paid=-5)

    def test_submission_becomes_history(self, service):
        _submit(service, year=2024, tax_amount=950, amount_paid=650)

        lookup = service.calculate_cumulative(TEMPLE_ID, "9876543210", 2025)

        assert lookup.liability.has_existing_registration is True
        owed = [e for e in lookup.liability.year_breakdown
                if e.status == BreakdownStatus.OWED_PREVIOUS_YEAR]
        assert [(e.year, e.amount_due) for e in owed] == [(2024, Decimal("300.00"))]

    def test_saved_snapshot_survives_policy_toggle(self, service, db_session):
        record = _submit(service)
        service.bulk_toggle(TEMPLE_ID, False)

        db_session.expire_all()
        stored = service.registrations.get(TEMPLE_ID, record.id)
        assert stored.outstanding_amount == Decimal("1050.00")
