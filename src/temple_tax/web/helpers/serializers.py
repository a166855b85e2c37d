"""
JSON shapes returned by the API.

Policy and registration rows keep their column names (snake_case), the way
the admin screens read them. Liability results are camelCase for the
registration form. Money crosses the boundary as float, rounded to cents.
"""

from typing import Any, Dict, Optional

from temple_tax.calculator.decimal_math import to_float
from temple_tax.domain.models import RegistrantYearRecord, TaxYearPolicy
from temple_tax.services.liability_service import LiabilityLookup


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def policy_to_dict(policy: TaxYearPolicy) -> Dict[str, Any]:
    return {
        "id": policy.id,
        "temple_id": policy.temple_id,
        "year": policy.year,
        "tax_amount": to_float(policy.tax_amount),
        "description": policy.description,
        "is_active": policy.is_active,
        "include_previous_years": policy.include_previous_years,
        "created_at": _iso(policy.created_at),
        "updated_at": _iso(policy.updated_at),
    }


def registration_to_dict(record: RegistrantYearRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "temple_id": record.temple_id,
        "reference_number": record.reference_number,
        "name": record.name,
        "father_name": record.father_name,
        "address": record.address,
        "village": record.village,
        "mobile_number": record.mobile,
        "year": record.year,
        "tax_amount": to_float(record.tax_amount),
        "amount_paid": to_float(record.amount_paid),
        "outstanding_amount": to_float(record.outstanding_amount),
        "note": record.note,
        "created_at": _iso(record.created_at),
    }


def liability_to_dict(lookup: LiabilityLookup) -> Dict[str, Any]:
    """Cumulative lookup in the shape the registration form consumes."""
    liability = lookup.liability
    data: Dict[str, Any] = {
        "currentYear": liability.current_year,
        "cumulativeOutstanding": to_float(liability.cumulative_outstanding),
        "currentYearTax": to_float(liability.current_year_tax),
        "totalTaxDue": to_float(liability.total_tax_due),
        "yearBreakdown": [
            {
                "year": entry.year,
                "outstanding": to_float(entry.amount_due),
                "status": entry.status.value,
                "taxAmount": to_float(entry.tax_amount),
                "amountPaid": to_float(entry.amount_paid),
            }
            for entry in liability.year_breakdown
        ],
        "hasExistingRegistration": liability.has_existing_registration,
        "isNewUser": liability.is_new_user,
        "joiningYear": liability.joining_year,
        "fallback": lookup.fallback,
    }
    if lookup.reconciliation is not None:
        data["amountPaid"] = to_float(lookup.reconciliation.amount_paid)
        data["outstandingAmount"] = to_float(lookup.reconciliation.outstanding_amount)
    return data
