"""
Tax Calculation Routes - Cumulative liability lookups.

Routes:
- GET /api/tax-calculations/cumulative/{mobile} - Liability for a registrant
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from temple_tax.services.liability_service import TaxLiabilityService
from temple_tax.web.dependencies import get_liability_service, get_temple_id
from temple_tax.web.helpers.serializers import liability_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tax-calculations", tags=["Tax Calculations"])


@router.get("/cumulative/{mobile}")
def cumulative_liability(
    mobile: str,
    currentYear: int = Query(..., description="Assessment year"),
    amountPaid: Optional[str] = Query(None, description="Payment to reconcile"),
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """
    Cumulative tax due for a mobile number.

    A malformed mobile is answered with the current year's flat tax and
    ``fallback: true`` rather than an error. ``amountPaid`` is validated by
    the reconciler; a negative or non-numeric value is a 400.
    """
    if amountPaid is not None and not amountPaid.strip():
        amountPaid = None
    lookup = service.calculate_cumulative(temple_id, mobile, currentYear, amount_paid=amountPaid)
    return {"success": True, "data": liability_to_dict(lookup)}
