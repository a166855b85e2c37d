"""
Tax Registration Routes - Filing and listing registrations.

Routes:
- POST /api/tax-registrations - Store a registration snapshot
- GET /api/tax-registrations - Paginated, searchable listing
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from temple_tax.services.liability_service import TaxLiabilityService
from temple_tax.web.dependencies import get_liability_service, get_temple_id
from temple_tax.web.helpers.serializers import registration_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tax-registrations", tags=["Tax Registrations"])

Amount = Optional[Union[float, int, str]]


class TaxRegistrationRequest(BaseModel):
    """
    Registration form submission.

    ``outstandingAmount`` may be sent by older clients; it is ignored and
    recomputed from taxAmount and amountPaid.
    """
    year: int
    name: Optional[str] = None
    fatherName: Optional[str] = None
    address: Optional[str] = None
    village: Optional[str] = None
    mobileNumber: Optional[str] = None
    referenceNumber: Optional[str] = None
    taxAmount: Amount = None
    amountPaid: Amount = None
    outstandingAmount: Amount = None
    note: Optional[str] = None


@router.post("")
def create_tax_registration(
    body: TaxRegistrationRequest,
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """Store the registration with its outstanding amount frozen."""
    record = service.submit_registration(
        temple_id,
        year=body.year,
        name=body.name,
        father_name=body.fatherName,
        address=body.address,
        tax_amount=body.taxAmount,
        amount_paid=body.amountPaid,
        mobile=body.mobileNumber,
        reference_number=body.referenceNumber,
        village=body.village,
        note=body.note,
    )
    return {"success": True, "id": record.id, "data": registration_to_dict(record)}


@router.get("")
def list_tax_registrations(
    search: str = Query("", description="Matches name, mobile or reference number"),
    pending: Optional[str] = Query(None, description="'1' for rows with an outstanding amount"),
    page: int = Query(1),
    pageSize: int = Query(20),
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """Registrations of the temple, newest first."""
    result = service.registrations.search(
        temple_id,
        search=search,
        pending=pending == "1",
        page=page,
        page_size=pageSize,
    )
    return {
        "success": True,
        "data": [registration_to_dict(r) for r in result.items],
        "total": result.total,
        "page": result.page,
        "pageSize": result.page_size,
    }
