"""
Tax Settings Routes - Per-year tax policy administration.

Routes:
- GET /api/tax-settings - List policies, newest year first
- GET /api/tax-settings/year/{year} - Policy for one year
- POST /api/tax-settings - Create or update a year's policy
- DELETE /api/tax-settings/{setting_id} - Delete a policy
- POST /api/tax-settings/bulk-toggle - Set include_previous_years on all years
"""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from temple_tax.services.liability_service import TaxLiabilityService
from temple_tax.web.dependencies import get_liability_service, get_temple_id
from temple_tax.web.helpers.serializers import policy_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tax-settings", tags=["Tax Settings"])


class TaxSettingRequest(BaseModel):
    """Create or update a year's tax policy."""
    year: int
    taxAmount: Union[float, int, str]
    description: Optional[str] = ""
    isActive: bool = True
    includePreviousYears: bool = False


class BulkToggleRequest(BaseModel):
    """Flip include_previous_years for every year, or only the listed ones."""
    includePreviousYears: bool
    years: Optional[List[int]] = Field(default=None)


@router.get("")
def list_tax_settings(
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """All tax policies of the temple."""
    policies = service.policies.list_policies(temple_id)
    return {"success": True, "data": [policy_to_dict(p) for p in policies]}


@router.get("/year/{year}")
def get_tax_setting_for_year(
    year: int,
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """
    Active policy for one year.

    An unconfigured year is not an error: the form shows zero tax.
    """
    policy = service.policies.get_active_policy(temple_id, year)
    if policy is None:
        return {
            "success": False,
            "data": None,
            "message": f"No tax setting found for year {year}",
        }
    return {"success": True, "data": policy_to_dict(policy)}


@router.post("")
def save_tax_setting(
    body: TaxSettingRequest,
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> JSONResponse:
    """Upsert the policy for (temple, year): 201 when created, 200 when updated."""
    policy, created = service.policies.upsert_policy(
        temple_id,
        body.year,
        body.taxAmount,
        description=body.description,
        is_active=body.isActive,
        include_previous_years=body.includePreviousYears,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content={
            "success": True,
            "id": policy.id,
            "action": "created" if created else "updated",
            "data": policy_to_dict(policy),
        },
    )


@router.post("/bulk-toggle")
def bulk_toggle_previous_years(
    body: BulkToggleRequest,
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """
    Set include_previous_years on the temple's policies in one statement.

    Saved registrations keep the amounts they were stored with.
    """
    updated = service.bulk_toggle(temple_id, body.includePreviousYears, years=body.years)
    state = "enabled" if body.includePreviousYears else "disabled"
    return {
        "success": True,
        "message": f"Include previous years {state} for {updated} tax setting(s)",
        "updated": updated,
    }


@router.delete("/{setting_id}")
def delete_tax_setting(
    setting_id: int,
    temple_id: int = Depends(get_temple_id),
    service: TaxLiabilityService = Depends(get_liability_service),
) -> Dict[str, Any]:
    """Delete a policy; 404 when it does not belong to the temple."""
    service.policies.delete_policy(temple_id, setting_id)
    return {"success": True}
