"""
FastAPI Dependency Injection.

Provides:
- The temple id of the request (``X-Temple-ID`` header)
- A request-scoped TaxLiabilityService bound to the request's session

Usage in endpoints:
    @router.get("/api/tax-settings")
    def list_settings(
        temple_id: int = Depends(get_temple_id),
        service: TaxLiabilityService = Depends(get_liability_service),
    ):
        ...
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from temple_tax.config.settings import Settings, get_settings
from temple_tax.database.connection import get_session
from temple_tax.domain.exceptions import ValidationError
from temple_tax.services.liability_service import TaxLiabilityService
from temple_tax.services.logging_config import temple_id_var

TEMPLE_ID_HEADER = "X-Temple-ID"


# Async so temple_id_var is set in the request context, not a worker thread copy.
async def get_temple_id(
    x_temple_id: Optional[str] = Header(default=None, alias=TEMPLE_ID_HEADER),
    settings: Settings = Depends(get_settings),
) -> int:
    """
    Temple scope of the request.

    Authentication and tenant isolation happen upstream; this only reads the
    id the gateway forwarded, falling back to the configured default.
    """
    if x_temple_id is None or not x_temple_id.strip():
        temple_id = settings.default_temple_id
    else:
        try:
            temple_id = int(x_temple_id)
        except ValueError:
            raise ValidationError("X-Temple-ID must be an integer", field=TEMPLE_ID_HEADER)
        if temple_id < 1:
            raise ValidationError("X-Temple-ID must be positive", field=TEMPLE_ID_HEADER)

    temple_id_var.set(temple_id)
    return temple_id


def get_liability_service(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> TaxLiabilityService:
    """Service bound to the request session; commits with the request."""
    return TaxLiabilityService(session, settings)
