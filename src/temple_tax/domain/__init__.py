"""Domain types for the temple tax engine."""

from .exceptions import (
    TaxEngineError,
    ValidationError,
    InvalidIdentifier,
    NotFound,
)
from .history import normalize_mobile, has_any_record
from .models import (
    BreakdownStatus,
    TaxYearPolicy,
    RegistrantYearRecord,
    LiabilityBreakdownEntry,
    CumulativeLiabilityResult,
    ReconciliationResult,
)

__all__ = [
    "TaxEngineError",
    "ValidationError",
    "InvalidIdentifier",
    "NotFound",
    "normalize_mobile",
    "has_any_record",
    "BreakdownStatus",
    "TaxYearPolicy",
    "RegistrantYearRecord",
    "LiabilityBreakdownEntry",
    "CumulativeLiabilityResult",
    "ReconciliationResult",
]
