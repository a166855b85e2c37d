"""Exceptions raised by the temple tax engine.

A missing policy row is deliberately not represented here: an unconfigured
year simply carries zero tax.
"""

from typing import Any, Dict, Optional


class TaxEngineError(Exception):
    """Base exception for tax engine errors."""

    code = "TAX_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field:
            data["field"] = self.field
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(TaxEngineError):
    """Bad amount, bad year or negative payment. Rejected before any computation."""

    code = "VALIDATION_ERROR"


class InvalidIdentifier(TaxEngineError):
    """Mobile number that does not normalize to exactly 10 digits."""

    code = "INVALID_IDENTIFIER"


class NotFound(TaxEngineError):
    """Requested row does not exist for the temple."""

    code = "NOT_FOUND"
