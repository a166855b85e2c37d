"""
Typed records for tax policy, registrant history and liability results.

Records are immutable pydantic models. Money is carried as Decimal and
quantized to cents by the calculator, never as float.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BreakdownStatus(str, Enum):
    """How a year contributes to a registrant's liability."""
    OWED_PREVIOUS_YEAR = "owedPreviousYear"
    CURRENT_YEAR_NEW = "currentYearNew"
    CURRENT_YEAR_REGISTERED = "currentYearRegistered"
    SETTLED = "settled"


class TaxYearPolicy(BaseModel):
    """Tax configuration for one (temple, year)."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    temple_id: int
    year: int
    tax_amount: Decimal = Field(ge=0)
    is_active: bool = True
    include_previous_years: bool = False
    description: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegistrantYearRecord(BaseModel):
    """
    One filed tax registration for a mobile number and year.

    ``outstanding_amount`` is the snapshot taken when the record was saved;
    it is not kept in sync with later policy changes.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    temple_id: int
    mobile: Optional[str] = None
    year: int
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    outstanding_amount: Decimal = Field(default=Decimal("0"), ge=0)
    reference_number: Optional[str] = None
    name: Optional[str] = None
    father_name: Optional[str] = None
    address: Optional[str] = None
    village: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return self.outstanding_amount == 0


class LiabilityBreakdownEntry(BaseModel):
    """A single year in a liability breakdown."""

    model_config = ConfigDict(frozen=True)

    year: int
    amount_due: Decimal
    status: BreakdownStatus
    tax_amount: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")


class CumulativeLiabilityResult(BaseModel):
    """Cumulative liability of a registrant for a target year."""

    model_config = ConfigDict(frozen=True)

    current_year: int
    cumulative_outstanding: Decimal
    current_year_tax: Decimal
    total_tax_due: Decimal
    year_breakdown: List[LiabilityBreakdownEntry]
    has_existing_registration: bool
    joining_year: int

    @property
    def is_new_user(self) -> bool:
        return not self.has_existing_registration


class ReconciliationResult(BaseModel):
    """Total due folded together with a payment."""

    model_config = ConfigDict(frozen=True)

    total_tax_due: Decimal
    amount_paid: Decimal
    outstanding_amount: Decimal
