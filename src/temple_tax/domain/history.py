"""Pure helpers over a registrant's year records."""

import re
from decimal import Decimal
from typing import Dict, Iterable, Optional, Sequence

from .exceptions import InvalidIdentifier
from .models import RegistrantYearRecord

MOBILE_LENGTH = 10

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_mobile(raw: Optional[str]) -> str:
    """
    Strip everything but digits from a mobile number.

    Raises:
        InvalidIdentifier: If the result is not exactly 10 digits.

    Examples:
        >>> normalize_mobile("98765-43210")
        '9876543210'
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) != MOBILE_LENGTH:
        raise InvalidIdentifier(
            f"Mobile number must have exactly {MOBILE_LENGTH} digits",
            field="mobile",
            details={"digits": len(digits)},
        )
    return digits


def has_any_record(records: Sequence[RegistrantYearRecord]) -> bool:
    """An existing registrant is anyone with at least one record, paid or not."""
    return len(records) > 0


class YearTotals:
    """Amounts of every record filed for one year, summed."""

    __slots__ = ("tax_amount", "amount_paid", "outstanding_amount")

    def __init__(self) -> None:
        self.tax_amount = Decimal("0")
        self.amount_paid = Decimal("0")
        self.outstanding_amount = Decimal("0")

    def add(self, record: RegistrantYearRecord) -> None:
        self.tax_amount += record.tax_amount
        self.amount_paid += record.amount_paid
        self.outstanding_amount += record.outstanding_amount


def totals_by_year(records: Iterable[RegistrantYearRecord]) -> Dict[int, YearTotals]:
    """Group records by year so a year is never counted twice."""
    totals: Dict[int, YearTotals] = {}
    for record in records:
        totals.setdefault(record.year, YearTotals()).add(record)
    return totals
