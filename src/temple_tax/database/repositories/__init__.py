"""Repository implementations over SQLAlchemy sessions."""

from .tax_policy_repository import TaxPolicyRepository
from .registration_repository import RegistrationRepository, RegistrationPage

__all__ = [
    "TaxPolicyRepository",
    "RegistrationRepository",
    "RegistrationPage",
]
