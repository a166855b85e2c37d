"""Liability calculation: cumulative breakdown and payment reconciliation."""

from .liability import LiabilityCalculator, calculate_cumulative_liability
from .reconciliation import PaymentReconciler, reconcile

__all__ = [
    "LiabilityCalculator",
    "calculate_cumulative_liability",
    "PaymentReconciler",
    "reconcile",
]
