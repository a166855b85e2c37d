"""
FastAPI Routers - one module per resource.

- tax_settings: Per-year tax policy administration
- tax_calculations: Cumulative liability lookups
- tax_registrations: Filing and listing registrations
- health: Liveness and database checks
"""

from .health import router as health_router
from .tax_calculations import router as tax_calculations_router
from .tax_registrations import router as tax_registrations_router
from .tax_settings import router as tax_settings_router

__all__ = [
    "health_router",
    "tax_calculations_router",
    "tax_registrations_router",
    "tax_settings_router",
]
