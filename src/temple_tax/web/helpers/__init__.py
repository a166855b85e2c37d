"""Helpers shared by the web routers."""

from temple_tax.web.helpers.error_responses import (
    ErrorCode,
    create_error_response,
    register_exception_handlers,
)

__all__ = ["ErrorCode", "create_error_response", "register_exception_handlers"]
