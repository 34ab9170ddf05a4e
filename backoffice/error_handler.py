"""Error handling helpers for the back-office API.

The upstream client never raises on upstream failure; failures travel inside
an Envelope. These exceptions exist for the edges of the application:
configuration at startup and routers that need to turn a failed envelope into
an HTTP response.
"""
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class UpstreamError(RuntimeError):
    def __init__(self, message: str, *, messages: Optional[List[str]] = None, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.messages = messages or []
        self.operation = operation


class LicenseRequiredError(RuntimeError):
    """Raised by the license gate; rendered as a 403 JSON body."""


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception in back-office request: %s", exc, exc_info=True)
        return {
            "success": False,
            "message": "An internal error occurred while processing your request. Please try again later.",
            "metadata": {"error": str(exc), "context": context or {}},
        }

    def handle_upstream_error(self, exc: UpstreamError) -> Dict[str, Any]:
        logger.warning("Upstream operation failed: %s (%s)", exc.operation or "unknown", exc)
        return {
            "success": False,
            "message": str(exc),
            "messages": exc.messages,
            "operation": exc.operation,
        }

    def handle_license_error(self, exc: LicenseRequiredError) -> Dict[str, Any]:
        logger.warning("Request blocked by license gate: %s", exc)
        return {"success": False, "message": str(exc), "licenseExpired": True}
