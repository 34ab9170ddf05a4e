import logging
from typing import Optional

from fastapi import Depends, Request

from backoffice.error_handler import LicenseRequiredError, UpstreamError
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient
from backoffice.integrations.contracts.envelope import Envelope
from backoffice.services.license_service import LicenseService
from backoffice.services.warehouse_service import WarehouseService
from backoffice.utils.config_loader import license_gate_enabled, load_upstream_config

logger = logging.getLogger(__name__)

_LICENSE_ALLOWLIST_PREFIXES = (
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/license/validate",
    "/api/license/activate",
    "/api/license/machine-id",
    "/api/license",
)


# ---------------------------------------------------------------------------
# Providers (overridden in tests through app.dependency_overrides)
# ---------------------------------------------------------------------------


def get_tsoft_client(request: Request) -> TSoftClient:
    client: Optional[TSoftClient] = getattr(request.app.state, "tsoft_client", None)
    if client is None:
        # app started without lifespan (e.g. plain TestClient); build on first use
        client = TSoftClient(load_upstream_config())
        request.app.state.tsoft_client = client
    return client


def get_warehouse_service(request: Request) -> WarehouseService:
    service = getattr(request.app.state, "warehouse_service", None)
    if service is None:
        service = WarehouseService()
        request.app.state.warehouse_service = service
    return service


def get_license_service(request: Request) -> LicenseService:
    service = getattr(request.app.state, "license_service", None)
    if service is None:
        service = LicenseService()
        request.app.state.license_service = service
    return service


# ---------------------------------------------------------------------------
# License gate
# ---------------------------------------------------------------------------


def _is_allowlisted(path: str) -> bool:
    path = path.lower()
    return any(path == prefix or path.startswith(prefix + "/") for prefix in _LICENSE_ALLOWLIST_PREFIXES)


async def license_gate(request: Request, licenses: LicenseService = Depends(get_license_service)) -> None:
    if not license_gate_enabled() or _is_allowlisted(request.url.path):
        return

    license = licenses.get_active_license()
    if license is None:
        logger.warning("No active license found")
        raise LicenseRequiredError("No active license found. Please activate a license.")

    validation = licenses.validate(license.license_key)
    if not validation.is_valid:
        logger.warning("License validation failed: %s", validation.message)
        raise LicenseRequiredError(validation.message)

    request.state.license = license
    request.state.days_remaining = validation.days_remaining
    if validation.is_expiring_soon:
        request.state.license_warning = f"Your license expires in {validation.days_remaining} days."


# ---------------------------------------------------------------------------
# Router helpers
# ---------------------------------------------------------------------------


def require_success(envelope: Envelope, operation: str) -> Envelope:
    """Raise UpstreamError (rendered as 502) for a failed envelope."""
    if not envelope.success:
        raise UpstreamError(
            envelope.first_message or f"{operation} failed",
            messages=envelope.messages,
            operation=operation,
        )
    return envelope
