"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backoffice.api.dependencies import license_gate
from backoffice.api.endpoints.catalog import router as catalog_router
from backoffice.api.endpoints.licenses import router as licenses_router
from backoffice.api.endpoints.orders import router as orders_router
from backoffice.api.endpoints.products import router as products_router
from backoffice.api.endpoints.warehouses import router as warehouses_router
from backoffice.error_handler import ErrorHandler, LicenseRequiredError, UpstreamError
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient
from backoffice.services.license_service import LicenseService
from backoffice.services.warehouse_service import WarehouseService
from backoffice.utils.config_loader import load_upstream_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Raises ConfigurationError when TSOFT_API_TOKEN is missing: fail at startup, not on first request
    config = load_upstream_config()
    if config.debug:
        logging.getLogger("backoffice").setLevel(logging.DEBUG)
    app.state.tsoft_client = TSoftClient(config)
    try:
        yield
    finally:
        await app.state.tsoft_client.aclose()


# Initialize FastAPI app
app = FastAPI(
    title="T-Soft Back-Office API",
    description="Back-office proxy for the T-Soft store API with local warehouse and license ledgers",
    version="1.0.0",
    lifespan=lifespan,
    dependencies=[Depends(license_gate)],
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ledgers live for the lifetime of the process
app.state.warehouse_service = WarehouseService()
app.state.license_service = LicenseService()

app.include_router(products_router)
app.include_router(orders_router)
app.include_router(catalog_router)
app.include_router(warehouses_router)
app.include_router(licenses_router)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=error_handler.handle_upstream_error(exc))


@app.exception_handler(LicenseRequiredError)
async def license_error_handler(request: Request, exc: LicenseRequiredError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=error_handler.handle_license_error(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    payload = error_handler.handle_exception(exc, {"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


# ============================================================================
# ENDPOINTS
# ============================================================================


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    client = getattr(request.app.state, "tsoft_client", None)
    return {
        "status": "healthy",
        "service": "T-Soft Back-Office API",
        "upstream": {
            "configured": client is not None,
            "order_details_enabled": bool(client) and not client.detail_breaker.is_open,
        },
        "timestamp": datetime.now().isoformat(),
    }
