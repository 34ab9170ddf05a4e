import logging

from fastapi import APIRouter, Depends, Query, Request

from backoffice.api.dependencies import get_tsoft_client, require_success
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("")
async def list_orders(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    client: TSoftClient = Depends(get_tsoft_client),
):
    """Orders of one page, enriched with their order lines where the upstream allows it."""
    offset = str((page - 1) * limit)
    filters = {"page": str(page), "offset": offset, "start": offset}

    result = require_success(await client.get_orders(limit=limit, filters=filters), "order list")
    orders = list(result.data or [])
    logger.info("Orders loaded: %d (page %d)", len(orders), page)

    report = await client.enrich_orders_with_details(orders)

    payload = result.to_payload()
    payload["data"] = [order.model_dump(by_alias=True, exclude_none=True) for order in orders]
    payload.update(
        {
            "page": page,
            "limit": limit,
            "has_more": len(orders) >= limit,
            "details": report.to_dict(),
            "license_warning": getattr(request.state, "license_warning", None),
        }
    )
    return payload


@router.post("/reset-details-flag")
async def reset_details_flag(client: TSoftClient = Depends(get_tsoft_client)):
    client.detail_breaker.reset()
    return {"success": True, "message": "Order details will be fetched again on the next listing."}


@router.get("/{order_id}/details")
async def get_order_details(order_id: int, client: TSoftClient = Depends(get_tsoft_client)):
    result = require_success(await client.get_order_details_by_order_id(order_id), "order details")
    return result.to_payload()


@router.get("/by-code/{order_code}/details")
async def get_order_details_by_code(order_code: str, client: TSoftClient = Depends(get_tsoft_client)):
    result = require_success(await client.get_order_details_by_order_code(order_code), "order details by code")
    return result.to_payload()
