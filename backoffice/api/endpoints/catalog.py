from fastapi import APIRouter, Depends, Query

from backoffice.api.dependencies import get_tsoft_client, require_success
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient

router = APIRouter(prefix="/api", tags=["Catalog"])


@router.get("/categories")
async def list_categories(client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_categories(), "category list").to_payload()


@router.get("/categories/tree")
async def category_tree(client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_category_tree(), "category tree").to_payload()


@router.get("/customers")
async def list_customers(
    limit: int = Query(50, ge=1, le=500),
    client: TSoftClient = Depends(get_tsoft_client),
):
    return require_success(await client.get_customers(limit=limit), "customer list").to_payload()


@router.get("/customers/{customer_id}")
async def get_customer(customer_id: int, client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_customer_by_id(customer_id), "customer lookup").to_payload()


@router.get("/payment-types")
async def list_payment_types(client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_payment_types(), "payment types").to_payload()


@router.get("/cargo-companies")
async def list_cargo_companies(client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_cargo_companies(), "cargo companies").to_payload()


@router.get("/order-statuses")
async def list_order_statuses(client: TSoftClient = Depends(get_tsoft_client)):
    return require_success(await client.get_order_status_list(), "order statuses").to_payload()
