"""Tests for the HTTP surface: routing, error mapping and the license gate."""

import httpx
import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_license_service, get_tsoft_client, get_warehouse_service
from backoffice.api.main import app
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient
from backoffice.services.license_service import LicenseService
from backoffice.services.warehouse_service import WarehouseService
from upstream_fakes import wrapped


@pytest.fixture
def licenses():
    """Fresh license ledger with the default trial license."""
    return LicenseService()


@pytest.fixture
def upstream_http(fake_upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream.handler))


@pytest.fixture
def backoffice_client(upstream_config, upstream_http):
    """TSoftClient for the routes, answered by fake_upstream."""
    return TSoftClient(upstream_config, http_client=upstream_http)


@pytest.fixture
def api(monkeypatch, backoffice_client, upstream_http, licenses):
    monkeypatch.delenv("LICENSE_GATE_ENABLED", raising=False)
    # the lifespan loads the upstream config on startup
    monkeypatch.setenv("TSOFT_API_TOKEN", "lifespan-token")
    monkeypatch.setenv("TSOFT_API_DEBUG", "false")
    warehouses = WarehouseService()
    app.dependency_overrides[get_tsoft_client] = lambda: backoffice_client
    app.dependency_overrides[get_warehouse_service] = lambda: warehouses
    app.dependency_overrides[get_license_service] = lambda: licenses
    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(upstream_http.aclose)
    app.dependency_overrides.clear()


def test_health(api):
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# Upstream-backed routes
# ---------------------------------------------------------------------------


def test_list_products(api, fake_upstream):
    fake_upstream.routes["/product/getProducts"] = wrapped([{"ProductCode": "A", "SellingPrice": 10.5}])

    response = api.get("/api/products", params={"limit": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == [{"ProductCode": "A", "SellingPrice": "10.5"}]


def test_upstream_failure_maps_to_bad_gateway(api):
    response = api.get("/api/products/X1")

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "message": "Product not found: X1",
        "messages": ["Product not found: X1"],
        "operation": "product lookup",
    }


def test_product_variants_grouped(api, fake_upstream):
    fake_upstream.routes["/product/get"] = wrapped(
        [
            {
                "ProductCode": "T1",
                "SubProducts": [
                    {"Color": "Red", "Size": "S", "Stock": 2},
                    {"Color": "Red", "Size": "M", "Stock": 0},
                    {"Size": "L"},
                ],
            }
        ]
    )

    body = api.get("/api/products/T1/variants").json()

    assert [v["display_name"] for v in body["variants"]] == ["Red - S", "Red - M", "L"]
    assert list(body["by_color"]) == ["Red", "Default"]
    assert list(body["by_size"]) == ["S", "M", "L"]
    assert body["variants"][0]["stock"] == 2


def test_negative_stock_is_rejected(api):
    response = api.post("/api/products/A/stock", json={"stock": -1})
    assert response.status_code == 422


def test_bulk_create_reports_partial_failure(api, fake_upstream):
    fake_upstream.routes["/product/addProduct"] = wrapped({"ProductCode": "A"})

    response = api.post("/api/products/bulk", json=[{"code": "A", "name": "Shirt", "price": "10"}])

    assert response.status_code == 200
    assert response.json()["data"]["success"] == 1


def test_orders_listing_with_details(api, fake_upstream):
    fake_upstream.routes.update(
        {
            "/order/getOrders": wrapped([{"OrderId": 101, "OrderCode": "SIP-101"}]),
            "/order2/getOrderDetailsByOrderId/101": wrapped([{"ProductCode": "P1", "SupplyStatus": "Ready"}]),
        }
    )

    body = api.get("/api/orders", params={"page": 1, "limit": 50}).json()

    assert body["success"] is True
    assert body["has_more"] is False
    assert body["details"]["succeeded"] == 1
    order = body["data"][0]
    assert order["ItemCount"] == 1
    assert order["SupplyStatus"] == "Ready"
    assert body["license_warning"].startswith("Your license expires in")


def test_orders_listing_reports_disabled_details(api, backoffice_client, fake_upstream):
    fake_upstream.routes["/order/getOrders"] = wrapped([{"OrderId": 5}])

    first = api.get("/api/orders").json()
    assert first["details"]["failed"] == 1
    assert backoffice_client.detail_breaker.is_open

    second = api.get("/api/orders").json()
    assert second["details"]["skipped"] is True

    assert api.post("/api/orders/reset-details-flag").json()["success"] is True
    assert not backoffice_client.detail_breaker.is_open


def test_category_tree_route(api, fake_upstream):
    fake_upstream.routes["/category/getCategories"] = wrapped(
        [{"CategoryCode": "T1", "CategoryName": "Clothing"}, {"CategoryCode": "T2", "CategoryName": "Shirts", "ParentCategoryCode": "T1"}]
    )

    body = api.get("/api/categories/tree").json()

    root = body["data"][0]
    assert root["Path"] == "Clothing"
    assert root["Children"][0]["Path"] == "Clothing > Shirts"


# ---------------------------------------------------------------------------
# License gate
# ---------------------------------------------------------------------------


def test_gate_blocks_without_license(api):
    app.dependency_overrides[get_license_service] = lambda: LicenseService(seed_trial=False)

    response = api.get("/api/warehouses")

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "No active license found. Please activate a license.",
        "licenseExpired": True,
    }


def test_gate_allows_allowlisted_paths(api):
    app.dependency_overrides[get_license_service] = lambda: LicenseService(seed_trial=False)

    assert api.get("/health").status_code == 200
    assert api.get("/api/license/machine-id").status_code == 200
    assert api.get("/api/license").status_code == 200


def test_gate_can_be_disabled(api, monkeypatch):
    app.dependency_overrides[get_license_service] = lambda: LicenseService(seed_trial=False)
    monkeypatch.setenv("LICENSE_GATE_ENABLED", "false")

    assert api.get("/api/warehouses").status_code == 200


# ---------------------------------------------------------------------------
# Warehouses
# ---------------------------------------------------------------------------


def test_warehouse_crud_and_stock(api):
    created = api.post("/api/warehouses", json={"code": "DEPO-03", "name": "Outlet", "location": "İzmir"})
    assert created.status_code == 201
    warehouse_id = created.json()["data"]["id"]

    added = api.post(f"/api/warehouses/{warehouse_id}/stocks", json={"barcode": "B1", "quantity": 4})
    assert added.json()["message"] == "New stock added: 4 units"

    stocks = api.get("/api/warehouses/stocks/B1").json()
    assert stocks["total"] == 4
    assert stocks["data"][0]["warehouse_name"] == "Outlet"

    refused = api.delete(f"/api/warehouses/{warehouse_id}")
    assert refused.status_code == 400

    assert api.get("/api/warehouses/999").status_code == 404


def test_transfer_status_codes(api):
    api.post("/api/warehouses/1/stocks", json={"barcode": "B1", "quantity": 2})

    missing = api.post(
        "/api/warehouses/transfer", json={"from_warehouse_id": 1, "to_warehouse_id": 99, "barcode": "B1", "quantity": 1}
    )
    assert missing.status_code == 404

    short = api.post(
        "/api/warehouses/transfer", json={"from_warehouse_id": 1, "to_warehouse_id": 2, "barcode": "B1", "quantity": 5}
    )
    assert short.status_code == 400
    assert short.json() == {"success": False, "message": "Insufficient stock"}

    ok = api.post(
        "/api/warehouses/transfer", json={"from_warehouse_id": 1, "to_warehouse_id": 2, "barcode": "B1", "quantity": 2}
    )
    assert ok.json()["message"] == "2 units transferred"


# ---------------------------------------------------------------------------
# Licenses
# ---------------------------------------------------------------------------


def test_license_lifecycle(api):
    created = api.post(
        "/api/license", json={"company_name": "Acme", "contact_email": "ops@acme.test", "type": "yearly"}
    )
    assert created.status_code == 201
    data = created.json()["data"]
    assert data["type"] == "YEARLY"
    key = data["license_key"]

    validated = api.post("/api/license/validate", json={"license_key": key}).json()
    assert validated["success"] is True
    assert validated["days_remaining"] in (364, 365)

    activated = api.post("/api/license/activate", json={"license_key": key, "machine_id": "M1"})
    assert activated.json()["data"]["machine_id"] == "M1"

    assert api.post(f"/api/license/{key}/extend", json={"days": 30}).status_code == 200
    assert api.post(f"/api/license/{key}/revoke").status_code == 200
    assert api.get("/api/license/statistics").json()["data"]["total_licenses"] == 2


def test_license_errors(api):
    assert api.post("/api/license/activate", json={"license_key": "NOPE", "machine_id": "M"}).status_code == 400
    assert api.post("/api/license/NOPE/extend", json={"days": 5}).status_code == 404
    assert api.post("/api/license/NOPE/revoke").status_code == 404
    assert api.post("/api/license", json={"company_name": "A", "contact_email": "a@a.test", "type": "weekly"}).status_code == 422
