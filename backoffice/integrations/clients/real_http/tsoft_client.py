"""
T-Soft HTTP Client.

Purpose:
- Single entry point for everything the back-office reads from or writes to
  the T-Soft store (products, variants, categories, customers, orders)
- Hides which endpoint/style a deployment actually answers on

Behaviour:
- Every operation returns an Envelope and never raises on upstream failure
- Each operation probes its endpoint tiers in order (see contracts/endpoints.py)
- Order-detail enrichment is guarded by a per-instance circuit breaker
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import httpx

from backoffice.integrations.clients.real_http.transport import UpstreamTransport
from backoffice.integrations.contracts import endpoints
from backoffice.integrations.contracts.entities import (
    CargoCompany,
    Category,
    Customer,
    Order,
    OrderDetail,
    OrderStatusInfo,
    PaymentType,
    Product,
    ProductImage,
)
from backoffice.integrations.contracts.envelope import Envelope
from backoffice.integrations.policy.category_tree import (
    build_category_paths,
    build_tree_from_flat_list,
    flatten_category_tree,
    split_path,
)
from backoffice.integrations.policy.endpoint_fallback import (
    DetailCircuitBreaker,
    EndpointCandidate,
    EndpointFallback,
    FallbackTier,
    RequestStyle,
    any_response,
    json_get_tier,
    json_post_tier,
    legacy_tier,
)
from backoffice.integrations.policy.flexible_scalars import (
    canonical_number_text,
    first_non_empty,
    to_decimal,
    to_int,
)
from backoffice.integrations.policy.response_decoder import ResponseDecoder
from backoffice.integrations.policy.variants import primary_image
from backoffice.utils.config_loader import UpstreamConfig

logger = logging.getLogger(__name__)

ENHANCED_IMAGE_PRODUCTS = 20
DEFAULT_VAT = 18
DEFAULT_CATEGORY_CODE = "T1"

VARIANT_FLAGS = {
    "FetchDetails": "1",
    "FetchSubProducts": "1",
    "WithSubProducts": "1",
    "WithVariants": "1",
    "IncludeSubProducts": "1",
    "includeVariants": "1",
    "includeSubProducts": "1",
    "withVariants": "true",
    "fetchDetails": "true",
    "columns": "ProductId,ProductName,Name,ProductCode,Barcode,Stock,ModelCode",
    "start": "0",
    "length": "1",
}

VARIANT_QUERY = {
    "includeVariants": "1",
    "includeSubProducts": "1",
    "expand": "variants,subProducts",
    "FetchSubProducts": "1",
    "WithVariants": "1",
}

DETAILS_UNAVAILABLE = "Order details API is not available; item counts and supply status cannot be shown."
DETAILS_DISABLED = "Order details are not shown (a previous check failed)."


@dataclass
class EnrichmentReport:
    attempted: bool = False
    skipped: bool = False
    succeeded: int = 0
    failed: int = 0
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _with_filters(base: Dict[str, str], filters: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = dict(base)
    for key, value in (filters or {}).items():
        merged[key] = str(value)
    return merged


def _numeric_category_id(category_code: str) -> int:
    text = (category_code or "").lstrip("Tt")
    return int(text) if text.isdigit() else 1


def _apply_details(order: Order, details: List[OrderDetail]) -> None:
    order.order_details = details
    order.item_count = len(details)
    first = details[0] if details else None
    if first is None:
        return
    if not order.city and not order.shipping_city:
        order.city = first_non_empty([first.delivery_city, first.invoice_city, first.city])
        order.shipping_city = first.delivery_city
    if not order.supply_status:
        order.supply_status = first.supply_status


class TSoftClient:
    def __init__(
        self,
        config: UpstreamConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        decoder: Optional[ResponseDecoder] = None,
    ) -> None:
        self.config = config
        self.transport = UpstreamTransport(
            base_url=config.base_url,
            token=config.token,
            debug=config.debug,
            timeout_seconds=config.timeout_seconds,
            client=http_client,
        )
        self.fallback = EndpointFallback(self.transport, decoder)
        self.detail_breaker = DetailCircuitBreaker()

    @property
    def decoder(self) -> ResponseDecoder:
        return self.fallback.decoder

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "TSoftClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_products(
        self,
        limit: int = 50,
        page: int = 1,
        search: Optional[str] = None,
        filters: Optional[Dict[str, str]] = None,
    ) -> Envelope:
        form = _with_filters({"limit": str(limit)}, filters)
        params = {"page": str(page), "limit": str(limit)}
        if search and search.strip():
            params["search"] = search
        params = _with_filters(params, filters)

        return await self.fallback.run(
            "product",
            [
                legacy_tier("legacy", endpoints.PRODUCTS_LEGACY, form),
                json_get_tier("json", endpoints.PRODUCTS_JSON, params),
            ],
            List[Product],
            allow_empty=True,
        )

    async def get_product_by_code(self, code: str) -> Envelope:
        form = {"ProductCode": code, "productCode": code, "ProductId": code, "productId": code}
        return await self.fallback.run(
            "product lookup",
            [
                legacy_tier("legacy", endpoints.PRODUCT_BY_CODE_LEGACY, form),
                json_get_tier("json", [p.format(code=code) for p in endpoints.PRODUCT_BY_CODE_JSON]),
            ],
            Product,
            failure_message=f"Product not found: {code}",
        )

    async def get_product_with_variants(self, code: str) -> Envelope:
        """Product plus its sub-products; some deployments want "T2429", others "2429"."""
        codes_to_try = [code]
        numeric_code = (code or "").lstrip("Tt")
        if numeric_code and numeric_code != code:
            codes_to_try.append(numeric_code)

        tiers: List[FallbackTier] = []
        for candidate_code in codes_to_try:
            form = {
                "ProductId": candidate_code,
                "productId": candidate_code,
                "ProductCode": code,
                "productCode": code,
                "code": candidate_code,
                "Id": candidate_code,
            }
            form.update(VARIANT_FLAGS)
            tiers.append(legacy_tier(f"legacy[{candidate_code}]", endpoints.PRODUCT_VARIANTS_LEGACY, form))
        tiers.append(
            json_get_tier(
                "json",
                [p.format(code=code) for p in endpoints.PRODUCT_VARIANTS_JSON],
                VARIANT_QUERY,
            )
        )

        envelope = await self.fallback.run(
            "product variants",
            tiers,
            Product,
            failure_message=f"Product not found: {code}",
        )
        if envelope.success and envelope.data is not None:
            logger.info("Product %s has %d variants", code, len(envelope.data.variants))
        return envelope

    async def get_product_images(self, code: str) -> Envelope:
        """Images of one product. A failed call is not an error: no images."""
        result = await self.transport.post_form(endpoints.PRODUCT_IMAGES, {"ProductCode": code})
        if not result.ok:
            return Envelope.ok([])
        return self.decoder.decode(result.body, List[ProductImage])

    async def get_bulk_product_images(
        self,
        codes: Sequence[str],
        max_parallel: Optional[int] = None,
    ) -> Dict[str, List[ProductImage]]:
        semaphore = asyncio.Semaphore(max_parallel or self.config.concurrency.images)

        async def fetch(code: str):
            async with semaphore:
                return code, await self.get_product_images(code)

        results = await asyncio.gather(*(fetch(code) for code in codes))
        return {
            code: list(envelope.data)
            for code, envelope in results
            if envelope.success and envelope.data is not None
        }

    async def get_enhanced_products(self, limit: int = 50, page: int = 1, include_images: bool = True) -> Envelope:
        """Product list decorated with category name/path and (first page only) images."""
        products_result = await self.get_products(limit=limit, page=page)
        if not products_result.success or products_result.data is None:
            return products_result
        products: List[Product] = list(products_result.data)

        tree_result = await self.get_category_tree()
        categories: Dict[str, Category] = {}
        if tree_result.success and tree_result.data:
            categories = flatten_category_tree(tree_result.data)

        for product in products:
            category = categories.get(product.default_category_code or "")
            if category is not None:
                product.category_name = category.category_name
                product.category_path = split_path(category.path)

        if include_images and page == 1 and products:
            head = products[:ENHANCED_IMAGE_PRODUCTS]
            codes = [p.product_code for p in head if p.product_code]
            images_by_code = await self.get_bulk_product_images(codes, self.config.concurrency.enhanced_images)
            for product in head:
                images = images_by_code.get(product.product_code or "")
                if not images:
                    continue
                product.images = images
                image = primary_image(images)
                product.thumbnail_url = first_non_empty([image.thumbnail_url, image.thumbnail, image.image_url])
                product.image_url = first_non_empty([image.image_url, image.image])

        return Envelope.ok(products)

    async def add_product(
        self,
        code: str,
        name: str,
        category_code: str,
        price: Decimal,
        stock: int = 0,
        extra_fields: Optional[Dict[str, str]] = None,
    ) -> Envelope:
        extra = dict(extra_fields or {})
        payload = {
            "name": name,
            "wsProductCode": code,
            "priceSale": Decimal(str(price)),
            "stock": stock,
            "vat": to_int(extra.get("Vat"), default=DEFAULT_VAT),
            "visibility": True,
            "relation_hierarchy": [{"id": _numeric_category_id(category_code), "type": "category"}],
        }

        form = dict(extra)
        form.update(
            {
                "ProductCode": code,
                "ProductName": name,
                "CategoryCode": category_code,
                "Price": canonical_number_text(Decimal(str(price))),
                "Stock": str(stock),
            }
        )

        return await self.fallback.run(
            "add product",
            [
                legacy_tier("legacy", endpoints.PRODUCT_ADD_LEGACY, form),
                json_post_tier("json", endpoints.PRODUCT_ADD_JSON, payload),
            ],
            Product,
            accept=any_response,
        )

    async def create_products(self, products: Sequence[Product]) -> Envelope:
        """Add products one by one and report which went through."""
        created: List[Any] = []
        rejected: List[Dict[str, Any]] = []

        for product in products:
            result = await self.add_product(
                code=product.product_code or "",
                name=product.product_name or "",
                category_code=product.default_category_code or DEFAULT_CATEGORY_CODE,
                price=to_decimal(first_non_empty([product.selling_price, product.price])),
                stock=to_int(product.stock),
            )
            if result.success:
                created.append(result.data)
            else:
                rejected.append({"ProductCode": product.product_code, "Messages": result.messages})

        return Envelope(
            success=not rejected,
            data={"success": len(created), "failed": len(rejected), "ok": created, "fail": rejected},
        )

    async def update_product(self, product: Product) -> Envelope:
        form = {"ProductCode": product.product_code or "", "ProductId": product.product_id or ""}
        if product.product_name:
            form["ProductName"] = product.product_name
        if product.price:
            form["Price"] = product.price
        if product.stock:
            form["Stock"] = product.stock

        return await self.fallback.run(
            "update product",
            [legacy_tier("legacy", [endpoints.PRODUCT_UPDATE], form)],
            Product,
            failure_message="Update product failed",
            accept=any_response,
        )

    async def delete_product(self, code: str) -> Envelope:
        return await self.fallback.run_void(
            "delete product",
            [legacy_tier("legacy", [endpoints.PRODUCT_DELETE], {"ProductCode": code})],
            failure_message=f"Delete product failed: {code}",
        )

    async def update_product_stock(self, code: str, stock: int) -> Envelope:
        return await self.fallback.run_void(
            "update stock",
            [legacy_tier("legacy", [endpoints.PRODUCT_STOCK], {"ProductCode": code, "Stock": str(stock)})],
            failure_message=f"Update stock failed: {code}",
        )

    async def update_variant_stock(self, code: str, variant_code: str, stock: int) -> Envelope:
        form = {
            "productCode": code,
            "variantCode": variant_code,
            "stock": str(stock),
            "stockQuantity": str(stock),
        }
        logger.info("Updating variant stock: %s/%s = %d", code, variant_code, stock)
        return await self.fallback.run_void(
            "update variant stock",
            [legacy_tier("legacy", endpoints.VARIANT_STOCK_LEGACY, form)],
            failure_message="Failed to update variant stock",
        )

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_categories(self) -> Envelope:
        return await self.fallback.run(
            "category",
            [
                legacy_tier("legacy", endpoints.CATEGORIES_LEGACY, {}),
                json_get_tier("json", endpoints.CATEGORIES_JSON),
            ],
            List[Category],
            allow_empty=True,
        )

    async def get_category_tree(self) -> Envelope:
        """Nested categories with breadcrumb paths; rebuilt from the flat list when needed."""
        result = await self.transport.post_form(endpoints.CATEGORY_TREE, {})
        if result.ok:
            parsed = self.decoder.decode(result.body, List[Category])
            if parsed.success and parsed.data:
                build_category_paths(parsed.data)
                return parsed
            logger.debug("Category tree endpoint returned nothing usable, rebuilding from flat list")

        flat = await self.get_categories()
        if flat.success and flat.data is not None:
            tree = build_tree_from_flat_list(list(flat.data))
            build_category_paths(tree)
            return Envelope.ok(tree)

        return Envelope.fail("Category tree failed")

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def get_customers(self, limit: int = 50, filters: Optional[Dict[str, str]] = None) -> Envelope:
        form = _with_filters({"limit": str(limit)}, filters)
        return await self.fallback.run(
            "customer",
            [
                legacy_tier("legacy", endpoints.CUSTOMERS_LEGACY, form),
                json_get_tier("json", endpoints.CUSTOMERS_JSON, form),
            ],
            List[Customer],
            allow_empty=True,
        )

    async def get_customer_by_id(self, customer_id: int) -> Envelope:
        text = str(customer_id)
        form = {"CustomerId": text, "customerId": text, "Id": text}
        return await self.fallback.run(
            "customer",
            [legacy_tier("legacy", endpoints.CUSTOMER_BY_ID_LEGACY, form)],
            Customer,
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def get_orders(self, limit: int = 50, filters: Optional[Dict[str, str]] = None) -> Envelope:
        form = _with_filters({"limit": str(limit)}, filters)
        return await self.fallback.run(
            "order",
            [
                legacy_tier("legacy", endpoints.ORDERS_LEGACY, form),
                json_get_tier("json", endpoints.ORDERS_JSON, form),
            ],
            List[Order],
            allow_empty=True,
        )

    async def get_order_details_by_order_id(self, order_id: int) -> Envelope:
        """Order lines for one order: order2 tier, then legacy, then JSON."""
        text = str(order_id)
        form = {"OrderId": text, "orderId": text, "id": text}
        logger.info("Fetching order details for OrderId: %s", text)

        order2 = FallbackTier(
            "order2",
            [
                # ids embedded in the path need no form fields
                EndpointCandidate(path.format(order_id=text), RequestStyle.LEGACY_FORM, form={})
                if "{order_id}" in path
                else EndpointCandidate(path, RequestStyle.LEGACY_FORM, form=form)
                for path in endpoints.ORDER_DETAILS_ORDER2
            ],
        )
        tiers = [
            order2,
            legacy_tier("legacy", endpoints.ORDER_DETAILS_LEGACY, form),
            json_get_tier("json", [p.format(order_id=text) for p in endpoints.ORDER_DETAILS_JSON]),
        ]

        envelope = await self.fallback.run(
            "order details",
            tiers,
            List[OrderDetail],
            failure_message=f"Order details not found for OrderId: {text}",
        )
        if not envelope.success:
            logger.error("All order detail endpoints failed for OrderId: %s", text)
        return envelope

    async def get_order_details_by_order_code(self, order_code: str) -> Envelope:
        form = {"OrderCode": order_code, "orderCode": order_code, "code": order_code}
        order2 = FallbackTier(
            "order2",
            [
                EndpointCandidate(path.format(order_code=order_code), RequestStyle.LEGACY_FORM, form={})
                if "{order_code}" in path
                else EndpointCandidate(path, RequestStyle.LEGACY_FORM, form=form)
                for path in endpoints.ORDER_DETAILS_BY_CODE_ORDER2
            ],
        )
        return await self.fallback.run(
            "order details by code",
            [order2, legacy_tier("legacy", endpoints.ORDER_DETAILS_BY_CODE_LEGACY, form)],
            List[OrderDetail],
            failure_message=f"Order details not found for OrderCode: {order_code}",
        )

    async def enrich_orders_with_details(self, orders: List[Order]) -> EnrichmentReport:
        """
        Attach order lines to each order in place.

        The first order is probed; if its details cannot be fetched the
        circuit breaker trips and later calls skip detail fetching entirely
        until detail_breaker.reset(). Otherwise the remaining orders are
        fetched concurrently.
        """
        report = EnrichmentReport()
        if not orders:
            return report
        if self.detail_breaker.is_open:
            logger.info("Order details are disabled (previous check failed)")
            report.skipped = True
            report.warning = DETAILS_DISABLED
            return report

        probe_order = orders[0]
        probe_id = probe_order.numeric_order_id()
        if probe_id is None:
            logger.debug("First order has no numeric OrderId, skipping details")
            return report

        report.attempted = True
        probe = await self.get_order_details_by_order_id(probe_id)
        if not probe.success:
            self.detail_breaker.trip(probe.first_message or "order details unavailable")
            report.failed = 1
            report.warning = DETAILS_UNAVAILABLE
            return report

        _apply_details(probe_order, list(probe.data))
        report.succeeded = 1

        semaphore = asyncio.Semaphore(self.config.concurrency.order_details)

        async def fetch(order: Order) -> Optional[bool]:
            order_id = order.numeric_order_id()
            if order_id is None:
                return None
            async with semaphore:
                result = await self.get_order_details_by_order_id(order_id)
            if result.success and result.data is not None:
                _apply_details(order, list(result.data))
                return True
            return False

        outcomes = await asyncio.gather(*(fetch(order) for order in orders[1:]))
        report.succeeded += sum(1 for outcome in outcomes if outcome is True)
        report.failed += sum(1 for outcome in outcomes if outcome is False)

        logger.info("Details fetched: %d success, %d failed", report.succeeded, report.failed)
        return report

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_payment_types(self) -> Envelope:
        return await self.fallback.run(
            "payment type",
            [legacy_tier("legacy", endpoints.PAYMENT_TYPES_LEGACY, {})],
            List[PaymentType],
            allow_empty=True,
        )

    async def get_cargo_companies(self) -> Envelope:
        return await self.fallback.run(
            "cargo company",
            [legacy_tier("legacy", endpoints.CARGO_COMPANIES_LEGACY, {})],
            List[CargoCompany],
            allow_empty=True,
        )

    async def get_order_status_list(self) -> Envelope:
        return await self.fallback.run(
            "order status",
            [legacy_tier("legacy", endpoints.ORDER_STATUSES_LEGACY, {})],
            List[OrderStatusInfo],
            allow_empty=True,
        )
