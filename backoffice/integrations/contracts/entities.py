"""
T-Soft domain entities.

Every scalar attribute is a LooseStr (text or None): the upstream mixes
strings, numbers and booleans for the same field between endpoints and
deployments, so the models never insist on a native type. Use the helper
methods for numeric/boolean interpretation.

Field names are snake_case; the upstream PascalCase/camelCase names are
matched case-insensitively through the alias generator.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_pascal
from pydantic.config import ConfigDict

from backoffice.integrations.policy import variants as variant_rules
from backoffice.integrations.policy.flexible_scalars import (
    LooseInt,
    LooseStr,
    LooseStrList,
    first_non_empty,
    loose_model_list,
    to_decimal,
    to_int,
)


@lru_cache(maxsize=None)
def _key_lookup(model_type: type) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for name, info in model_type.model_fields.items():
        alias = info.alias or name
        lookup.setdefault(alias.lower(), alias)
        lookup.setdefault(name.lower(), alias)
        lookup.setdefault(name.replace("_", "").lower(), alias)
    return lookup


class UpstreamModel(BaseModel):
    """Base for all upstream records: case-insensitive keys, unknown keys ignored."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_pascal,
        protected_namespaces=(),
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = _key_lookup(cls)
        matched: Dict[str, Any] = {}
        for key, value in data.items():
            target = lookup.get(str(key).lower())
            if target is None:
                continue
            if matched.get(target) is not None:
                continue
            matched[target] = value
        return matched

    def is_blank(self) -> bool:
        """True when no attribute carries a value."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value in (None, "", [], {}):
                continue
            if isinstance(value, int) and not isinstance(value, bool) and value == 0:
                continue
            return False
        return True


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductImage(UpstreamModel):
    image_id: LooseStr = None
    product_image_id: LooseStr = None
    image_url: LooseStr = None
    image_path: LooseStr = None
    image: LooseStr = None
    thumbnail_url: LooseStr = None
    thumbnail: LooseStr = None
    is_primary: LooseStr = None
    is_main: LooseStr = None
    is_active: LooseStr = None
    order: LooseStr = None
    order_no: LooseStr = None


class ProductVariant(UpstreamModel):
    """A color/size combination of a product."""

    product_code: LooseStr = None
    product_id: LooseStr = None
    sub_product_id: LooseStr = None
    variant_id: LooseStr = None
    variant_code: LooseStr = None
    product_name: LooseStr = None
    variant_name: LooseStr = None
    sub_id: LooseStr = None
    id: LooseStr = None

    color: LooseStr = None
    colour: LooseStr = None
    color_code: LooseStr = None
    color_name: LooseStr = None
    renk: LooseStr = None
    property1: LooseStr = None
    property_value1: LooseStr = None
    variant1: LooseStr = None
    attribute1: LooseStr = None
    option1: LooseStr = None
    nitelik1: LooseStr = None

    size: LooseStr = None
    size_code: LooseStr = None
    size_name: LooseStr = None
    beden: LooseStr = None
    property2: LooseStr = None
    property_value2: LooseStr = None
    variant2: LooseStr = None
    attribute2: LooseStr = None
    option2: LooseStr = None
    nitelik2: LooseStr = None

    stock: LooseStr = None
    stock_quantity: LooseStr = None
    available_stock: LooseStr = None

    price: LooseStr = None
    selling_price: LooseStr = None
    buying_price: LooseStr = None

    is_active: LooseStr = None
    is_available: LooseStr = None

    barcode: LooseStr = None
    sku: LooseStr = None
    model_code: LooseStr = None

    image: LooseStr = None
    image_url: LooseStr = None
    thumbnail: LooseStr = None
    thumbnail_url: LooseStr = None

    def get_color(self) -> str:
        return variant_rules.resolve_color(self)

    def get_size(self) -> str:
        return variant_rules.resolve_size(self)

    def get_stock_quantity(self) -> int:
        return to_int(first_non_empty(getattr(self, name) for name in variant_rules.STOCK_FIELDS))

    def get_price(self) -> Decimal:
        return to_decimal(first_non_empty(getattr(self, name) for name in variant_rules.PRICE_FIELDS))

    @property
    def is_active_variant(self) -> bool:
        return variant_rules.is_active_variant(self)

    @property
    def display_name(self) -> str:
        return variant_rules.display_name(self)


VariantList = loose_model_list(ProductVariant)
ImageList = loose_model_list(ProductImage)


class Product(UpstreamModel):
    product_id: LooseStr = None
    product_code: LooseStr = None

    product_name: LooseStr = None
    default_category_code: LooseStr = None
    default_category_id: LooseStr = None
    default_category_name: LooseStr = None
    default_category_path: LooseStr = None

    stock: LooseStr = None
    stock_unit: LooseStr = None
    stock_unit_id: LooseStr = None

    is_active: LooseStr = None
    is_approved: LooseStr = None
    comparison_sites: LooseStr = None
    has_sub_products: LooseStr = None
    has_images: LooseStr = None

    price: LooseStr = None
    buying_price: LooseStr = None
    selling_price: LooseStr = None
    selling_price_vat_included: LooseStr = None
    selling_price_vat_included_no_discount: LooseStr = None
    discounted_selling_price: LooseStr = None
    vat: LooseStr = None
    currency_id: LooseStr = None
    currency: LooseStr = None

    brand: LooseStr = None
    brand_id: LooseStr = None
    brand_link: LooseStr = None
    model: LooseStr = None
    model_id: LooseStr = None

    supplier_id: LooseStr = None
    supplier_product_code: LooseStr = None

    barcode: LooseStr = None
    description: LooseStr = None
    short_description: LooseStr = None
    search_keywords: LooseStr = None
    seo_link: LooseStr = None

    display_on_homepage: LooseStr = None
    is_new_product: LooseStr = None
    on_sale: LooseStr = None
    is_display_product: LooseStr = None
    vendor_display_only: LooseStr = None
    display_with_vat: LooseStr = None
    customer_group_display: LooseStr = None

    additional1: LooseStr = None
    additional2: LooseStr = None
    additional3: LooseStr = None

    image_url: LooseStr = None
    thumbnail_url: LooseStr = None
    image: LooseStr = None
    images: ImageList = None

    category_name: LooseStr = None
    category_path: LooseStrList = None
    categories: LooseStrList = None

    update_date: LooseStr = None
    update_date_time_stamp: LooseStr = None
    created_date: LooseStr = None
    date_created: LooseStr = None
    last_modified: LooseStr = None

    stock_code: LooseStr = None

    sub_products: VariantList = Field(default=None, alias="SubProducts")
    sub_product_list: VariantList = Field(default=None, alias="SubProductList")
    product_variants: VariantList = Field(default=None, alias="Products")

    @property
    def variants(self) -> List[ProductVariant]:
        """First non-empty variant list; the three lists are never merged."""
        for candidate in (self.sub_products, self.sub_product_list, self.product_variants):
            if candidate:
                return list(candidate)
        return []

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0

    def get_stock_quantity(self) -> int:
        return to_int(self.stock)

    def get_price(self) -> Decimal:
        return to_decimal(first_non_empty([self.selling_price, self.price]))


# ---------------------------------------------------------------------------
# Categories & customers
# ---------------------------------------------------------------------------


class Category(UpstreamModel):
    category_code: LooseStr = None
    category_name: LooseStr = None
    parent_category_code: LooseStr = None
    is_active: LooseStr = None
    category_id: LooseStr = None
    parent_category_id: LooseStr = None
    level: LooseStr = None
    order: LooseStr = None
    children: loose_model_list("Category") = None
    path: LooseStr = None


Category.model_rebuild()


class Customer(UpstreamModel):
    customer_id: LooseStr = None
    customer_code: LooseStr = None
    customer_name: LooseStr = None
    email: LooseStr = None
    phone: LooseStr = None
    is_active: LooseStr = None
    created_date: LooseStr = None
    date_created: LooseStr = None
    update_date: LooseStr = None
    update_date_time_stamp: LooseStr = None
    last_modified: LooseStr = None
    customer_group_id: LooseStr = None
    customer_group: LooseStr = None
    city: LooseStr = None
    country: LooseStr = None
    address: LooseStr = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderDetail(UpstreamModel):
    id: LooseStr = None
    order_id: LooseStr = None
    product_id: LooseStr = None
    product_code: LooseStr = None
    product_name: LooseStr = None
    quantity: LooseStr = None
    price: LooseStr = None
    total: LooseStr = None
    city: LooseStr = None
    shipping_city: LooseStr = None
    delivery_city: LooseStr = None
    invoice_city: LooseStr = None
    supply_status: LooseStr = None


DetailList = loose_model_list(OrderDetail)


class Order(UpstreamModel):
    id: LooseStr = None
    order_id: LooseStr = None
    order_code: LooseStr = None
    status: LooseStr = None
    order_status: LooseStr = None
    order_status_id: LooseStr = None
    supply_status: LooseStr = None
    customer_id: LooseStr = None
    customer_code: LooseStr = None
    customer_name: LooseStr = None
    customer_username: LooseStr = None
    customer_email: LooseStr = None
    customer_phone: LooseStr = None
    customer_group_id: LooseStr = None
    order_date: LooseStr = None
    order_date_time_stamp: LooseStr = None
    created_date: LooseStr = None
    date_created: LooseStr = None
    update_date: LooseStr = None
    update_date_time_stamp: LooseStr = None
    approval_time: LooseStr = None
    city: LooseStr = None
    shipping_city: LooseStr = None
    shipping_address: LooseStr = None
    billing_city: LooseStr = None
    total: LooseStr = None
    total_amount: LooseStr = None
    order_total_price: LooseStr = None
    order_subtotal: LooseStr = None
    general_total: LooseStr = None
    sub_total: LooseStr = None
    discount_total: LooseStr = None
    tax_total: LooseStr = None
    shipping_total: LooseStr = None
    currency: LooseStr = None
    site_default_currency: LooseStr = None
    payment_type_id: LooseStr = None
    payment_type: LooseStr = None
    payment_type_name: LooseStr = None
    sub_payment_type_id: LooseStr = None
    payment_sub_method: LooseStr = None
    payment_bank_name: LooseStr = None
    bank: LooseStr = None
    payment_info: LooseStr = None
    cargo_id: LooseStr = None
    cargo_code: LooseStr = None
    cargo: LooseStr = None
    cargo_company_id: LooseStr = None
    cargo_company_name: LooseStr = None
    shipping_company_name: LooseStr = None
    cargo_tracking_code: LooseStr = None
    cargo_payment_method: LooseStr = None
    cargo_charge_with_vat: LooseStr = None
    cargo_charge_without_vat: LooseStr = None
    application: LooseStr = None
    language: LooseStr = None
    exchange_rate: LooseStr = None
    installment: LooseStr = None
    is_transferred: LooseStr = None
    non_member_shopping: LooseStr = None
    waybill_number: LooseStr = None
    invoice_number: LooseStr = None
    item_count: LooseInt = 0
    order_details: DetailList = None
    items: DetailList = None

    def numeric_order_id(self) -> Optional[int]:
        """OrderId as an int; detail endpoints only accept numeric ids."""
        text = (self.order_id or "").strip()
        if not text.lstrip("-").isdigit():
            return None
        return int(text)


class OrderStatusInfo(UpstreamModel):
    id: LooseStr = None
    order_status_id: LooseStr = None
    name: LooseStr = None
    order_status_name: LooseStr = None
    code: LooseStr = None


class PaymentType(UpstreamModel):
    id: LooseStr = None
    payment_type_id: LooseStr = None
    name: LooseStr = None
    payment_type_name: LooseStr = None
    code: LooseStr = None


class CargoCompany(UpstreamModel):
    id: LooseStr = None
    cargo_company_id: LooseStr = None
    name: LooseStr = None
    cargo_company_name: LooseStr = None
    code: LooseStr = None
