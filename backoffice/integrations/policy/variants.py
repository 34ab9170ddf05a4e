"""
Variant (color/size sub-product) helpers.

Tenants and API versions name the same variant attribute differently
("color", "renk", "Property1", "Nitelik1", ...). Each logical attribute is
resolved by walking a fixed priority list of field names and returning the
first present, non-empty value.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from backoffice.integrations.policy.flexible_scalars import first_non_empty, is_truthy

if TYPE_CHECKING:  # pragma: no cover
    from backoffice.integrations.contracts.entities import Product, ProductImage, ProductVariant

DEFAULT_COLOR_KEY = "Default"
DEFAULT_SIZE_KEY = "One Size"
DEFAULT_VARIANT_LABEL = "Variant"

COLOR_FIELDS = (
    "color",
    "colour",
    "color_name",
    "color_code",
    "renk",
    "property1",
    "property_value1",
    "variant1",
    "attribute1",
    "option1",
    "nitelik1",
)

SIZE_FIELDS = (
    "size",
    "size_name",
    "size_code",
    "beden",
    "property2",
    "property_value2",
    "variant2",
    "attribute2",
    "option2",
    "nitelik2",
)

STOCK_FIELDS = ("stock", "stock_quantity", "available_stock")
PRICE_FIELDS = ("selling_price", "price")
LABEL_FIELDS = ("variant_name", "product_name", "variant_code", "product_code")


def resolve_field(record: object, field_names: Sequence[str]) -> str:
    """First non-empty attribute value in priority order, or ''."""
    return first_non_empty(getattr(record, name, None) for name in field_names) or ""


def resolve_color(variant: "ProductVariant") -> str:
    return resolve_field(variant, COLOR_FIELDS)


def resolve_size(variant: "ProductVariant") -> str:
    return resolve_field(variant, SIZE_FIELDS)


def display_name(variant: "ProductVariant") -> str:
    color = resolve_color(variant)
    size = resolve_size(variant)
    if color and size:
        return f"{color} - {size}"
    if color:
        return color
    if size:
        return size
    return resolve_field(variant, LABEL_FIELDS) or DEFAULT_VARIANT_LABEL


def is_active_variant(variant: "ProductVariant") -> bool:
    """Active unless one of the active/available flags says otherwise."""
    if not variant.is_active and not variant.is_available:
        return True
    value = variant.is_active if variant.is_active else variant.is_available
    return is_truthy(value)


def _group(variants: List["ProductVariant"], resolver, default_key: str) -> Dict[str, List["ProductVariant"]]:
    grouped: Dict[str, List["ProductVariant"]] = OrderedDict()
    for variant in variants:
        key = resolver(variant) or default_key
        grouped.setdefault(key, []).append(variant)
    return grouped


def variants_by_color(product: "Product") -> Dict[str, List["ProductVariant"]]:
    return _group(product.variants, resolve_color, DEFAULT_COLOR_KEY)


def variants_by_size(product: "Product") -> Dict[str, List["ProductVariant"]]:
    return _group(product.variants, resolve_size, DEFAULT_SIZE_KEY)


def primary_image(images: Optional[List["ProductImage"]]) -> Optional["ProductImage"]:
    """Image flagged as primary/main, else the first one."""
    if not images:
        return None
    for image in images:
        for flag in (image.is_primary, image.is_main):
            if flag and flag.strip().lower() in ("1", "true"):
                return image
    return images[0]
