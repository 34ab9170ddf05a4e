"""
Integrations layer.
This package contains all code used to communicate with the T-Soft store API:
- contracts: entity models, the Envelope wrapper and known endpoint paths
- clients/real_http: the HTTP transport and the TSoftClient facade
- policy: decoding, fallback orchestration and variant/category helpers

Key rule:
- Routers MUST NOT call T-Soft directly; they go through TSoftClient.
"""

from .contracts.entities import (
    CargoCompany,
    Category,
    Customer,
    Order,
    OrderDetail,
    OrderStatusInfo,
    PaymentType,
    Product,
    ProductImage,
    ProductVariant,
)
from .contracts.envelope import Envelope

__all__ = [
    "CargoCompany",
    "Category",
    "Customer",
    "Envelope",
    "Order",
    "OrderDetail",
    "OrderStatusInfo",
    "PaymentType",
    "Product",
    "ProductImage",
    "ProductVariant",
]
