from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from backoffice.api.dependencies import get_tsoft_client, require_success
from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient
from backoffice.integrations.contracts.entities import Product, ProductVariant
from backoffice.integrations.policy.flexible_scalars import canonical_number_text
from backoffice.integrations.policy.variants import variants_by_color, variants_by_size

router = APIRouter(prefix="/api/products", tags=["Products"])


class ProductCreateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category_code: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(default=0, ge=0)
    extra_fields: Dict[str, str] = Field(default_factory=dict, description="Extra legacy form fields, e.g. Vat")


class ProductUpdateRequest(BaseModel):
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)


class BulkProductItem(BaseModel):
    code: str
    name: str
    category_code: Optional[str] = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    stock: int = Field(default=0, ge=0)


class StockUpdateRequest(BaseModel):
    stock: int = Field(..., ge=0)


def _variant_summary(variant: ProductVariant) -> Dict[str, Any]:
    return {
        "display_name": variant.display_name,
        "color": variant.get_color(),
        "size": variant.get_size(),
        "stock": variant.get_stock_quantity(),
        "price": canonical_number_text(variant.get_price()),
        "is_active": variant.is_active_variant,
        "variant_code": variant.variant_code or variant.product_code,
        "barcode": variant.barcode,
    }


def _grouped(groups: Dict[str, List[ProductVariant]]) -> Dict[str, List[Dict[str, Any]]]:
    return {key: [_variant_summary(v) for v in variants] for key, variants in groups.items()}


@router.get("")
async def list_products(
    limit: int = Query(50, ge=1, le=500),
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    client: TSoftClient = Depends(get_tsoft_client),
):
    result = require_success(await client.get_products(limit=limit, page=page, search=search), "product list")
    return result.to_payload()


@router.get("/enhanced")
async def list_enhanced_products(
    limit: int = Query(50, ge=1, le=500),
    page: int = Query(1, ge=1),
    include_images: bool = True,
    client: TSoftClient = Depends(get_tsoft_client),
):
    result = require_success(
        await client.get_enhanced_products(limit=limit, page=page, include_images=include_images),
        "enhanced product list",
    )
    return result.to_payload()


@router.get("/{code}")
async def get_product(code: str, client: TSoftClient = Depends(get_tsoft_client)):
    result = require_success(await client.get_product_by_code(code), "product lookup")
    return result.to_payload()


@router.get("/{code}/variants")
async def get_product_variants(code: str, client: TSoftClient = Depends(get_tsoft_client)):
    """Product with its variants, also grouped by color and by size."""
    result = require_success(await client.get_product_with_variants(code), "product variants")
    product: Product = result.data
    payload = result.to_payload()
    payload["variants"] = [_variant_summary(v) for v in product.variants]
    payload["by_color"] = _grouped(variants_by_color(product))
    payload["by_size"] = _grouped(variants_by_size(product))
    return payload


@router.post("")
async def create_product(request: ProductCreateRequest, client: TSoftClient = Depends(get_tsoft_client)):
    result = await client.add_product(
        code=request.code,
        name=request.name,
        category_code=request.category_code,
        price=request.price,
        stock=request.stock,
        extra_fields=request.extra_fields,
    )
    return require_success(result, "add product").to_payload()


@router.post("/bulk")
async def create_products(items: List[BulkProductItem], client: TSoftClient = Depends(get_tsoft_client)):
    products = [
        Product(
            product_code=item.code,
            product_name=item.name,
            default_category_code=item.category_code,
            price=canonical_number_text(item.price),
            stock=str(item.stock),
        )
        for item in items
    ]
    # partial failures are reported in the body, not as an error status
    return (await client.create_products(products)).to_payload()


@router.put("/{code}")
async def update_product(code: str, request: ProductUpdateRequest, client: TSoftClient = Depends(get_tsoft_client)):
    product = Product(
        product_code=code,
        product_id=request.product_id,
        product_name=request.product_name,
        price=canonical_number_text(request.price) if request.price is not None else None,
        stock=str(request.stock) if request.stock is not None else None,
    )
    return require_success(await client.update_product(product), "update product").to_payload()


@router.delete("/{code}")
async def delete_product(code: str, client: TSoftClient = Depends(get_tsoft_client)):
    require_success(await client.delete_product(code), "delete product")
    return {"success": True, "message": f"Product deleted: {code}"}


@router.post("/{code}/stock")
async def update_product_stock(code: str, request: StockUpdateRequest, client: TSoftClient = Depends(get_tsoft_client)):
    require_success(await client.update_product_stock(code, request.stock), "update stock")
    return {"success": True, "message": f"Stock updated: {code} = {request.stock}"}


@router.post("/{code}/variants/{variant_code}/stock")
async def update_variant_stock(
    code: str,
    variant_code: str,
    request: StockUpdateRequest,
    client: TSoftClient = Depends(get_tsoft_client),
):
    require_success(await client.update_variant_stock(code, variant_code, request.stock), "update variant stock")
    return {"success": True, "message": f"Variant stock updated: {code}/{variant_code} = {request.stock}"}
