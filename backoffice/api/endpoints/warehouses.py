from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backoffice.api.dependencies import get_warehouse_service
from backoffice.database.models import Warehouse, WarehouseStock
from backoffice.services.warehouse_service import WarehouseService

router = APIRouter(prefix="/api/warehouses", tags=["Warehouses"])

WAREHOUSE_NOT_FOUND = "Warehouse not found"


class WarehouseRequest(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    location: str = ""


class AddStockRequest(BaseModel):
    barcode: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class TransferRequest(BaseModel):
    from_warehouse_id: int
    to_warehouse_id: int
    barcode: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _warehouse(warehouse: Warehouse) -> Dict[str, Any]:
    data = asdict(warehouse)
    data["created_at"] = warehouse.created_at.isoformat()
    return data


def _stock(stock: WarehouseStock) -> Dict[str, Any]:
    data = asdict(stock)
    data["created_at"] = stock.created_at.isoformat()
    data["last_updated"] = stock.last_updated.isoformat()
    return data


@router.get("")
async def list_warehouses(service: WarehouseService = Depends(get_warehouse_service)):
    return {"success": True, "data": [_warehouse(w) for w in service.list_warehouses()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_warehouse(request: WarehouseRequest, service: WarehouseService = Depends(get_warehouse_service)):
    warehouse = service.create_warehouse(request.code, request.name, request.location)
    return {"success": True, "data": _warehouse(warehouse)}


@router.post("/transfer")
async def transfer_stock(request: TransferRequest, service: WarehouseService = Depends(get_warehouse_service)):
    ok, message = service.transfer_stock(
        request.from_warehouse_id, request.to_warehouse_id, request.barcode, request.quantity
    )
    if not ok:
        code = status.HTTP_404_NOT_FOUND if message == WAREHOUSE_NOT_FOUND else status.HTTP_400_BAD_REQUEST
        return _fail(code, message)
    return {"success": True, "message": message}


@router.get("/stocks/{barcode}")
async def barcode_stocks(barcode: str, service: WarehouseService = Depends(get_warehouse_service)):
    """Where a barcode is stocked, plus the total across warehouses."""
    return {
        "success": True,
        "barcode": barcode,
        "data": service.get_product_stocks_in_all_warehouses(barcode),
        "total": service.get_total_stock(barcode),
    }


@router.get("/{warehouse_id}")
async def get_warehouse(warehouse_id: int, service: WarehouseService = Depends(get_warehouse_service)):
    warehouse = service.get_warehouse(warehouse_id)
    if warehouse is None:
        return _fail(status.HTTP_404_NOT_FOUND, WAREHOUSE_NOT_FOUND)
    return {"success": True, "data": _warehouse(warehouse)}


@router.put("/{warehouse_id}")
async def update_warehouse(
    warehouse_id: int,
    request: WarehouseRequest,
    service: WarehouseService = Depends(get_warehouse_service),
):
    warehouse = service.update_warehouse(warehouse_id, request.code, request.name, request.location)
    if warehouse is None:
        return _fail(status.HTTP_404_NOT_FOUND, WAREHOUSE_NOT_FOUND)
    return {"success": True, "data": _warehouse(warehouse)}


@router.delete("/{warehouse_id}")
async def delete_warehouse(warehouse_id: int, service: WarehouseService = Depends(get_warehouse_service)):
    ok, message = service.delete_warehouse(warehouse_id)
    if not ok:
        code = status.HTTP_404_NOT_FOUND if message == WAREHOUSE_NOT_FOUND else status.HTTP_400_BAD_REQUEST
        return _fail(code, message)
    return {"success": True, "message": message}


@router.get("/{warehouse_id}/stocks")
async def warehouse_stocks(warehouse_id: int, service: WarehouseService = Depends(get_warehouse_service)):
    """Stock records of a warehouse; id 0 lists every warehouse."""
    if warehouse_id != 0 and service.get_warehouse(warehouse_id) is None:
        return _fail(status.HTTP_404_NOT_FOUND, WAREHOUSE_NOT_FOUND)
    return {"success": True, "data": [_stock(s) for s in service.get_warehouse_stocks(warehouse_id)]}


@router.post("/{warehouse_id}/stocks")
async def add_stock(
    warehouse_id: int,
    request: AddStockRequest,
    service: WarehouseService = Depends(get_warehouse_service),
):
    ok, message, stock = service.add_stock_by_barcode(warehouse_id, request.barcode, request.quantity)
    if not ok:
        return _fail(status.HTTP_404_NOT_FOUND, message)
    return {"success": True, "message": message, "data": _stock(stock)}
