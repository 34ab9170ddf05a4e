"""
Warehouse ledger: local stock bookkeeping per warehouse and barcode.

T-Soft only knows a single stock figure per product; this service tracks how
that stock is split across physical warehouses.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from backoffice.database.models import Warehouse, WarehouseStock, utcnow
from backoffice.database.stores import InMemoryRecordStore, RecordStore

logger = logging.getLogger(__name__)

UNKNOWN_WAREHOUSE = "Unknown"

DEFAULT_WAREHOUSES = (
    ("DEPO-01", "Ana Depo", "İstanbul"),
    ("DEPO-02", "Yedek Depo", "Ankara"),
)


class WarehouseService:
    def __init__(
        self,
        warehouses: Optional[RecordStore[Warehouse]] = None,
        stocks: Optional[RecordStore[WarehouseStock]] = None,
        seed_defaults: bool = True,
    ) -> None:
        self.warehouses = warehouses if warehouses is not None else InMemoryRecordStore()
        self.stocks = stocks if stocks is not None else InMemoryRecordStore()
        if seed_defaults and not self.warehouses.list():
            for code, name, location in DEFAULT_WAREHOUSES:
                self.warehouses.upsert(Warehouse(code=code, name=name, location=location))

    # ------------------------------------------------------------------ #
    # Warehouses
    # ------------------------------------------------------------------ #
    def list_warehouses(self) -> List[Warehouse]:
        return self.warehouses.list(lambda w: w.is_active)

    def get_warehouse(self, warehouse_id: int) -> Optional[Warehouse]:
        return self.warehouses.get(warehouse_id)

    def create_warehouse(self, code: str, name: str, location: str = "") -> Warehouse:
        warehouse = self.warehouses.upsert(Warehouse(code=code, name=name, location=location))
        logger.info("Warehouse created: %s - %s", warehouse.code, warehouse.name)
        return warehouse

    def update_warehouse(self, warehouse_id: int, code: str, name: str, location: str = "") -> Optional[Warehouse]:
        existing = self.warehouses.get(warehouse_id)
        if existing is None:
            return None
        existing.code = code
        existing.name = name
        existing.location = location
        self.warehouses.upsert(existing)
        logger.info("Warehouse updated: %s - %s", existing.code, existing.name)
        return existing

    def delete_warehouse(self, warehouse_id: int) -> Tuple[bool, str]:
        warehouse = self.warehouses.get(warehouse_id)
        if warehouse is None:
            return False, "Warehouse not found"
        if any(stock.quantity > 0 for stock in self.get_warehouse_stocks(warehouse_id)):
            return False, "Warehouse still holds stock"
        self.warehouses.soft_delete(warehouse_id)
        logger.info("Warehouse deleted: %s - %s", warehouse.code, warehouse.name)
        return True, "Warehouse deleted"

    # ------------------------------------------------------------------ #
    # Stock
    # ------------------------------------------------------------------ #
    def get_warehouse_stocks(self, warehouse_id: int = 0) -> List[WarehouseStock]:
        """Stock records of one warehouse, or of all warehouses for id 0."""
        if warehouse_id == 0:
            return self.stocks.list()
        return self.stocks.list(lambda s: s.warehouse_id == warehouse_id)

    def _find_stock(self, warehouse_id: int, barcode: str) -> Optional[WarehouseStock]:
        matches = self.stocks.list(lambda s: s.warehouse_id == warehouse_id and s.barcode == barcode)
        return matches[0] if matches else None

    def add_stock_by_barcode(
        self, warehouse_id: int, barcode: str, quantity: int
    ) -> Tuple[bool, str, Optional[WarehouseStock]]:
        warehouse = self.warehouses.get(warehouse_id)
        if warehouse is None:
            return False, "Warehouse not found", None

        stock = self._find_stock(warehouse_id, barcode)
        if stock is not None:
            stock.quantity += quantity
            stock.last_updated = utcnow()
            self.stocks.upsert(stock)
            logger.info("Stock updated: %s +%d = %d @ %s", barcode, quantity, stock.quantity, warehouse.name)
            return True, f"Stock updated: {stock.quantity} units", stock

        stock = self.stocks.upsert(WarehouseStock(warehouse_id=warehouse_id, barcode=barcode, quantity=quantity))
        logger.info("New stock added: %s = %d @ %s", barcode, quantity, warehouse.name)
        return True, f"New stock added: {quantity} units", stock

    def transfer_stock(self, from_warehouse_id: int, to_warehouse_id: int, barcode: str, quantity: int) -> Tuple[bool, str]:
        source = self.warehouses.get(from_warehouse_id)
        destination = self.warehouses.get(to_warehouse_id)
        if source is None or destination is None:
            return False, "Warehouse not found"

        from_stock = self._find_stock(from_warehouse_id, barcode)
        if from_stock is None or from_stock.quantity < quantity:
            return False, "Insufficient stock"

        from_stock.quantity -= quantity
        from_stock.last_updated = utcnow()
        self.stocks.upsert(from_stock)

        to_stock = self._find_stock(to_warehouse_id, barcode)
        if to_stock is not None:
            to_stock.quantity += quantity
            to_stock.last_updated = utcnow()
            self.stocks.upsert(to_stock)
        else:
            self.stocks.upsert(WarehouseStock(warehouse_id=to_warehouse_id, barcode=barcode, quantity=quantity))

        logger.info("Transfer completed: %s x%d | %s -> %s", barcode, quantity, source.name, destination.name)
        return True, f"{quantity} units transferred"

    def get_product_stocks_in_all_warehouses(self, barcode: str) -> List[Dict[str, object]]:
        rows = []
        for stock in self.stocks.list(lambda s: s.barcode == barcode):
            warehouse = self.warehouses.get(stock.warehouse_id)
            rows.append(
                {
                    "warehouse_id": stock.warehouse_id,
                    "warehouse_name": warehouse.name if warehouse else UNKNOWN_WAREHOUSE,
                    "quantity": stock.quantity,
                }
            )
        return rows

    def get_total_stock(self, barcode: str) -> int:
        return sum(stock.quantity for stock in self.stocks.list(lambda s: s.barcode == barcode))
