import logging
from typing import Dict

from sqlalchemy.orm import Session

from .errors import InsufficientStockError, ProductNotFoundError, WarehouseNotFoundError
from .models import StockLevel, Warehouse
from .schemas import StockAdjustmentIn, parse
from .stores import CoreStore

LOGGER = logging.getLogger(__name__)

# Motivos que ofrece el punto de venta (GET /api/stock/reasons); no se valida contra esta lista
ENTRADA_REASONS = (
    "Compra nueva",
    "Devolución cliente",
    "Transferencia entre depósitos",
    "Ajuste de inventario",
    "Producción interna",
)
SALIDA_REASONS = (
    "Venta",
    "Producto dañado",
    "Producto vencido",
    "Transferencia entre depósitos",
    "Ajuste de inventario",
    "Muestra gratuita",
)


def adjust_stock(store: CoreStore, product_id: str, warehouse: str, kind: str,
                 quantity: int, reason: str, notes: str = "") -> int:
    """Entrada o salida manual de stock con motivo. Devuelve la cantidad nueva."""
    adj = parse(StockAdjustmentIn, {
        "warehouse": warehouse, "kind": kind, "quantity": quantity,
        "reason": reason, "notes": notes or "",
    })

    with store.transaction():
        product = store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        wh = store.find_warehouse(adj.warehouse)
        if wh is None:
            raise WarehouseNotFoundError(adj.warehouse)

        if adj.kind == "entrada":
            new_qty = store.increment_stock(product.id, wh.id, adj.quantity)
            delta = adj.quantity
        else:
            available = store.get_stock(product.id, wh.id)
            if adj.quantity > available:
                raise InsufficientStockError(product.sku, adj.quantity, available)
            new_qty = store.decrement_stock(product.id, wh.id, adj.quantity)
            delta = -adj.quantity
        store.record_movement(product.id, wh.id, delta, adj.reason, adj.notes)
        sku, wh_name = product.sku, wh.name

    LOGGER.info("Stock %s en %s: %+d (%s) -> %d", sku, wh_name, delta, adj.reason, new_qty)
    return new_qty


def stock_by_warehouse(db: Session, product_id: str) -> Dict[str, int]:
    rows = (
        db.query(Warehouse.name, StockLevel.quantity)
        .join(StockLevel, StockLevel.warehouse_id == Warehouse.id)
        .filter(StockLevel.product_id == product_id)
        .order_by(Warehouse.name)
        .all()
    )
    return {name: qty for name, qty in rows}
