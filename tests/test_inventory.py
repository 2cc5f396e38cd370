import pytest

from conftest import stock_of
from scanix.errors import InsufficientStockError, ProductNotFoundError, ValidationError, WarehouseNotFoundError
from scanix.inventory import adjust_stock, stock_by_warehouse
from scanix.models import StockMovement


def _pid(store, sku):
    return store.find_product_by_sku(sku).id


def test_entrada_adds_stock_and_records_movement(store, seeded):
    pid = _pid(store, "AOL-500")
    assert adjust_stock(store, pid, "Deposito Central", "entrada", 5, "Compra nueva") == 50
    assert stock_of(seeded, "AOL-500") == 50

    movement = seeded.query(StockMovement).one()
    assert movement.delta == 5
    assert movement.reason == "Compra nueva"


def test_entrada_creates_missing_stock_row(store, seeded):
    pid = _pid(store, "PAS-500")
    assert adjust_stock(store, pid, "Deposito Norte", "entrada", 12, "Producción interna", notes="lote 7") == 12
    assert stock_by_warehouse(seeded, pid) == {"Deposito Norte": 12}


def test_salida_removes_stock(store, seeded):
    pid = _pid(store, "ARR-1000")
    assert adjust_stock(store, pid, "Deposito Central", "salida", 23, "Producto vencido") == 0
    assert seeded.query(StockMovement).one().delta == -23


def test_salida_cannot_exceed_available(store, seeded):
    pid = _pid(store, "ARR-1000")
    with pytest.raises(InsufficientStockError):
        adjust_stock(store, pid, "Deposito Central", "salida", 24, "Producto dañado")
    assert stock_of(seeded, "ARR-1000") == 23
    assert seeded.query(StockMovement).count() == 0


@pytest.mark.parametrize("kind, quantity, reason", [
    ("entrada", 0, "Compra nueva"),
    ("entrada", 3, ""),
    ("traspaso", 3, "Ajuste de inventario"),
])
def test_invalid_adjustments(store, kind, quantity, reason):
    pid = _pid(store, "AOL-500")
    with pytest.raises(ValidationError):
        adjust_stock(store, pid, "Deposito Central", kind, quantity, reason)


def test_unknown_product_or_warehouse(store):
    with pytest.raises(ProductNotFoundError):
        adjust_stock(store, "nope", "Deposito Central", "entrada", 1, "Compra nueva")
    with pytest.raises(WarehouseNotFoundError):
        adjust_stock(store, _pid(store, "AOL-500"), "Deposito Sur", "entrada", 1, "Compra nueva")
