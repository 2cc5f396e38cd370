import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .errors import (
    DuplicateSkuError,
    DuplicateWarehouseError,
    ProductNotFoundError,
    ValidationError,
    WarehouseNotFoundError,
)
from .models import PriceRule, Product, ProductImage, ProductTag, StockLevel, Warehouse
from .pricing import validate_price_rules
from .schemas import ProductIn, ProductUpdate, parse
from .stores import SqlStore

LOGGER = logging.getLogger(__name__)


def _check_rules(rules) -> None:
    check = validate_price_rules(rules)
    if not check.ok:
        raise ValidationError(check.errors)


def _build_rules(rules) -> List[PriceRule]:
    return [PriceRule(from_qty=r.from_qty, to_qty=r.to_qty, price=r.price) for r in rules]


# ---------- Productos ----------
def list_products(db: Session) -> List[Product]:
    return db.query(Product).order_by(Product.name).all()


def get_product(db: Session, product_id: str) -> Optional[Product]:
    return db.get(Product, product_id)


def find_product_by_sku(db: Session, sku: str) -> Optional[Product]:
    return SqlStore(db).find_product_by_sku(sku)


def add_product(db: Session, data: Any) -> Product:
    """Alta de producto con reglas, imágenes, tags y stock inicial; todo o nada."""
    data = parse(ProductIn, data)
    _check_rules(data.price_rules)

    store = SqlStore(db)
    with store.transaction():
        if store.find_product_by_sku(data.sku) is not None:
            raise DuplicateSkuError(data.sku)

        product = Product(
            name=data.name.strip(),
            sku=data.sku.strip(),
            category=data.category.strip(),
            description=data.description or "",
            base_price=data.price,
        )
        product.images = [ProductImage(url=url) for url in data.images]
        product.tags = [ProductTag(label=tag) for tag in data.tags]
        product.price_rules = _build_rules(data.price_rules)
        seen = set()
        for entry in data.stock:
            wh = store.find_warehouse(entry.warehouse)
            if wh is None:
                raise WarehouseNotFoundError(entry.warehouse)
            # el mismo depósito puede venir una vez por id y otra por nombre
            if wh.id in seen:
                raise ValidationError(f"Depósito repetido en el stock inicial: {entry.warehouse}")
            seen.add(wh.id)
            product.stocks.append(StockLevel(warehouse_id=wh.id, quantity=entry.quantity))
        db.add(product)
        db.flush()
        product_id, sku = product.id, product.sku

    LOGGER.info("Producto creado: %s (%s)", sku, product_id)
    return product


def update_product(db: Session, product_id: str, data: Any) -> Product:
    """Solo cambia los campos que vienen; reglas, imágenes y tags se reemplazan enteros."""
    data = parse(ProductUpdate, data)
    if data.price_rules is not None:
        _check_rules(data.price_rules)

    store = SqlStore(db)
    with store.transaction():
        product = store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        if data.sku is not None:
            other = store.find_product_by_sku(data.sku)
            if other is not None and other.id != product.id:
                raise DuplicateSkuError(data.sku)
            product.sku = data.sku.strip()
        if data.name is not None:
            product.name = data.name.strip()
        if data.category is not None:
            product.category = data.category.strip()
        if data.description is not None:
            product.description = data.description
        if data.price is not None:
            product.base_price = data.price
        if data.images is not None:
            product.images = [ProductImage(url=url) for url in data.images]
        if data.tags is not None:
            product.tags = [ProductTag(label=tag) for tag in data.tags]
        if data.price_rules is not None:
            product.price_rules = _build_rules(data.price_rules)
        db.flush()
        sku = product.sku

    LOGGER.info("Producto actualizado: %s", sku)
    return product


def remove_product(db: Session, product_id: str) -> None:
    store = SqlStore(db)
    with store.transaction():
        product = store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        sku = product.sku
        db.delete(product)
    LOGGER.info("Producto eliminado: %s", sku)


# ---------- Depósitos ----------
def list_warehouses(db: Session) -> List[Warehouse]:
    return db.query(Warehouse).order_by(Warehouse.name).all()


def create_warehouse(db: Session, name: str) -> Warehouse:
    name = (name or "").strip()
    if not name:
        raise ValidationError("El nombre del depósito es obligatorio")
    store = SqlStore(db)
    with store.transaction():
        if db.query(Warehouse).filter(Warehouse.name == name).first() is not None:
            raise DuplicateWarehouseError(name)
        wh = Warehouse(name=name)
        db.add(wh)
        db.flush()
    LOGGER.info("Depósito creado: %s", name)
    return wh


# ---------- Escaneo (mock) ----------
def scan_catalog(db: Session, limit: int = 3) -> List[Dict[str, Any]]:
    """No hay reconocimiento de imagen: devuelve los primeros productos del catálogo."""
    products = (
        db.query(Product)
        .order_by(Product.created_at, Product.sku)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": p.id,
            "sku": p.sku,
            "name": p.name,
            "quantity": idx + 1,
            "confidence": 90 - idx * 10,
        }
        for idx, p in enumerate(products)
    ]
