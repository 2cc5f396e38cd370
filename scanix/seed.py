import logging

from sqlalchemy.orm import Session

from .catalog import add_product, create_warehouse
from .models import Product, Warehouse

LOGGER = logging.getLogger(__name__)

WAREHOUSES = ("Deposito Central", "Deposito Norte")

PRODUCTS = [
    {
        "name": "Aceite de Oliva Extra Virgen 500ml", "sku": "AOL-500", "category": "Aceites",
        "price": 8.5, "tags": ["premium", "importado", "500ml"], "images": ["/placeholder.svg"],
        "priceRules": [
            {"from": 1, "to": 9, "price": 8.5},
            {"from": 10, "to": 49, "price": 7.8},
            {"from": 50, "to": 999, "price": 7.2},
        ],
        "stockByWarehouse": [{"warehouse": "Deposito Central", "quantity": 45}],
    },
    {
        "name": "Arroz Integral 1kg", "sku": "ARR-1000", "category": "Granos",
        "price": 3.2, "tags": ["integral", "1kg", "saludable"], "images": ["/placeholder.svg"],
        "priceRules": [
            {"from": 1, "to": 19, "price": 3.2},
            {"from": 20, "to": 99, "price": 2.9},
        ],
        "stockByWarehouse": [{"warehouse": "Deposito Central", "quantity": 23}],
    },
    {
        "name": "Pasta Italiana 500g", "sku": "PAS-500", "category": "Pastas",
        "price": 2.9, "tags": ["italiana", "500g", "premium"], "images": ["/placeholder.svg"],
        "priceRules": [
            {"from": 1, "to": 9, "price": 2.9},
            {"from": 10, "to": 49, "price": 2.6},
        ],
    },
]


def seed_if_empty(db: Session) -> bool:
    # Solo inserta si no hay productos ni depósitos
    if db.query(Product).count() > 0 or db.query(Warehouse).count() > 0:
        db.rollback()  # libera el lock de la lectura
        return False
    for name in WAREHOUSES:
        create_warehouse(db, name)
    for data in PRODUCTS:
        add_product(db, data)
    LOGGER.info("Seed inicial: %d depósitos, %d productos", len(WAREHOUSES), len(PRODUCTS))
    return True
