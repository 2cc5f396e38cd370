"""Contratos de almacenamiento que usa el núcleo y su implementación SQLAlchemy.

Tickets, cotizaciones y ajustes de stock dependen solo de estos protocolos,
nunca de una sesión global, así se pueden probar con cualquier store.
"""

import logging
from contextlib import contextmanager
from typing import ContextManager, Iterable, Optional, Protocol, runtime_checkable

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import BEGIN_MODE
from .errors import InsufficientStockError, PersistenceError
from .models import Product, StockLevel, StockMovement, Ticket, TicketItem, Warehouse

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class ProductLookup(Protocol):
    def find_product_by_sku(self, sku: str) -> Optional[Product]:
        ...

    def get_product(self, product_id: str) -> Optional[Product]:
        ...


@runtime_checkable
class WarehouseLookup(Protocol):
    def find_warehouse(self, id_or_name: str) -> Optional[Warehouse]:
        """Busca por id o por nombre exacto."""
        ...


@runtime_checkable
class StockStore(Protocol):
    def get_stock(self, product_id: str, warehouse_id: str) -> int:
        """Cantidad disponible; 0 si no hay fila."""
        ...

    def decrement_stock(self, product_id: str, warehouse_id: str, amount: int) -> int:
        """Falla con InsufficientStockError si quedaría negativo."""
        ...

    def increment_stock(self, product_id: str, warehouse_id: str, amount: int) -> int:
        ...

    def record_movement(self, product_id: str, warehouse_id: str, delta: int,
                        reason: str, notes: str = "") -> None:
        ...


@runtime_checkable
class TicketStore(Protocol):
    def ticket_exists(self, ticket_id: str) -> bool:
        ...

    def create_ticket(self, ticket: Ticket, items: Iterable[TicketItem]) -> Ticket:
        """Una sola escritura: cabecera + todas las líneas."""
        ...


@runtime_checkable
class CoreStore(ProductLookup, WarehouseLookup, StockStore, TicketStore, Protocol):
    def transaction(self) -> ContextManager["CoreStore"]:
        """Todo lo que pase adentro se confirma junto o se revierte junto."""
        ...


class SqlStore:
    """Implementación de CoreStore sobre una Session de SQLAlchemy."""

    def __init__(self, session: Session):
        self.session = session

    def _begin_write(self) -> None:
        """Abre la transacción pidiendo el lock de escritura desde el primer SELECT."""
        if self.session.in_transaction():
            current = self.session.connection().get_execution_options().get(BEGIN_MODE)
            if current == "IMMEDIATE":
                return
            if self.session.new or self.session.dirty or self.session.deleted:
                # hay cambios sin confirmar: se suman a la transacción abierta
                return
            # una lectura previa sigue abierta con BEGIN diferido; se cierra antes
            self.session.commit()
        self.session.connection(execution_options={BEGIN_MODE: "IMMEDIATE"})

    @contextmanager
    def transaction(self):
        try:
            self._begin_write()
            yield self
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            LOGGER.exception("Rollback: la base no pudo confirmar la transacción")
            raise PersistenceError() from exc
        except Exception:
            self.session.rollback()
            raise

    # ---------- Lecturas ----------
    def find_product_by_sku(self, sku: str) -> Optional[Product]:
        return (
            self.session.query(Product)
            .filter(func.lower(Product.sku) == sku.strip().lower())
            .first()
        )

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def find_warehouse(self, id_or_name: str) -> Optional[Warehouse]:
        return (
            self.session.query(Warehouse)
            .filter(or_(Warehouse.id == id_or_name, Warehouse.name == id_or_name))
            .first()
        )

    def _stock_row(self, product_id: str, warehouse_id: str) -> Optional[StockLevel]:
        # FOR UPDATE en Postgres/MySQL; en SQLite el lock lo da BEGIN IMMEDIATE
        return (
            self.session.query(StockLevel)
            .filter(StockLevel.product_id == product_id, StockLevel.warehouse_id == warehouse_id)
            .with_for_update()
            .first()
        )

    def get_stock(self, product_id: str, warehouse_id: str) -> int:
        row = self._stock_row(product_id, warehouse_id)
        return row.quantity if row else 0

    def ticket_exists(self, ticket_id: str) -> bool:
        return self.session.get(Ticket, ticket_id) is not None

    # ---------- Escrituras ----------
    def decrement_stock(self, product_id: str, warehouse_id: str, amount: int) -> int:
        row = self._stock_row(product_id, warehouse_id)
        available = row.quantity if row else 0
        if available < amount:
            product = self.get_product(product_id)
            raise InsufficientStockError(product.sku if product else product_id, amount, available)
        row.quantity = available - amount
        return row.quantity

    def increment_stock(self, product_id: str, warehouse_id: str, amount: int) -> int:
        row = self._stock_row(product_id, warehouse_id)
        if row is None:
            row = StockLevel(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
            self.session.add(row)
        row.quantity = (row.quantity or 0) + amount
        return row.quantity

    def record_movement(self, product_id: str, warehouse_id: str, delta: int,
                        reason: str, notes: str = "") -> None:
        self.session.add(StockMovement(
            product_id=product_id, warehouse_id=warehouse_id,
            delta=delta, reason=reason, notes=notes or "",
        ))

    def create_ticket(self, ticket: Ticket, items: Iterable[TicketItem]) -> Ticket:
        ticket.items = list(items)
        self.session.add(ticket)
        self.session.flush()  # los errores de integridad salen acá, dentro de la transacción
        return ticket
