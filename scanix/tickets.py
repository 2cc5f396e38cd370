"""Confirmación de tickets de venta.

``confirm_ticket`` es todo-o-nada: primero verifica depósito, productos y
stock de todas las líneas; recién entonces descuenta stock y guarda el ticket
con sus ítems. Cualquier error revierte la transacción completa.
"""

import logging
import secrets
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from .config import REPRICE_TICKETS
from .errors import (
    ConflictError,
    DuplicateTicketError,
    InsufficientStockError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
    WarehouseNotFoundError,
)
from .models import TICKET_STATUSES, Ticket, TicketItem
from .pricing import resolve_unit_price
from .schemas import TicketItemIn, error_messages
from .stores import CoreStore

LOGGER = logging.getLogger(__name__)

_ITEMS_ADAPTER = TypeAdapter(List[TicketItemIn])


def new_ticket_id(now: Optional[datetime] = None) -> str:
    """Id con el formato del punto de venta: VTA-YYYYMMDD-XXXXXX."""
    now = now or datetime.now()
    return f"VTA-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def parse_items(items: Sequence[Any]) -> List[TicketItemIn]:
    try:
        return _ITEMS_ADAPTER.validate_python(list(items))
    except PydanticValidationError as exc:
        raise ValidationError(error_messages(exc, prefix="items.")) from exc


def _validate_request(ticket_id, vendor, warehouse, items) -> List[TicketItemIn]:
    errors = []
    if not isinstance(ticket_id, str) or not ticket_id.strip():
        errors.append("El id del ticket es obligatorio")
    if not isinstance(vendor, str) or not vendor.strip():
        errors.append("El vendedor es obligatorio")
    if not isinstance(warehouse, str) or not warehouse.strip():
        errors.append("El depósito es obligatorio")
    if not items:
        errors.append("El ticket no tiene ítems")
    if errors:
        raise ValidationError(errors)
    return parse_items(items)


def confirm_ticket(
    store: CoreStore,
    ticket_id: str,
    vendor: str,
    warehouse: str,
    items: Sequence[Any],
    photo: Optional[str] = None,
    now: Optional[datetime] = None,
    reprice: Optional[bool] = None,
) -> Ticket:
    lines = _validate_request(ticket_id, vendor, warehouse, items)
    if reprice is None:
        reprice = REPRICE_TICKETS
    now = now or datetime.now()

    try:
        with store.transaction():
            # 1) Verificaciones: no se toca nada hasta que pasen todas
            if store.ticket_exists(ticket_id):
                raise DuplicateTicketError(ticket_id)

            wh = store.find_warehouse(warehouse)
            if wh is None:
                raise WarehouseNotFoundError(warehouse)

            products = []
            for line in lines:
                product = store.find_product_by_sku(line.sku)
                if product is None:
                    raise ProductNotFoundError(line.sku)
                products.append(product)

            # si un SKU se repite en varias líneas se controla la suma
            requested = Counter()
            for line, product in zip(lines, products):
                requested[product.id] += line.quantity
            by_id = {p.id: p for p in products}
            for product_id, qty in requested.items():
                available = store.get_stock(product_id, wh.id)
                if available < qty:
                    raise InsufficientStockError(by_id[product_id].sku, qty, available)

            # 2) Descontar stock
            for product_id, qty in requested.items():
                store.decrement_stock(product_id, wh.id, qty)

            # 3) Ticket + ítems
            ticket_items = []
            for position, (line, product) in enumerate(zip(lines, products)):
                if reprice:
                    unit_price = resolve_unit_price(line.quantity, product.base_price, product.price_rules)
                else:
                    unit_price = line.unit_price
                ticket_items.append(TicketItem(
                    position=position,
                    name=product.name,
                    sku=product.sku,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=line.quantity * unit_price,
                ))
            total = sum(item.subtotal for item in ticket_items)

            ticket = Ticket(
                id=ticket_id,
                date=now.strftime("%Y-%m-%d"),
                time=now.strftime("%H:%M"),
                vendor=vendor,
                warehouse=wh.name,
                total=total,
                status="confirmada",
                photo=photo,
                created_at=now,
            )
            store.create_ticket(ticket, ticket_items)
            warehouse_name = wh.name
    except (NotFoundError, ConflictError) as exc:
        LOGGER.warning("Ticket %s rechazado: %s", ticket_id, exc.message)
        raise

    LOGGER.info(
        "Ticket %s confirmado en %s: %d ítems, total %.2f",
        ticket_id, warehouse_name, len(ticket_items), total,
    )
    return ticket


# ---------- Consultas ----------
def list_tickets(db: Session, status: Optional[str] = None) -> List[Ticket]:
    """Más reciente primero."""
    q = db.query(Ticket)
    if status is not None:
        if status not in TICKET_STATUSES:
            raise ValidationError(f"Estado inválido: {status}")
        q = q.filter(Ticket.status == status)
    return q.order_by(Ticket.created_at.desc()).all()


def get_ticket(db: Session, ticket_id: str) -> Optional[Ticket]:
    return db.get(Ticket, ticket_id)


def summarize_tickets(tickets: Sequence[Ticket]) -> Dict[str, Any]:
    """Conteo por estado y total vendido (solo confirmadas)."""
    counts = Counter(t.status for t in tickets)
    return {
        "count": len(tickets),
        "by_status": {status: counts.get(status, 0) for status in TICKET_STATUSES},
        "confirmed_total": round(sum(t.total for t in tickets if t.status == "confirmada"), 2),
    }
