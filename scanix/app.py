import logging
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .catalog import add_product, list_products, list_warehouses, remove_product, scan_catalog, update_product
from .db import SessionLocal, init_db
from .errors import ConflictError, NotFoundError, PersistenceError, ServiceError, ValidationError
from .inventory import ENTRADA_REASONS, SALIDA_REASONS, adjust_stock, stock_by_warehouse
from .models import Product, Ticket
from .pricing import quote
from .schemas import CreateTicketIn, ProductIn, ProductUpdate, QuoteIn, StockAdjustmentIn
from .security import CurrentUser, get_current_user
from .seed import seed_if_empty
from .stores import SqlStore
from .tickets import confirm_ticket, get_ticket, list_tickets, new_ticket_id, summarize_tickets

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Scanix POS")

# ---------- DB init ----------
init_db()
with SessionLocal() as _db:
    seed_if_empty(_db)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------- Errores del dominio -> HTTP ----------
def _status_for(exc: ServiceError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, PersistenceError):
        return 500
    return 400


@app.exception_handler(ServiceError)
async def service_error_handler(request, exc: ServiceError):
    body = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    return JSONResponse(status_code=_status_for(exc), content=body)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request, exc: SQLAlchemyError):
    # lecturas fuera de SqlStore.transaction (p.ej. base bloqueada)
    LOGGER.error("Error de base de datos en %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": PersistenceError().message})


# ---------- Utils ----------
def product_to_dict(p: Product):
    return {
        "id": p.id,
        "name": p.name,
        "sku": p.sku,
        "category": p.category,
        "description": p.description,
        "basePrice": round(p.base_price, 2),
        "tags": [t.label for t in p.tags],
        "images": [i.url for i in p.images],
        "priceRules": [{"from": r.from_qty, "to": r.to_qty, "price": r.price} for r in p.price_rules],
        "stocks": [{"warehouseId": s.warehouse_id, "quantity": s.quantity} for s in p.stocks],
    }


def ticket_to_dict(t: Ticket):
    return {
        "id": t.id,
        "date": t.date,
        "time": t.time,
        "vendor": t.vendor,
        "warehouse": t.warehouse,
        "total": round(t.total, 2),
        "status": t.status,
        "photo": t.photo,
        "items": [
            {
                "name": it.name,
                "sku": it.sku,
                "quantity": it.quantity,
                "unitPrice": it.unit_price,
                "subtotal": round(it.subtotal, 2),
            }
            for it in t.items
        ],
    }


# ---------- Endpoints utilitarios ----------
@app.get("/api/health")
def health(): return {"ok": True}


# ---------- Catálogo ----------
@app.get("/api/products")
def get_products(db: Session = Depends(get_db)):
    return [product_to_dict(p) for p in list_products(db)]


@app.post("/api/products", status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return product_to_dict(add_product(db, payload))


@app.put("/api/products/{product_id}")
def edit_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db),
                 user: CurrentUser = Depends(get_current_user)):
    return product_to_dict(update_product(db, product_id, payload))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    remove_product(db, product_id)
    return {"ok": True}


@app.get("/api/products/{product_id}/stock")
def get_product_stock(product_id: str, db: Session = Depends(get_db)):
    if db.get(Product, product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return stock_by_warehouse(db, product_id)


@app.get("/api/warehouses")
def get_warehouses(db: Session = Depends(get_db)):
    return [{"id": w.id, "name": w.name} for w in list_warehouses(db)]


# Escaneo simulado: la imagen no se procesa
@app.post("/api/scan")
def scan(db: Session = Depends(get_db)):
    return {"products": scan_catalog(db)}


@app.post("/api/quote")
def quote_items(payload: QuoteIn, db: Session = Depends(get_db)):
    result = quote(SqlStore(db), payload.items)
    return {
        "items": [
            {
                "sku": line.sku,
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": line.unit_price,
                "ruleApplied": {"from": line.rule_applied[0], "to": line.rule_applied[1]} if line.rule_applied else None,
                "subtotal": line.subtotal,
            }
            for line in result.lines
        ],
        "total": result.total,
    }


# ---------- Tickets ----------
@app.post("/api/tickets", status_code=201)
def create_ticket(payload: CreateTicketIn, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    ticket_id = payload.id or new_ticket_id()
    ticket = confirm_ticket(
        SqlStore(db),
        ticket_id=ticket_id,
        vendor=payload.vendor,
        warehouse=payload.warehouse,
        items=payload.items,
        photo=payload.photo,
    )
    return {"ok": True, "ticket": ticket_to_dict(ticket)}


@app.get("/api/tickets")
def get_tickets(status: Optional[str] = None, db: Session = Depends(get_db),
                user: CurrentUser = Depends(get_current_user)):
    return [ticket_to_dict(t) for t in list_tickets(db, status=status)]


@app.get("/api/tickets/summary")
def get_tickets_summary(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return summarize_tickets(list_tickets(db))


@app.get("/api/tickets/{ticket_id}")
def get_one_ticket(ticket_id: str, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    t = get_ticket(db, ticket_id)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket_to_dict(t)


# ---------- Stock ----------
@app.get("/api/stock/reasons")
def get_stock_reasons():
    return {"entrada": list(ENTRADA_REASONS), "salida": list(SALIDA_REASONS)}


@app.post("/api/stock/{product_id}/adjust")
def adjust_product_stock(product_id: str, payload: StockAdjustmentIn, db: Session = Depends(get_db),
                         user: CurrentUser = Depends(get_current_user)):
    quantity = adjust_stock(
        SqlStore(db), product_id, payload.warehouse, payload.kind,
        payload.quantity, payload.reason, payload.notes,
    )
    return {"product_id": product_id, "warehouse": payload.warehouse, "quantity": quantity}
