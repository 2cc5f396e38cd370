import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base

TICKET_STATUSES = ("confirmada", "pendiente", "anulada")


def new_id() -> str:
    return uuid.uuid4().hex


# Catálogo y stock son tablas separadas: un producto tiene una fila de stock por depósito

class Product(Base):
    __tablename__ = "products"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    sku = Column(String, unique=True, nullable=False, index=True)
    category = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    base_price = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # delete-orphan: al borrar el producto se van sus reglas, imágenes, tags y stock
    price_rules = relationship(
        "PriceRule", back_populates="product", cascade="all, delete-orphan",
        order_by="PriceRule.from_qty",
    )
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")
    tags = relationship("ProductTag", back_populates="product", cascade="all, delete-orphan")
    stocks = relationship("StockLevel", back_populates="product", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Product sku={self.sku!r}>"


class PriceRule(Base):
    __tablename__ = "price_rules"
    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    from_qty = Column(Integer, nullable=False)
    to_qty = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    product = relationship("Product", back_populates="price_rules")


class ProductImage(Base):
    __tablename__ = "product_images"
    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String, nullable=False)

    product = relationship("Product", back_populates="images")


class ProductTag(Base):
    __tablename__ = "product_tags"
    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String, nullable=False)

    product = relationship("Product", back_populates="tags")


class Warehouse(Base):
    __tablename__ = "warehouses"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, unique=True, nullable=False)

    stocks = relationship("StockLevel", back_populates="warehouse", cascade="all, delete-orphan")


class StockLevel(Base):
    __tablename__ = "stock_levels"
    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    warehouse_id = Column(String(32), ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="stocks")
    warehouse = relationship("Warehouse", back_populates="stocks")

    # Una sola fila por (producto, depósito) y nunca negativa
    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_product_warehouse"),
        CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
    )


class StockMovement(Base):
    __tablename__ = "stock_movements"
    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(String(32), ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False)
    delta = Column(Integer, nullable=False)  # + entrada | - salida
    reason = Column(String, nullable=False)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Ticket(Base):
    __tablename__ = "tickets"
    id = Column(String, primary_key=True)  # lo genera el cliente (VTA-...)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time = Column(String(5), nullable=False)  # HH:MM
    vendor = Column(String, nullable=False)
    warehouse = Column(String, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="confirmada")  # confirmada | pendiente | anulada
    photo = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "TicketItem", back_populates="ticket", cascade="all, delete-orphan",
        order_by="TicketItem.position",
    )


class TicketItem(Base):
    __tablename__ = "ticket_items"
    id = Column(String(32), primary_key=True, default=new_id)
    ticket_id = Column(String, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)

    ticket = relationship("Ticket", back_populates="items")
