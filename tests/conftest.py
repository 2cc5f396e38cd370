import os

# antes de importar scanix: la config se lee al importar
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy.orm import sessionmaker

from scanix.db import init_db, make_engine
from scanix.models import Product, StockLevel, Ticket, Warehouse
from scanix.seed import seed_if_empty
from scanix.stores import SqlStore


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{(tmp_path / 'scanix-test.db').as_posix()}", lock_timeout=0.2)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    """Depósitos Central/Norte; AOL-500 (45) y ARR-1000 (23) en Central; PAS-500 sin stock."""
    seed_if_empty(db)
    return db


@pytest.fixture
def store(seeded):
    return SqlStore(seeded)


@pytest.fixture
def central(seeded):
    return seeded.query(Warehouse).filter(Warehouse.name == "Deposito Central").one()


def stock_of(db, sku, warehouse_name="Deposito Central"):
    row = (
        db.query(StockLevel)
        .join(Product, Product.id == StockLevel.product_id)
        .join(Warehouse, Warehouse.id == StockLevel.warehouse_id)
        .filter(Product.sku == sku, Warehouse.name == warehouse_name)
        .first()
    )
    return row.quantity if row else 0


def ticket_count(db):
    return db.query(Ticket).count()
