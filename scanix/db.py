from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL, LOCK_TIMEOUT

Base = declarative_base()

# execution option que lee el evento "begin" de SQLite (DEFERRED o IMMEDIATE)
BEGIN_MODE = "scanix_begin_mode"


def make_engine(url: str = DATABASE_URL, lock_timeout: float = LOCK_TIMEOUT):
    """Crea el engine; en SQLite el modo de BEGIN sale de la execution option BEGIN_MODE."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False, "timeout": lock_timeout}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # una sola conexión compartida, si no cada sesión vería una BD vacía distinta
        engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    else:
        engine = create_engine(url, connect_args=connect_args)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite no emite BEGIN por su cuenta; lo hacemos en "begin"
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        # lecturas con BEGIN diferido; SqlStore.transaction pide IMMEDIATE para lee-verifica-escribe
        mode = conn.get_execution_options().get(BEGIN_MODE, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    from . import models  # noqa: F401  registra las tablas en Base.metadata

    Base.metadata.create_all(bind=bind or engine)
