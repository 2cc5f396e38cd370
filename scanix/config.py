import logging
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

# Cargar SIEMPRE el .env local del paquete (no el de la raíz)
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "si", "on")


DB_FILE = os.getenv("DB_FILE", "scanix.db")
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{(BASE_DIR / DB_FILE).as_posix()}"

# Segundos que espera SQLite por un lock antes de fallar
LOCK_TIMEOUT = float(os.getenv("SCANIX_LOCK_TIMEOUT", "5"))

# Si es True el precio unitario del ticket se recalcula con las reglas del producto
REPRICE_TICKETS = _env_flag("SCANIX_REPRICE_TICKETS")

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
