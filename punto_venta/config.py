# ==============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ==============================================================================
# Todos los valores se leen de variables de entorno (o de un archivo .env en
# la raíz del proyecto). Los tests sobrescriben estos valores pasando un dict
# a create_app().
# ==============================================================================

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "si", "sí", "on")


# True = Sistema limpio, sin usuarios demo
PRODUCTION_MODE = _env_bool("POS_PRODUCTION_MODE", False)

# Cadena de conexión a la base de datos relacional
DATABASE_URL = os.getenv("POS_DATABASE_URL", f"sqlite:///{BASE_DIR / 'punto_venta.db'}")

# SECRET_KEY: En producción DEBE definirse via variable de entorno
_DEFAULT_SECRET = "punto_venta_dev_secret_key_change_in_production"
SECRET_KEY = os.getenv("POS_SECRET_KEY", _DEFAULT_SECRET)
SECRET_KEY_IS_DEFAULT = SECRET_KEY == _DEFAULT_SECRET

# Productos con stock igual o menor a este valor se consideran "stock bajo"
LOW_STOCK_THRESHOLD = int(os.getenv("POS_LOW_STOCK_THRESHOLD", "10"))

# Profiling de rutas y funciones (logs legibles en LOGS_DIR)
ENABLE_PROFILING = _env_bool("POS_ENABLE_PROFILING", True)
LOGS_DIR = os.getenv("POS_LOGS_DIR", str(BASE_DIR / "logs"))

# Tasa de IVA fija (no configurable por el usuario)
TAX_RATE = "0.16"

# Cantidad máxima de registros mostrados en el visor de auditoría
AUDIT_VIEW_LIMIT = 100


def as_flask_config() -> dict:
    """Devuelve la configuración en el formato que espera app.config."""
    return {
        "SECRET_KEY": SECRET_KEY,
        "DATABASE_URL": DATABASE_URL,
        "LOW_STOCK_THRESHOLD": LOW_STOCK_THRESHOLD,
        "ENABLE_PROFILING": ENABLE_PROFILING,
        "LOGS_DIR": LOGS_DIR,
        "PRODUCTION_MODE": PRODUCTION_MODE,
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SECURE": False,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "PERMANENT_SESSION_LIFETIME": 86400,  # 24 horas
        "MAX_CONTENT_LENGTH": 5 * 1024 * 1024,  # 5 MB (importación CSV)
    }
