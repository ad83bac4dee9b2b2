# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# entities.py → Dataclasses y enumeraciones del dominio (sin persistencia)
# tables.py   → Tablas SQLAlchemy del almacén relacional
# ==============================================================================

from .entities import (
    # Usuarios
    AppRole,
    Actor,

    # Auditoría
    ActionType,
    ACTION_LABELS,

    # Inventario
    MovementType,
    DEFAULT_CATEGORY,
    PRODUCT_CATEGORIES,

    # Carrito
    CartItem,

    # Configuración
    BusinessSettings,

    # Distintivos
    customer_badge,
    stock_badge,
)

__all__ = [
    'AppRole',
    'Actor',
    'ActionType',
    'ACTION_LABELS',
    'MovementType',
    'DEFAULT_CATEGORY',
    'PRODUCT_CATEGORIES',
    'CartItem',
    'BusinessSettings',
    'customer_badge',
    'stock_badge',
]
